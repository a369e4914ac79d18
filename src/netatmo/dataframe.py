"""DataFrame conversion for Netatmo room measures.

Requirements:
    pandas >= 2.0 must be installed. Install with:
        pip install pandas
    Or install netatmo with the pandas extra:
        pip install netatmo-async[pandas]

Example:
    Basic usage::

        from netatmo import MeasureScale, NetatmoClient
        from netatmo.dataframe import measure_to_dataframe

        async with NetatmoClient(credentials) as client:
            types = ["temperature", "sp_temperature"]
            measure = await client.get_room_measure(
                home_id=home_id,
                room_id=room_id,
                scale=MeasureScale.ONE_HOUR,
                type=types,
                optimize=True,
            )
            df = measure_to_dataframe(measure, types)
            print(df.head())
"""

from typing import Any, Union


def _check_pandas() -> None:
    """Check if pandas is installed and raise informative error if not."""
    try:
        import pandas  # noqa: F401
    except ImportError as e:
        raise ImportError(
            "pandas is required for DataFrame conversion. "
            "Install it with: pip install pandas"
        ) from e


def _column_names(types: Union[str, list[str]]) -> list[str]:
    if isinstance(types, str):
        types = types.split(",")
    return ["".join(name.split()).lower() for name in types]


def measure_to_dataframe(
    measure: Union[list[dict[str, Any]], dict[str, Any]],
    types: Union[str, list[str]],
) -> "pd.DataFrame":
    """Convert a get_room_measure() result to a pandas DataFrame.

    Handles both response formats:
        - optimized: ``[{"beg_time": t0, "step_time": s, "value": [[...], ...]}]``
          where row ``i`` of a block is measured at ``t0 + i * s``.
        - non-optimized: ``{"<epoch>": [...], ...}``.

    Args:
        measure: Body returned by NetatmoClient.get_room_measure().
        types: The measure types that were requested, in request order.

    Returns:
        DataFrame sorted by time with a UTC ``time`` column and one column
        per measure type.

    Raises:
        ImportError: If pandas is not installed.
        ValueError: If the measure format is not recognized.
    """
    _check_pandas()
    import pandas as pd

    columns = _column_names(types)
    rows: list[tuple[int, list[Any]]] = []

    if isinstance(measure, list):
        for block in measure:
            begin = int(block["beg_time"])
            step = int(block.get("step_time", 0))
            for i, values in enumerate(block.get("value", [])):
                rows.append((begin + i * step, values))
    elif isinstance(measure, dict):
        for timestamp, values in measure.items():
            rows.append((int(timestamp), values))
    else:
        raise ValueError(
            f"Unsupported measure type: {type(measure).__name__}. "
            "Expected list (optimized) or dict (non-optimized)."
        )

    rows.sort(key=lambda row: row[0])
    df = pd.DataFrame([values for _, values in rows], columns=columns)
    df.insert(0, "time", pd.to_datetime([t for t, _ in rows], unit="s", utc=True))
    return df


__all__ = ["measure_to_dataframe"]
