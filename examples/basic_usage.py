"""Basic usage examples for the Netatmo client.

Credentials are read from NETATMO_* environment variables or a .env file.
"""

import asyncio
import logging

from netatmo import MeasureScale, NetatmoClient, RequestError


async def weather_example(client: NetatmoClient) -> None:
    """Print the latest readings of every weather station."""
    devices = await client.get_stations_data()

    print("=== Weather stations ===")
    for device in devices:
        dashboard = device.get("dashboard_data", {})
        print(f"{device.get('station_name')}: {dashboard.get('Temperature')}°C")
        for module in device.get("modules", []):
            data = module.get("dashboard_data", {})
            print(f"  {module.get('module_name')}: {data.get('Temperature')}°C")


async def energy_example(client: NetatmoClient) -> None:
    """Print the last day of room temperatures of the first home."""
    homes = (await client.get_homes_data()).get("homes", [])
    if not homes:
        print("No Energy home")
        return

    home = homes[0]
    print(f"\n=== {home.get('name')} ===")
    for room in home.get("rooms", []):
        try:
            measure = await client.get_room_measure(
                home_id=home["id"],
                room_id=room["id"],
                scale=MeasureScale.ONE_HOUR,
                type=["temperature"],
                date_end="last",
                optimize=True,
            )
        except RequestError as e:
            print(f"{room.get('name')}: {e}")
            continue
        values = [v[0] for block in measure for v in block.get("value", [])]
        print(f"{room.get('name')}: {values}")


async def main() -> None:
    async with NetatmoClient.from_settings() as client:
        client.on_error(lambda error: print(f"Authentication problem: {error}"))
        await weather_example(client)
        await energy_example(client)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
