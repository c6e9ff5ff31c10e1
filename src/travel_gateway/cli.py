"""
Travel Gateway CLI
Diagnostics and lookups against the Amadeus API through the cached executor.
"""

import asyncio
import json
import logging
import sys
from datetime import date, timedelta
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from travel_gateway.cache.base import CacheStats
from travel_gateway.config import settings
from travel_gateway.errors import ClassifiedFailure
from travel_gateway.gateway import CachedExecutor, create_executor
from travel_gateway.http.client import AmadeusClient
from travel_gateway.keys import build_cache_key

console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def fetch_airlines(
    executor: CachedExecutor,
    client: AmadeusClient,
    codes: list[str],
) -> list[dict[str, Any]]:
    """Airline reference data for IATA/ICAO codes."""
    joined = ",".join(code.upper() for code in codes)
    key = build_cache_key("airlines", joined)

    async def producer() -> list[dict[str, Any]]:
        response = await client.get(
            "/v1/reference-data/airlines",
            params={"airlineCodes": joined},
        )
        return response.get("data", [])

    return await executor.fetch(key, producer)


async def fetch_flight_offers(
    executor: CachedExecutor,
    client: AmadeusClient,
    origin: str,
    destination: str,
    departure_date: str,
    adults: int = 1,
) -> list[dict[str, Any]]:
    """One-way flight offers."""
    key = build_cache_key("flights", origin, destination, departure_date, "oneway", adults)

    async def producer() -> list[dict[str, Any]]:
        response = await client.get(
            "/v2/shopping/flight-offers",
            params={
                "originLocationCode": origin.upper(),
                "destinationLocationCode": destination.upper(),
                "departureDate": departure_date,
                "adults": adults,
            },
        )
        return response.get("data", [])

    return await executor.fetch(key, producer)


def _describe_offer(offer: dict[str, Any]) -> str:
    price = offer.get("price") or {}
    itineraries = offer.get("itineraries") or [{}]
    segments = itineraries[0].get("segments") or []
    return (
        f"{price.get('grandTotal', '?')} {price.get('currency', '')}, "
        f"{len(segments)} segment(s)"
    )


def _exit_if_missing_credentials() -> None:
    if settings.amadeus_api_key and settings.amadeus_api_secret:
        return
    console.print("\n❌ [red]Missing API credentials![/red]")
    console.print("Please create a .env file with:")
    console.print("AMADEUS_API_KEY=your_api_key_here")
    console.print("AMADEUS_API_SECRET=your_api_secret_here")
    sys.exit(1)


def _print_stats(stats: CacheStats) -> None:
    table = Table(title="Cache Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Keys", str(stats.keys))
    table.add_row("Hits", str(stats.hits))
    table.add_row("Misses", str(stats.misses))
    table.add_row("Hit rate", f"{stats.hit_rate:.0%}")
    console.print(table)


@click.group()
@click.option(
    "--log-level",
    "-l",
    default=None,
    help="Logging level (defaults to LOG_LEVEL)",
)
def cli(log_level: str | None):
    """Travel Gateway CLI - cached, rate-limited Amadeus access."""
    configure_logging(log_level or settings.log_level)


async def _run_diagnostics(departure_date: str) -> CacheStats:
    executor = await create_executor()
    try:
        async with AmadeusClient.from_settings() as client:
            console.print("Testing with airline lookup (simple API call)...")
            airlines = await fetch_airlines(executor, client, ["AA"])
            console.print("✓ [green]Connection successful![/green]")
            if airlines:
                console.print(f"  Sample: {json.dumps(airlines[0], indent=2)}")

            # Second lookup must be served from the cache
            await fetch_airlines(executor, client, ["AA"])

            console.print("\nTesting flight search JFK -> LAX...")
            console.print(f"  Using date: {departure_date}")
            offers = await fetch_flight_offers(
                executor, client, "JFK", "LAX", departure_date
            )
            console.print("✓ [green]Flight search successful![/green]")
            console.print(f"  Found {len(offers)} flight offers")
            if offers:
                console.print(f"  First offer: {_describe_offer(offers[0])}")

        return await executor.get_stats()
    finally:
        await executor.close()


@cli.command()
@click.option("--days-ahead", default=7, show_default=True, help="Departure offset for the test search")
def diagnose(days_ahead: int):
    """Check credentials and connectivity to the Amadeus API."""
    console.print("[bold]=== Amadeus API Diagnostic ===[/bold]")
    console.print(
        "AMADEUS_API_KEY:    "
        + ("✓ Set" if settings.amadeus_api_key else "[red]✗ Missing[/red]")
    )
    console.print(
        "AMADEUS_API_SECRET: "
        + ("✓ Set" if settings.amadeus_api_secret else "[red]✗ Missing[/red]")
    )
    console.print(f"AMADEUS_HOSTNAME:   {settings.amadeus_hostname}")

    _exit_if_missing_credentials()

    departure = (date.today() + timedelta(days=days_ahead)).isoformat()
    try:
        stats = asyncio.run(_run_diagnostics(departure))
    except ClassifiedFailure as e:
        console.print(f"❌ [red]API Error ({e.kind.value}): {e.message}[/red]")
        sys.exit(1)

    _print_stats(stats)


async def _lookup(codes: list[str]) -> list[dict[str, Any]]:
    executor = await create_executor()
    try:
        async with AmadeusClient.from_settings() as client:
            return await fetch_airlines(executor, client, codes)
    finally:
        await executor.close()


@cli.command()
@click.argument("codes", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def airline(codes: tuple[str, ...], as_json: bool):
    """Look up airlines by IATA or ICAO code."""
    _exit_if_missing_credentials()

    try:
        airlines = asyncio.run(_lookup(list(codes)))
    except ClassifiedFailure as e:
        console.print(f"❌ [red]Error ({e.kind.value}): {e.message}[/red]")
        sys.exit(1)

    if as_json:
        console.print(json.dumps(airlines, indent=2))
        return

    table = Table(title="Airlines")
    table.add_column("IATA", style="cyan")
    table.add_column("ICAO")
    table.add_column("Name")
    for a in airlines:
        table.add_row(
            a.get("iataCode", "-"),
            a.get("icaoCode", "-"),
            a.get("commonName") or a.get("businessName", "-"),
        )
    console.print(table)


def main():
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
