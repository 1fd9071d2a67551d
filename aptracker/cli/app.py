"""
Command line interface for aptracker
Manage the database, inspect listings, estimate travel times and run the API
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from aptracker.config import get_settings, setup_logging
from aptracker.core.db import RecordNotFoundError, init_db
from aptracker.core.destinations import Destination, DestinationStore, StorageError
from aptracker.core.models import ListingFilters, ListingStatus, SortKey, SortOrder
from aptracker.core.query import ListingQueryService
from aptracker.core.stats import compute_statistics
from aptracker.travel.client import GeocodingClient, RoutingClient
from aptracker.travel.service import DistanceService, estimate_walking

from .seed import SeedError, load_seed_file, parse_seed_entries, seed_database

app = typer.Typer(
    name="aptracker",
    help="aptracker - personal apartment-hunting tracker",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    ListingStatus.NEW: "white",
    ListingStatus.CONTACTED: "yellow",
    ListingStatus.REPLIED: "green",
}


def _euro(value: Optional[int]) -> str:
    return f"€{value:,}" if value is not None else "-"


def _geocoding_client(settings) -> GeocodingClient:
    return GeocodingClient(
        api_key=settings.geoapify_api_key,
        locality=settings.geocode_locality,
        country_code=settings.geocode_country_code,
        bias_lat=settings.geocode_bias_lat,
        bias_lng=settings.geocode_bias_lng,
        timeout=settings.http_timeout,
    )


@app.command()
def init():
    """Initialize the database"""
    settings = get_settings()

    async def initialize():
        console.print("[cyan]Initializing aptracker database...[/cyan]")
        db = await init_db(settings.database_url)
        await db.close()
        console.print("[green]✓ Database initialized successfully![/green]")

    try:
        asyncio.run(initialize())
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Run the HTTP API"""
    from aptracker.api.app import run_server

    run_server(get_settings(), host=host, port=port)


@app.command(name="list")
def list_listings(
    housing_type: Optional[str] = typer.Option(None, "--type", help="Housing type"),
    room_type: Optional[str] = typer.Option(None, "--room", help="Room type"),
    contacted: Optional[bool] = typer.Option(None, "--contacted/--not-contacted", help="Contacted status"),
    replied: Optional[bool] = typer.Option(None, "--replied/--not-replied", help="Replied status"),
    parking: Optional[bool] = typer.Option(None, "--parking/--no-parking", help="Has parking"),
    search: Optional[str] = typer.Option(None, "--search", help="Substring of the location"),
    min_cost: Optional[int] = typer.Option(None, "--min-cost", help="Minimum total monthly cost"),
    max_cost: Optional[int] = typer.Option(None, "--max-cost", help="Maximum total monthly cost"),
    max_walk: Optional[int] = typer.Option(None, "--max-walk", help="Maximum walking minutes to --lat/--lng"),
    max_transit: Optional[int] = typer.Option(None, "--max-transit", help="Maximum transit minutes to --lat/--lng"),
    lat: Optional[float] = typer.Option(None, "--lat", help="Destination latitude"),
    lng: Optional[float] = typer.Option(None, "--lng", help="Destination longitude"),
    sort: Optional[SortKey] = typer.Option(None, "--sort", help="Sort key"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
):
    """List tracked listings"""
    settings = get_settings()

    try:
        filters = ListingFilters(
            housing_type=housing_type,
            room_type=room_type,
            contacted=contacted,
            replied=replied,
            parking=parking,
            location_search=search,
            min_cost=min_cost,
            max_cost=max_cost,
            max_walking_minutes=max_walk,
            max_transit_minutes=max_transit,
            destination_lat=lat,
            destination_lng=lng,
            sort_by=sort,
            sort_order=SortOrder.DESC if desc else SortOrder.ASC,
        )
    except ValueError as e:
        console.print(f"[red]Invalid filters: {e}[/red]")
        raise typer.Exit(1)

    async def run_list():
        db = await init_db(settings.database_url)
        try:
            return await ListingQueryService(db).search(filters)
        finally:
            await db.close()

    try:
        listings = asyncio.run(run_list())
    except Exception as e:
        console.print(f"[red]Error listing apartments: {e}[/red]")
        raise typer.Exit(1)

    if not listings:
        console.print("[yellow]No listings found matching criteria[/yellow]")
        return

    table = Table(title=f"\nShowing {len(listings)} Listings")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Location", width=24)
    table.add_column("Type", width=14)
    table.add_column("Room", width=10)
    table.add_column("Total", justify="right")
    table.add_column("Available", width=14)
    table.add_column("Parking", justify="center")
    table.add_column("Status")

    for listing in listings:
        table.add_row(
            str(listing.id),
            listing.display_name,
            listing.housing_type,
            listing.room_type or "-",
            _euro(listing.total_cost),
            listing.available_from or "-",
            "✓" if listing.parking else "",
            f"[{STATUS_STYLES[listing.status]}]{listing.status.value}[/]",
        )

    console.print(table)


@app.command()
def show(listing_id: int = typer.Argument(..., help="Listing ID")):
    """Show one listing with its contacts"""
    settings = get_settings()

    async def load():
        db = await init_db(settings.database_url)
        try:
            return await db.get_listing(listing_id)
        finally:
            await db.close()

    try:
        listing = asyncio.run(load())
    except RecordNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]{listing.display_name}[/bold cyan] ({listing.location})")
    console.print(f"  Type: {listing.housing_type}" + (f" / {listing.room_type}" if listing.room_type else ""))
    if listing.room_count:
        console.print(f"  Rooms: {listing.room_count} ({listing.roommates} potential roommates)")
    console.print(
        f"  Cost: {_euro(listing.total_cost)}/month "
        f"(rent {_euro(listing.rent_cost)}, utilities {_euro(listing.utilities_cost)}, "
        f"other {_euro(listing.other_cost)})"
    )
    console.print(f"  Available: {listing.available_from or '-'}")
    console.print(f"  Parking: {'yes' if listing.parking else 'no'}")
    console.print(f"  Status: [{STATUS_STYLES[listing.status]}]{listing.status.value}[/]")
    if listing.latitude is not None and listing.longitude is not None:
        console.print(f"  Coordinates: {listing.latitude}, {listing.longitude}")
    if listing.reference_url:
        console.print(f"  Link: {listing.reference_url}")
    if listing.notes:
        console.print(f"  Notes: {listing.notes}")

    if listing.contacts:
        console.print("\n[bold]Contacts:[/bold]")
        for contact in listing.contacts:
            console.print(f"  [{contact.id}] {contact.kind.value}: {contact.value}")


@app.command()
def delete(
    listing_id: int = typer.Argument(..., help="Listing ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a listing and its contacts"""
    if not yes and not typer.confirm(f"Delete listing {listing_id}?"):
        console.print("[yellow]Delete cancelled[/yellow]")
        return

    settings = get_settings()

    async def run_delete():
        db = await init_db(settings.database_url)
        try:
            await db.delete_listing(listing_id)
        finally:
            await db.close()

    try:
        asyncio.run(run_delete())
    except RecordNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Deleted listing {listing_id}[/green]")


@app.command()
def stats():
    """Show search statistics"""
    settings = get_settings()

    async def load():
        db = await init_db(settings.database_url)
        try:
            return compute_statistics(await db.list_listings())
        finally:
            await db.close()

    try:
        summary = asyncio.run(load())
    except Exception as e:
        console.print(f"[red]Error getting statistics: {e}[/red]")
        raise typer.Exit(1)

    console.print("\n[bold cyan]Apartment Search Statistics[/bold cyan]\n")
    console.print(f"Total listings: {summary.total}")
    console.print(f"Contacted: {summary.contacted} ({summary.contacted_percentage}%)")
    console.print(f"Replied: {summary.replied} ({summary.replied_percentage}%)")

    costs = summary.average_costs
    console.print("\n[bold]Average monthly costs:[/bold]")
    console.print(f"  Rent: {_euro(costs.rent)}")
    console.print(f"  Utilities: {_euro(costs.utilities)}")
    console.print(f"  Other: {_euro(costs.other)}")
    console.print(f"  Total: {_euro(costs.total)}")

    for title, distribution in [
        ("By Neighbourhood", summary.by_neighborhood),
        ("By Housing Type", summary.by_housing_type),
        ("By Room Type", summary.by_room_type),
    ]:
        if not distribution:
            continue
        table = Table(title=f"\n{title}")
        table.add_column("Value", style="cyan")
        table.add_column("Count", justify="right")
        for key, count in sorted(distribution.items(), key=lambda item: -item[1]):
            table.add_row(key, str(count))
        console.print(table)


@app.command()
def distance(
    listing_id: int = typer.Argument(..., help="Listing ID"),
    lat: Optional[float] = typer.Option(None, "--lat", help="Destination latitude"),
    lng: Optional[float] = typer.Option(None, "--lng", help="Destination longitude"),
    to: Optional[str] = typer.Option(None, "--to", help="Destination address (geocoded)"),
    name: Optional[str] = typer.Option(None, "--name", help="Destination label"),
):
    """Estimate walking and transit time from a listing to a destination"""
    settings = get_settings()

    if (lat is None or lng is None) and not to:
        console.print("[red]Give either --lat and --lng or --to[/red]")
        raise typer.Exit(1)

    async def estimate():
        destination_lat, destination_lng, label = lat, lng, name
        if to and (lat is None or lng is None):
            geocoded = await _geocoding_client(settings).geocode(to)
            if not geocoded.success:
                raise ValueError(f"Cannot geocode '{to}': {geocoded.message}")
            destination_lat, destination_lng = geocoded.latitude, geocoded.longitude
            label = label or geocoded.display_name or to

        destination = Destination(
            name=label or f"{destination_lat}, {destination_lng}",
            address=to,
            lat=destination_lat,
            lng=destination_lng,
        )

        db = await init_db(settings.database_url)
        try:
            service = DistanceService(
                db,
                RoutingClient(
                    api_key=settings.openrouteservice_api_key, timeout=settings.http_timeout
                ),
            )
            listing = await db.get_listing(listing_id)
            walking = estimate_walking(listing, destination.lat, destination.lng)
            transit = await service.estimate_transit(listing, destination.lat, destination.lng)
            return listing, destination, walking, transit
        finally:
            await db.close()

    try:
        listing, destination, walking, transit = asyncio.run(estimate())
    except (RecordNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        DestinationStore().remember(destination)
    except StorageError as e:
        console.print(f"[yellow]Could not save recent destination: {e}[/yellow]")

    console.print(f"\n[bold cyan]{listing.display_name}[/bold cyan] → {destination.name}")
    if walking.walking_minutes is None:
        console.print(f"[yellow]{walking.message}[/yellow]")
        return

    console.print(f"  Distance: {walking.distance_meters:,} m")
    console.print(f"  Walking: {walking.walking_minutes} min")
    transit_line = f"  Transit: {transit.transit_minutes} min"
    if transit.approximate:
        transit_line += f" [dim]({transit.message})[/dim]"
    console.print(transit_line)


@app.command()
def geocode(address: str = typer.Argument(..., help="Address to look up")):
    """Look up coordinates for an address"""
    settings = get_settings()
    result = asyncio.run(_geocoding_client(settings).geocode(address))

    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]{result.display_name}[/green]")
    console.print(f"  Latitude: {result.latitude}")
    console.print(f"  Longitude: {result.longitude}")


@app.command()
def destinations(
    forget: Optional[str] = typer.Option(None, "--forget", help="Remove the destination with this key"),
):
    """Show recently used destinations"""
    store = DestinationStore()
    try:
        if forget:
            if store.forget(forget):
                console.print(f"[green]✓ Removed {forget}[/green]")
            else:
                console.print(f"[yellow]No recent destination with key {forget}[/yellow]")
        recent = store.load()
    except StorageError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not len(recent):
        console.print("[yellow]No recent destinations[/yellow]")
        return

    table = Table(title="\nRecent Destinations")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Last Used")
    for item in recent:
        table.add_row(item.key, item.name, item.last_used.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


@app.command()
def seed(file: Path = typer.Argument(..., help="YAML or JSON file with listings")):
    """Load listings from a seed file"""
    settings = get_settings()

    try:
        entries = load_seed_file(file)
    except SeedError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    payloads, errors = parse_seed_entries(entries)
    for index, message in errors:
        console.print(f"[yellow]Skipping entry {index}: {message}[/yellow]")

    async def run_seed():
        db = await init_db(settings.database_url)
        try:
            return await seed_database(db, payloads)
        finally:
            await db.close()

    try:
        created = asyncio.run(run_seed())
    except Exception as e:
        console.print(f"[red]Error seeding database: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Created {created} listings[/green] ({len(errors)} skipped)")


@app.callback()
def callback():
    """
    aptracker - personal apartment-hunting tracker

    Track candidate rentals, their contacts and status, and estimate
    walking and transit times to the places that matter.
    """
    setup_logging(get_settings().log_level)


def main():
    """Main entry point for CLI"""
    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()

    app()


if __name__ == "__main__":
    main()
