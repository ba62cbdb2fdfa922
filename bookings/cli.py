"""Booking back-office CLI."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="bookings",
    help="Booking calendar administration tools",
    no_args_is_help=True,
)
console = Console()


async def _seed_defaults() -> int:
    from .app import setup_logging
    from .database import async_session_factory, engine
    from .models import Base
    from .services import hours_svc

    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session_factory() as db:
        return await hours_svc.seed_defaults(db)


@app.command("seed-defaults")
def seed_defaults():
    """Create the seven weekday default schedules if they are missing."""
    created = asyncio.run(_seed_defaults())
    if created:
        console.print(f"[green]Created {created} weekday default(s).[/green]")
    else:
        console.print("[dim]All weekday defaults already exist.[/dim]")


async def _load_week(anchor: date, service: str | None):
    from sqlalchemy import select

    from .config import settings
    from .database import async_session_factory
    from .models.booking import BookingService
    from .services.navigation import CalendarController, CalendarNavigator
    from .services.store import SqlCalendarStore

    slug = service or settings.default_service_slug
    async with async_session_factory() as db:
        stmt = select(BookingService).where(BookingService.slug == slug)
        booking_service = (await db.execute(stmt)).scalar_one_or_none()
    if service and booking_service is None:
        raise typer.BadParameter(f"Unknown service '{service}'", param_hint="--service")

    controller = CalendarController(
        SqlCalendarStore(async_session_factory),
        CalendarNavigator(anchor),
        service_id=booking_service.id if booking_service else None,
        timeout=settings.store_timeout_seconds,
        auto_refresh=False,
    )
    try:
        return await controller.refresh()
    finally:
        controller.close()


@app.command()
def week(
    day: Optional[str] = typer.Argument(None, help="Any date in the week (YYYY-MM-DD); defaults to today"),
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Booking service slug"),
):
    """Show the resolved working hours and bookings for a week."""
    from .services.week_svc import WindowLoadError

    try:
        anchor = date.fromisoformat(day) if day else date.today()
    except ValueError:
        raise typer.BadParameter("Use YYYY-MM-DD", param_hint="DATE")

    try:
        view = asyncio.run(_load_week(anchor, service))
    except WindowLoadError as e:
        console.print(Panel(f"[red]{e}[/red]", title="Calendar"))
        raise typer.Exit(1)

    hours_table = Table(title=f"Week of {view.week.window.start_date.isoformat()}")
    hours_table.add_column("Day", style="cyan")
    hours_table.add_column("Hours")
    hours_table.add_column("Bookings", justify="right")
    for index, resolved in enumerate(view.week.hours):
        if resolved.is_holiday:
            hours = "[red]Holiday[/red]"
        elif resolved.is_inactive:
            hours = "[dim]Closed[/dim]"
        else:
            hours = f"{resolved.open_hour:02d}:00-{resolved.close_hour:02d}:00"
            if resolved.is_fallback:
                hours += " [yellow](unavailable, shown open)[/yellow]"
        count = sum(len(view.grid.cell(h, index)) for h in view.grid.rows)
        hours_table.add_row(resolved.date.strftime("%a %d %b"), hours, str(count))
    console.print(hours_table)

    visible = view.week.visible_range
    if visible is None:
        console.print("[yellow]No working hours this week.[/yellow]")
    else:
        console.print(f"Visible hours: {visible.min_hour:02d}:00-{visible.max_hour:02d}:00")

    if view.appointments:
        bookings_table = Table(title="Bookings")
        bookings_table.add_column("Reference", style="cyan")
        bookings_table.add_column("Date")
        bookings_table.add_column("Start")
        bookings_table.add_column("Name")
        bookings_table.add_column("Status", style="green")
        for appt in view.appointments:
            bookings_table.add_row(
                appt.reference,
                appt.date.isoformat(),
                appt.start_time.strftime("%H:%M"),
                appt.name_en,
                appt.status,
            )
        console.print(bookings_table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8030, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the back-office web app."""
    import uvicorn

    uvicorn.run("bookings.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
