"""Admin CLI for TaskLinks."""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sqlalchemy import select

from tasklinks.access import Principal
from tasklinks.config import get_settings
from tasklinks.database import close_db, get_async_session_maker, init_db
from tasklinks.errors import IdentityExistsError, ValidationFailedError
from tasklinks.logging_config import configure_logging
from tasklinks.models import Identity, Profile
from tasklinks.services.identity_service import IdentityService
from tasklinks.services.provisioning import ProvisioningService
from tasklinks.services.stats_service import StatsService

app = typer.Typer(
    name="tasklinks",
    help="TaskLinks - task management backend administration.",
    no_args_is_help=True,
)
console = Console()


def run_async(coro):
    """Run async function in sync context."""

    async def _run():
        try:
            return await coro
        finally:
            await close_db()

    return asyncio.run(_run())


async def ensure_db():
    """Ensure database is initialized."""
    await init_db()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


@app.command("init-db")
def init_database():
    """Create all tables."""
    run_async(ensure_db())
    console.print(f"[green]Database ready:[/green] {get_settings().database_url}")


@app.command()
def signup(
    email: str = typer.Argument(..., help="Email address"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    name: str = typer.Option("", "--name", "-n", help="Full name"),
):
    """Register a new identity and provision it."""

    async def _signup():
        await ensure_db()
        async with get_async_session_maker()() as session:
            service = IdentityService(session)
            try:
                identity = await service.create_identity(email, password, name)
            except IdentityExistsError as e:
                console.print(f"[red]{e.message}: {email}[/red]")
                raise typer.Exit(1)
            except ValidationFailedError as e:
                console.print(f"[red]{e.message}[/red]")
                raise typer.Exit(1)
            await session.commit()

            profile = await session.get(Profile, identity.id)
            status = (
                "[green]provisioned[/green]"
                if profile
                else "[yellow]profile missing, run repair-profiles[/yellow]"
            )
            console.print(Panel(
                f"[green]Created:[/green] {identity.email}\n"
                f"Profile: {status}\n"
                f"[dim]ID: {identity.id}[/dim]",
                title="Identity Added",
            ))

    run_async(_signup())


@app.command("repair-profiles")
def repair_profiles():
    """Create the missing profile of every identity. Safe to re-run."""

    async def _repair():
        await ensure_db()
        async with get_async_session_maker()() as session:
            result = await session.execute(
                select(Identity)
                .outerjoin(Profile, Profile.id == Identity.id)
                .where(Profile.id.is_(None))
                .order_by(Identity.created_at)
            )
            orphans = list(result.scalars())
            if not orphans:
                console.print("[dim]Every identity has a profile.[/dim]")
                return

            service = ProvisioningService(
                session, anon_read_grants=get_settings().anon_read_grants
            )
            principal = Principal.service()
            for identity in orphans:
                await service.ensure_profile(
                    principal, identity.id, identity.email, identity.full_name
                )
                console.print(f"[green]Repaired:[/green] {identity.email}")
            await session.commit()

            console.print(f"{len(orphans)} profile(s) created")

    run_async(_repair())


@app.command()
def stats(
    email: str = typer.Argument(..., help="Email of the identity"),
):
    """Show task statistics for one user."""

    async def _stats():
        await ensure_db()
        async with get_async_session_maker()() as session:
            identity = await IdentityService(session).get_by_email(email)
            if not identity:
                console.print(f"[red]Identity not found: {email}[/red]")
                raise typer.Exit(1)

            service = StatsService(
                session,
                Principal.user(identity.id),
                anon_read_grants=get_settings().anon_read_grants,
            )
            task_stats = await service.task_statistics(identity.id)
            category_stats = await service.category_statistics(identity.id)

            summary = Table(title=f"Tasks for {identity.email}")
            summary.add_column("Total", justify="right")
            summary.add_column("Pending", justify="right")
            summary.add_column("In progress", justify="right")
            summary.add_column("Completed", justify="right", style="green")
            summary.add_column("Overdue", justify="right", style="red")
            summary.add_column("Done %", justify="right")
            summary.add_row(
                str(task_stats.total),
                str(task_stats.pending),
                str(task_stats.in_progress),
                str(task_stats.completed),
                str(task_stats.overdue),
                str(task_stats.completion_rate),
            )
            console.print(summary)

            if not category_stats:
                console.print("[dim]No categories found.[/dim]")
                return

            table = Table(title="Categories")
            table.add_column("Name", style="bold")
            table.add_column("Tasks", justify="right")
            table.add_column("Completed", justify="right", style="green")
            table.add_column("Pending", justify="right")
            for c in category_stats:
                table.add_row(
                    c.name,
                    str(c.task_count),
                    str(c.completed_count),
                    str(c.pending_count),
                )
            console.print(table)

    run_async(_stats())


@app.command()
def server(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
):
    """Start the API server."""
    import uvicorn

    console.print(f"[green]Starting TaskLinks server at http://{host}:{port}[/green]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run(
        "tasklinks.main:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    app()
