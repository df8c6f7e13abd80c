"""Command group: shopgrid tenants - Provision and manage tenants."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from shopgrid.config import settings
from shopgrid.core.database.session import async_engine, async_session_factory
from shopgrid.core.errors import AppException
from shopgrid.core.utils.text import generate_slug, storefront_host_for
from shopgrid.modules.tenants.models import Tenant, TenantStatus
from shopgrid.modules.tenants.repos import TenantRepository
from shopgrid.modules.tenants.schemas import SortOrder, TenantUpdate
from shopgrid.modules.tenants.services import TenantService


T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Provision and manage tenants.",
    no_args_is_help=True,
)

STATUS_STYLES = {
    TenantStatus.ACTIVE: "green",
    TenantStatus.BLOCKED: "red",
    TenantStatus.PENDING: "yellow",
}


async def _with_service(action: Callable[[TenantService], Awaitable[T]]) -> T:
    """Run an action against a tenant service on a fresh session."""
    try:
        async with async_session_factory() as session:
            service = TenantService(TenantRepository(session))
            result = await action(service)
            await session.commit()
            return result
    finally:
        # Each command runs its own event loop; pooled connections cannot outlive it
        await async_engine.dispose()


def run_with_service(action: Callable[[TenantService], Awaitable[T]]) -> T:
    """Run an action and turn domain errors into a non-zero exit."""
    try:
        return asyncio.run(_with_service(action))
    except AppException as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc.message}")
        raise typer.Exit(code=1) from exc


def _status_label(status: TenantStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def _print_tenant(tenant: Tenant) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("ID", str(tenant.id))
    table.add_row("Slug", tenant.slug)
    table.add_row("Name", tenant.name)
    table.add_row("Status", _status_label(tenant.status))
    table.add_row("Partition", tenant.partition_name)
    table.add_row("Storefront", f"https://{storefront_host_for(tenant.slug, settings.root_domain)}")
    table.add_row("Created", f"{tenant.created_at:%Y-%m-%d %H:%M:%S}")
    console.print(table)


@app.command(name="create")
def create_tenant(
    slug: str | None = typer.Argument(
        None,
        help="Tenant slug (lowercase letters, digits, hyphens); derived from --name if omitted",
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Provision a tenant and build its partition."""
    if not slug and not name:
        err_console.print("[bold red]Error:[/bold red] Provide a slug or --name")
        raise typer.Exit(code=1)
    tenant_slug = slug or generate_slug(name or "")

    provisioned = run_with_service(lambda service: service.provision_tenant(tenant_slug, name))

    console.print(f"[green]✓[/green] Provisioned tenant [cyan]{provisioned.slug}[/cyan]")
    console.print(f"  ID:         {provisioned.id}")
    console.print(f"  Partition:  {provisioned.partition_name}")
    console.print(
        f"  Storefront: https://{storefront_host_for(provisioned.slug, settings.root_domain)}"
    )


@app.command(name="list")
def list_tenants(
    status: TenantStatus | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    order: SortOrder = typer.Option(SortOrder.DESC, "--order", help="Creation time ordering"),
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    page_size: int = typer.Option(50, "--page-size", min=1, max=100, help="Items per page"),
) -> None:
    """List tenants."""
    tenants, total = run_with_service(
        lambda service: service.list_tenants(status, order, page, page_size)
    )

    if not tenants:
        console.print("[yellow]No tenants found.[/yellow]")
        return

    table = Table(title=f"Tenants ({total})", show_header=True)
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status", no_wrap=True)
    table.add_column("Partition", style="dim", no_wrap=True)
    table.add_column("Created", no_wrap=True)

    for tenant in tenants:
        table.add_row(
            tenant.slug,
            tenant.name,
            _status_label(tenant.status),
            tenant.partition_name,
            f"{tenant.created_at:%Y-%m-%d}",
        )

    console.print()
    console.print(table)
    console.print()


@app.command(name="show")
def show_tenant(
    slug: str = typer.Argument(..., help="Tenant slug"),
) -> None:
    """Show one tenant."""
    tenant = run_with_service(lambda service: service.get_tenant(slug))
    _print_tenant(tenant)


@app.command(name="status")
def set_status(
    slug: str = typer.Argument(..., help="Tenant slug"),
    status: TenantStatus = typer.Argument(..., help="New status"),
) -> None:
    """Change a tenant's status (block or reactivate a storefront)."""
    tenant = run_with_service(
        lambda service: service.update_tenant(slug, TenantUpdate(status=status))
    )
    label = _status_label(tenant.status)
    console.print(f"[green]✓[/green] Tenant [cyan]{tenant.slug}[/cyan] is now {label}")


@app.command(name="delete")
def delete_tenant(
    slug: str = typer.Argument(..., help="Tenant slug"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete a tenant and drop its partition with all data."""
    if not yes:
        typer.confirm(
            f"Delete tenant '{slug}' and all of its data?",
            abort=True,
        )

    run_with_service(lambda service: service.delete_tenant(slug))
    console.print(f"[green]✓[/green] Deleted tenant [cyan]{slug}[/cyan]")
