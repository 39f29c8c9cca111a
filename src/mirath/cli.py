"""Mirath CLI: inspect the role table from the command line."""

import typer
from rich.console import Console
from rich.table import Table

from mirath import __version__
from mirath.core.permissions.roles import (
    DEFAULT_ROLE_TABLE,
    Permission,
    Role,
    parse_permission,
)


console = Console()

app = typer.Typer(
    name="mirath",
    help="Inspect Mirath roles and permissions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _parse_role(value: str) -> Role:
    try:
        return Role(value)
    except ValueError:
        choices = ", ".join(role.value for role in Role)
        console.print(f"[red]Error:[/red] Unknown role '{value}'. Choose from: {choices}")
        raise typer.Exit(2) from None


@app.command(name="roles")
def list_roles() -> None:
    """List every role with its rank and number of base permissions."""
    table = Table(title="Roles", show_header=True)
    table.add_column("Rank", style="green", justify="right", no_wrap=True)
    table.add_column("Role", style="cyan", no_wrap=True)
    table.add_column("Permissions", justify="right", no_wrap=True)

    for descriptor in DEFAULT_ROLE_TABLE.descriptors():
        table.add_row(
            str(descriptor.rank),
            descriptor.role.value,
            str(len(descriptor.base_permissions)),
        )

    console.print()
    console.print(table)
    console.print()


@app.command(name="role-permissions")
def role_permissions(
    role: str = typer.Argument(..., help="Role name, e.g. senior_lawyer"),
) -> None:
    """List the base permissions of one role."""
    parsed = _parse_role(role)
    permissions = sorted(DEFAULT_ROLE_TABLE.permissions_for(parsed))

    console.print(f"[bold cyan]{parsed.value}[/bold cyan] ({len(permissions)} permissions)")
    for permission in permissions:
        console.print(f"  {permission.value}")


@app.command(name="check")
def check(
    role: str = typer.Argument(..., help="Role name"),
    permissions: list[str] = typer.Argument(..., help="Permission tags, e.g. will:finalize"),
) -> None:
    """Check whether a role holds every given permission.

    Exits with 0 when all are held and 1 otherwise.
    """
    parsed_role = _parse_role(role)

    requested: list[Permission] = []
    for value in permissions:
        permission = parse_permission(value)
        if permission is None:
            console.print(f"[red]Error:[/red] Unknown permission '{value}'")
            raise typer.Exit(2)
        requested.append(permission)

    held = DEFAULT_ROLE_TABLE.permissions_for(parsed_role)
    missing = [p for p in requested if p not in held]

    if missing:
        console.print(
            f"[red]denied[/red] {parsed_role.value} lacks: "
            + ", ".join(p.value for p in missing)
        )
        raise typer.Exit(1)

    console.print(f"[green]granted[/green] {parsed_role.value} holds all requested permissions")


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """Mirath CLI - inspect roles and permissions."""
    if version:
        console.print(f"[bold cyan]mirath[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
