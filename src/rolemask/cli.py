from __future__ import annotations

import logging
from typing import Optional

import typer

from rolemask import __version__
from rolemask.config import get_settings
from rolemask.exceptions import InvariantViolation, RoleMaskError

app = typer.Typer(add_completion=False, help="Role permission bookkeeping CLI")


@app.callback()
def _root() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def version() -> None:
    typer.echo(__version__)


def _print_report(report) -> None:
    for name in report.pruned_roles:
        typer.echo(f"Pruned stale resources from role: {name}")
    if report.system_role is None:
        typer.echo("No system role found; necessary resources not checked")
    elif report.repaired:
        typer.echo(
            f"Granted {report.repaired} necessary resources to system role: {report.system_role}"
        )
    if not report.changed:
        typer.echo("Roles are consistent")


@app.command()
def init() -> None:
    """
    Create tables (create_all mode), ensure a system role exists and repair
    role permissions against the resource table.
    """
    from rolemask.database import get_db_session, init_db
    from rolemask.security.rbac.consistency import initialize_roles
    from rolemask.security.rbac.registry import DatabaseResourceRegistry
    from rolemask.security.rbac.service import RoleService

    try:
        init_db(create_tables=True)
        with get_db_session() as session:
            report = initialize_roles(RoleService(session), DatabaseResourceRegistry(session))
    except RoleMaskError as exc:
        typer.echo(f"Error: {exc.user_message}", err=True)
        raise typer.Exit(1)
    _print_report(report)


@app.command()
def check() -> None:
    """Prune stale resource permissions and repair necessary-resource access."""
    from rolemask.database import get_db_session
    from rolemask.security.rbac.consistency import ConsistencyChecker
    from rolemask.security.rbac.registry import DatabaseResourceRegistry
    from rolemask.security.rbac.service import RoleService

    with get_db_session() as session:
        report = ConsistencyChecker(
            RoleService(session), DatabaseResourceRegistry(session)
        ).run()
    _print_report(report)


@app.command()
def roles() -> None:
    """List roles with their encoded permissions."""
    from rolemask.database import get_db_session
    from rolemask.security.rbac.service import RoleService

    with get_db_session() as session:
        for role in RoleService(session).find_all():
            marker = " [system]" if role.is_system else ""
            typer.echo(f"{role.id}\t{role.name}{marker}\t{role.permission or ''}")


def _load_role(service, name: str):
    role = service.store.find_by_name(name)
    if role is None:
        typer.echo(f"Error: role not found: {name}", err=True)
        raise typer.Exit(1)
    return role


@app.command()
def grant(
    role_name: str = typer.Argument(..., help="Role name"),
    resource_id: int = typer.Argument(..., help="Resource id"),
    flags: str = typer.Option("all", "--flags", "-f", help="e.g. all | insert,update | 6"),
) -> None:
    """Add operation flags on a resource to a role (never revokes)."""
    from rolemask.database import get_db_session
    from rolemask.security.rbac.permission_set import parse_flags
    from rolemask.security.rbac.registry import DatabaseResourceRegistry
    from rolemask.security.rbac.service import RoleService

    try:
        flag = parse_flags(flags)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    with get_db_session() as session:
        service = RoleService(session, registry=DatabaseResourceRegistry(session))
        role = _load_role(service, role_name)
        role.set(resource_id, flag)
        service.save(role)
        typer.echo(f"{role.name}: {role.permission or ''}")
        granted = role.has(resource_id)
    if not granted:
        typer.echo(f"Error: resource {resource_id} is not an active resource", err=True)
        raise typer.Exit(1)


@app.command()
def revoke(
    role_name: str = typer.Argument(..., help="Role name"),
    resource_id: int = typer.Argument(..., help="Resource id"),
) -> None:
    """Remove a resource from a role."""
    from rolemask.database import get_db_session
    from rolemask.security.rbac.registry import DatabaseResourceRegistry
    from rolemask.security.rbac.service import RoleService

    with get_db_session() as session:
        service = RoleService(session, registry=DatabaseResourceRegistry(session))
        role = _load_role(service, role_name)
        role.remove(resource_id)
        service.save(role)
        typer.echo(f"{role.name}: {role.permission or ''}")


@app.command()
def delete(role_name: str = typer.Argument(..., help="Role name")) -> None:
    """Delete a role unless it is the last one or a system role."""
    from rolemask.database import get_db_session
    from rolemask.security.rbac.service import RoleService

    refused: Optional[InvariantViolation] = None
    with get_db_session() as session:
        service = RoleService(session)
        role = _load_role(service, role_name)
        try:
            service.delete(role)
        except InvariantViolation as exc:
            # keep the audit entry for the refusal
            session.commit()
            refused = exc
    if refused is not None:
        typer.echo(f"Error: {refused.user_message}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Deleted role: {role_name}")


@app.command("db")
def db_command(
    action: str = typer.Argument(
        ..., help="upgrade|downgrade|revision|current|history"
    ),
    message: Optional[str] = typer.Option(
        None, "--message", "-m", help="Migration message (for revision)"
    ),
    autogenerate: bool = typer.Option(
        True, "--autogenerate/--no-autogenerate", help="Autogenerate migration"
    ),
    revision: Optional[str] = typer.Option(
        None, "--revision", "-r", help="Target revision (for upgrade/downgrade)"
    ),
) -> None:
    """
    Database migrations via Alembic.

    Actions:
      upgrade   - Apply migrations (default: head)
      downgrade - Revert migrations
      revision  - Create new migration
      current   - Show current revision
      history   - Show migration history
    """
    import os
    import subprocess
    import sys

    alembic_ini = os.path.join(os.getcwd(), "alembic.ini")
    if not os.path.exists(alembic_ini):
        typer.echo("Error: alembic.ini not found", err=True)
        raise typer.Exit(1)

    cmd = [sys.executable, "-m", "alembic", "-c", alembic_ini]

    if action == "upgrade":
        cmd.extend(["upgrade", revision or "head"])
    elif action == "downgrade":
        cmd.extend(["downgrade", revision or "-1"])
    elif action == "revision":
        cmd.append("revision")
        if autogenerate:
            cmd.append("--autogenerate")
        cmd.extend(["-m", message or "auto migration"])
    elif action in {"current", "history"}:
        cmd.append(action)
    else:
        typer.echo(f"Unknown action: {action}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Running: {' '.join(cmd)}", err=True)
    result = subprocess.run(cmd, cwd=os.getcwd())
    raise typer.Exit(result.returncode)


def main() -> None:
    app()
