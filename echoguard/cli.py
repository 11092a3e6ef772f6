"""echoguard CLI: administer login-context trust and content moderation."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from echoguard import __version__
from echoguard.errors import EchoguardError

console = Console()


class _Obj:
    """Lazily built services shared by every subcommand."""

    def __init__(self, config_path: str | None) -> None:
        self.config_path = config_path
        self._services = None

    @property
    def services(self):
        if self._services is None:
            from echoguard.config import load_settings
            from echoguard.logging_setup import setup_logging
            from echoguard.services import build_services

            settings = load_settings(self.config_path)
            setup_logging(settings.log_level)
            self._services = build_services(settings)
        return self._services


def _fail(error: EchoguardError) -> None:
    console.print(f"[red]{error.code}:[/] {error.message}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="Path to a settings YAML file")
@click.pass_context
def main(ctx: click.Context, config_path: str | None):
    """echoguard: contextual login trust and content moderation.

    Inspect and edit the moderation config, screen text against the live
    policy, and manage suspicious login contexts.
    """
    ctx.obj = _Obj(config_path)


# ── Config ───────────────────────────────────────────────────────────


@main.group()
def config():
    """Show or change the moderation configuration."""


@config.command(name="show")
@click.pass_obj
def config_show(obj: _Obj):
    """Print the current moderation configuration."""
    cfg = obj.services.config.get()
    table = Table(title="Moderation config")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in cfg.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@config.command(name="set")
@click.option("--perspective/--no-perspective", default=None, help="Toggle toxicity scoring")
@click.option("--provider", default=None, help="Category filter provider identifier")
@click.option("--timeout", "timeout_ms", type=int, default=None, help="Provider request timeout (ms)")
@click.pass_obj
def config_set(obj: _Obj, perspective: bool | None, provider: str | None, timeout_ms: int | None):
    """Update the moderation configuration (last write wins)."""
    changes: dict = {}
    if perspective is not None:
        changes["use_perspective_api"] = perspective
    if provider is not None:
        changes["category_filtering_service_provider"] = provider
    if timeout_ms is not None:
        changes["category_filtering_request_timeout"] = timeout_ms
    if not changes:
        console.print("[yellow]Nothing to change.[/]")
        return
    try:
        cfg = obj.services.config.update(**changes)
    except EchoguardError as e:
        _fail(e)
        return
    console.print(f"[green]Updated[/] at {cfg.updated_at}")


# ── Content ──────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.pass_obj
def screen(obj: _Obj, text: str):
    """Run TEXT through the moderation gate."""
    try:
        result = obj.services.gate.screen(text)
    except EchoguardError as e:
        _fail(e)
        return

    if result.accepted:
        note = " (classifier unavailable, failed open)" if result.failed_open else ""
        console.print(f"[green]ACCEPT[/]{note}")
    else:
        console.print(f"[red]REJECT[/] {result.rejection_type}: {result.reason}")
    for attr, score in sorted(result.scores.items()):
        console.print(f"  {attr:<18} {score:.2f}")


@main.command()
@click.argument("text")
@click.option("--timeout", "timeout_ms", type=int, default=None, help="Override the request timeout (ms)")
@click.pass_obj
def categorize(obj: _Obj, text: str, timeout_ms: int | None):
    """Tag TEXT with categories from the configured provider."""
    try:
        categories = obj.services.gate.categorize(text, timeout_ms)
    except EchoguardError as e:
        _fail(e)
        return

    if not categories:
        console.print("[yellow]No categories returned.[/]")
        return
    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Score", justify="right", style="green")
    for name, score in sorted(categories.items(), key=lambda kv: kv[1], reverse=True):
        table.add_row(name, f"{score:.2f}")
    console.print(table)


# ── Suspicious logins ────────────────────────────────────────────────


@main.group()
def suspicious():
    """Manage suspicious login contexts."""


@suspicious.command(name="list")
@click.argument("user")
@click.option("--blocked-only", is_flag=True, help="Only show blocked contexts")
@click.pass_obj
def suspicious_list(obj: _Obj, user: str, blocked_only: bool):
    """List suspicious logins recorded for USER."""
    trust = obj.services.trust
    records = trust.blocked_logins(user) if blocked_only else trust.suspicious_logins(user)
    if not records:
        console.print("[yellow]No suspicious logins.[/]")
        return

    table = Table(title=f"Suspicious logins for {user} ({len(records)})")
    table.add_column("ID", style="dim")
    table.add_column("Browser", style="cyan")
    table.add_column("OS")
    table.add_column("Device")
    table.add_column("IP")
    table.add_column("Attempts", justify="right")
    table.add_column("Blocked", justify="center")
    for r in records:
        fp = r.fingerprint
        blocked = "[red]Y[/]" if r.is_blocked else "[green]N[/]"
        table.add_row(r.id, fp.browser, fp.os, fp.device_type, fp.ip, str(r.unverified_attempts), blocked)
    console.print(table)


@suspicious.command(name="block")
@click.argument("record_id")
@click.pass_obj
def suspicious_block(obj: _Obj, record_id: str):
    """Block a suspicious login."""
    try:
        obj.services.trust.block(record_id)
    except EchoguardError as e:
        _fail(e)
        return
    console.print("[green]Blocked successfully[/]")


@suspicious.command(name="unblock")
@click.argument("record_id")
@click.pass_obj
def suspicious_unblock(obj: _Obj, record_id: str):
    """Unblock a suspicious login (its attempt counter is kept)."""
    try:
        obj.services.trust.unblock(record_id)
    except EchoguardError as e:
        _fail(e)
        return
    console.print("[green]Unblocked successfully[/]")


@suspicious.command(name="trust")
@click.argument("record_id")
@click.pass_obj
def suspicious_trust(obj: _Obj, record_id: str):
    """Promote a suspicious login into a trusted context."""
    try:
        context = obj.services.trust.trust(record_id)
    except EchoguardError as e:
        _fail(e)
        return
    console.print(f"[green]Trusted[/] as context {context.id}")


# ── Reports ──────────────────────────────────────────────────────────


@main.group()
def reports():
    """Inspect post reports."""


@reports.command(name="list")
@click.argument("community")
@click.pass_obj
def reports_list(obj: _Obj, community: str):
    """List reported posts in COMMUNITY."""
    items = obj.services.reports.reported_posts(community)
    if not items:
        console.print("[yellow]No reported posts.[/]")
        return

    table = Table(title=f"Reported posts in {community} ({len(items)})")
    table.add_column("Post", style="cyan")
    table.add_column("Reporters", justify="right")
    table.add_column("Reason")
    table.add_column("Created")
    for r in items:
        table.add_row(r.post, str(len(r.reported_by)), r.report_reason[:50], r.created_at)
    console.print(table)


# ── Communities ──────────────────────────────────────────────────────


@main.group()
def communities():
    """Ban or unban users from a community."""


def _print_banned(community: str, banned: list[str]) -> None:
    if not banned:
        console.print(f"[yellow]No banned users in {community}.[/]")
        return
    console.print(f"Banned in {community}: " + ", ".join(banned))


@communities.command(name="ban")
@click.argument("community")
@click.argument("user")
@click.pass_obj
def communities_ban(obj: _Obj, community: str, user: str):
    """Ban USER from COMMUNITY."""
    try:
        banned = obj.services.communities.ban(community, user)
    except EchoguardError as e:
        _fail(e)
        return
    console.print(f"[green]Banned[/] {user}")
    _print_banned(community, banned)


@communities.command(name="unban")
@click.argument("community")
@click.argument("user")
@click.pass_obj
def communities_unban(obj: _Obj, community: str, user: str):
    """Lift USER's ban from COMMUNITY."""
    try:
        banned = obj.services.communities.unban(community, user)
    except EchoguardError as e:
        _fail(e)
        return
    console.print(f"[green]Unbanned[/] {user}")
    _print_banned(community, banned)


@communities.command(name="banned")
@click.argument("community")
@click.pass_obj
def communities_banned(obj: _Obj, community: str):
    """List users banned from COMMUNITY."""
    _print_banned(community, obj.services.communities.banned_users(community))


if __name__ == "__main__":
    main()
