#!/usr/bin/env python3
"""
Command-line interface for the Data Governance Toolkit.

Provides management commands for user profiles, posts and preferences, and
for inspecting the active configuration.
"""

import logging
import sys
from typing import Any, Dict, Iterable, Optional, Tuple

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import GovernanceConfig, set_config
from .lifecycle import (
    EngagementAction,
    UserPostService,
    UserPreferencesService,
    UserProfileService,
    error_response_for,
)
from .store import PostStatus, UserRole, init_database

console = Console()


class ServiceContext:
    """Lazily opens the entity store for the invoked command."""

    def __init__(self, config: GovernanceConfig):
        self.config = config
        self._session: Any = None

    @property
    def session(self) -> Any:
        if self._session is None:
            factory = init_database(self.config.database_url, echo=self.config.sql_echo)
            self._session = factory()
        return self._session

    @property
    def users(self) -> UserProfileService:
        return UserProfileService(self.session, config=self.config)

    @property
    def posts(self) -> UserPostService:
        return UserPostService(self.session, profile_service=self.users)

    @property
    def preferences(self) -> UserPreferencesService:
        return UserPreferencesService(self.session, profile_service=self.users)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


def _fail(exc: BaseException) -> None:
    """Render an error response and exit with status 1."""
    response = error_response_for(exc)
    console.print(f"[red]Error ({response.status} {response.error}): {response.message}[/red]")
    for field_name, message in (response.validation_errors or {}).items():
        console.print(f"  [red]• {field_name}: {message}[/red]")
    sys.exit(1)


def _print_model(model: Any) -> None:
    console.print_json(model.model_dump_json())


def _parse_settings(pairs: Iterable[str]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs; values are read as YAML scalars."""
    settings: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--setting")
        key, raw = pair.split("=", 1)
        value = yaml.safe_load(raw) if raw else None
        if isinstance(value, (list, dict)):
            raise click.BadParameter(
                f"Setting '{key}' must be a scalar value", param_hint="--setting"
            )
        settings[key.strip()] = value
    return settings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--database-url", envvar="GOVERNANCE_DATABASE_URL", help="Entity store URL")
@click.option("--config-file", type=click.Path(exists=True, dir_okay=False), help="JSON or YAML config")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    database_url: Optional[str],
    config_file: Optional[str],
    verbose: bool,
) -> None:
    """Data Governance Toolkit - lifecycle management for user data."""
    try:
        if config_file:
            config = GovernanceConfig.from_file(config_file)
        else:
            config = GovernanceConfig.from_env()
    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    if database_url:
        config = config.model_copy(update={"database_url": database_url})
    set_config(config)

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    services = ServiceContext(config)
    ctx.obj = services
    ctx.call_on_close(services.close)

    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                f"[bold blue]Data Governance Toolkit[/bold blue] v{__version__}\n"
                "[dim]Lifecycle management for user data[/dim]\n\n"
                "Use [bold]governance --help[/bold] to see available commands.",
                border_style="blue",
            )
        )


# --------------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------------


@cli.group()
def config() -> None:
    """Inspect toolkit configuration."""
    pass


@config.command("show")
@click.option("--format", type=click.Choice(["table", "json", "yaml"]), default="table")
@click.pass_obj
def config_show(services: ServiceContext, format: str) -> None:
    """Display current configuration."""
    config_dict = services.config.to_dict()

    if format == "json":
        console.print_json(data=config_dict)
    elif format == "yaml":
        console.print(yaml.safe_dump(config_dict, default_flow_style=False))
    else:
        table = Table(title="Governance Configuration", show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        for setting, value in config_dict.items():
            if isinstance(value, bool):
                value = "✓" if value else "✗"
            table.add_row(setting, str(value))

        console.print(table)


@config.command("validate")
@click.pass_obj
def config_validate(services: ServiceContext) -> None:
    """Validate current configuration."""
    config = services.config
    warnings = []

    if config.hard_delete_grace_period_hours == 0:
        warnings.append("Grace period is 0 hours - soft-deleted users can be purged immediately")

    if config.database_url.startswith("sqlite") and config.environment == "production":
        warnings.append("SQLite entity store not recommended for production")

    console.print("[green]✓ Configuration is valid[/green]")

    if warnings:
        console.print("\n[yellow]⚠ Warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  [yellow]• {warning}[/yellow]")


# --------------------------------------------------------------------------
# Users
# --------------------------------------------------------------------------


@cli.group()
def users() -> None:
    """Manage user profiles."""
    pass


_ROLE_CHOICE = click.Choice([r.value for r in UserRole], case_sensitive=False)


@users.command("create")
@click.option("--username", required=True)
@click.option("--email", required=True)
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
@click.option("--role", "roles", multiple=True, type=_ROLE_CHOICE, default=("USER",), show_default=True)
@click.option("--bio")
@click.option("--profile-image-url")
@click.pass_obj
def users_create(
    services: ServiceContext,
    username: str,
    email: str,
    first_name: str,
    last_name: str,
    roles: Tuple[str, ...],
    bio: Optional[str],
    profile_image_url: Optional[str],
) -> None:
    """Create a user profile."""
    try:
        user = services.users.create_user(
            {
                "username": username,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "roles": [r.upper() for r in roles],
                "bio": bio,
                "profile_image_url": profile_image_url,
            }
        )
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] Created user {user.username} ({user.id})")


@users.command("show")
@click.argument("user_id")
@click.option("--include-deleted", is_flag=True, help="Also resolve soft-deleted users")
@click.pass_obj
def users_show(services: ServiceContext, user_id: str, include_deleted: bool) -> None:
    """Show a user profile."""
    try:
        if include_deleted:
            user = services.users.get_user_including_deleted(user_id)
        else:
            user = services.users.get_user(user_id)
    except Exception as e:
        _fail(e)
        return

    _print_model(user)


@users.command("list")
@click.pass_obj
def users_list(services: ServiceContext) -> None:
    """List every user profile, including soft-deleted ones."""
    try:
        profiles = services.users.list_all_users()
    except Exception as e:
        _fail(e)
        return

    if not profiles:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title=f"Users ({len(profiles)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Username", style="green")
    table.add_column("Email")
    table.add_column("Roles")
    table.add_column("State", style="magenta")

    for user in profiles:
        state = f"deleted {user.deleted_at:%Y-%m-%d %H:%M}" if user.deleted else "active"
        table.add_row(
            user.id,
            user.username,
            user.email,
            ", ".join(role.value for role in user.roles),
            state,
        )

    console.print(table)


@users.command("update")
@click.argument("user_id")
@click.option("--email")
@click.option("--first-name")
@click.option("--last-name")
@click.option("--role", "roles", multiple=True, type=_ROLE_CHOICE)
@click.option("--bio")
@click.option("--profile-image-url")
@click.pass_obj
def users_update(
    services: ServiceContext,
    user_id: str,
    email: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
    roles: Tuple[str, ...],
    bio: Optional[str],
    profile_image_url: Optional[str],
) -> None:
    """Update selected fields of a user profile."""
    changes: Dict[str, Any] = {
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "bio": bio,
        "profile_image_url": profile_image_url,
    }
    if roles:
        changes["roles"] = [r.upper() for r in roles]

    try:
        user = services.users.update_user(
            user_id, {k: v for k, v in changes.items() if v is not None}
        )
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] Updated user {user.username} ({user.id})")


@users.command("delete")
@click.argument("user_id")
@click.pass_obj
def users_delete(services: ServiceContext, user_id: str) -> None:
    """Soft delete a user and their posts."""
    try:
        ack = services.users.soft_delete_user(user_id)
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] {ack.message}: {ack.resource_id}")


@users.command("purge")
@click.argument("user_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def users_purge(services: ServiceContext, user_id: str, yes: bool) -> None:
    """Permanently delete a soft-deleted user, their preferences and posts."""
    if not yes:
        click.confirm(
            f"Permanently delete user {user_id} and all associated data?", abort=True
        )

    try:
        ack = services.users.hard_delete_user(user_id)
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] {ack.message}: {ack.resource_id}")


# --------------------------------------------------------------------------
# Posts
# --------------------------------------------------------------------------


@cli.group()
def posts() -> None:
    """Manage user posts."""
    pass


def _print_posts(title: str, items: Any) -> None:
    if not items:
        console.print("[yellow]No posts found[/yellow]")
        return

    table = Table(title=f"{title} ({len(items)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("User", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Status")
    table.add_column("Views/Likes/Comments")
    table.add_column("State", style="magenta")

    for post in items:
        table.add_row(
            post.id,
            post.user_id,
            post.title,
            post.status.value,
            f"{post.view_count}/{post.like_count}/{post.comment_count}",
            "deleted" if post.deleted else "active",
        )

    console.print(table)


@posts.command("create")
@click.argument("user_id")
@click.option("--title", required=True)
@click.option("--content", required=True)
@click.option("--image-url", "image_urls", multiple=True)
@click.option("--tag", "tags", multiple=True)
@click.option("--private", is_flag=True, help="Hide the post from other users")
@click.option("--status", type=click.Choice([s.value for s in PostStatus], case_sensitive=False))
@click.pass_obj
def posts_create(
    services: ServiceContext,
    user_id: str,
    title: str,
    content: str,
    image_urls: Tuple[str, ...],
    tags: Tuple[str, ...],
    private: bool,
    status: Optional[str],
) -> None:
    """Create a post for an active user."""
    request: Dict[str, Any] = {
        "title": title,
        "content": content,
        "image_urls": list(image_urls) or None,
        "tags": list(tags) or None,
        "is_public": not private,
    }
    if status:
        request["status"] = status.upper()

    try:
        post = services.posts.create_post(user_id, request)
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] Created post {post.id} for user {post.user_id}")


@posts.command("list")
@click.argument("user_id")
@click.pass_obj
def posts_list(services: ServiceContext, user_id: str) -> None:
    """List the active posts of an active user."""
    try:
        items = services.posts.get_posts_by_user(user_id)
    except Exception as e:
        _fail(e)
        return

    _print_posts("Posts", items)


@posts.command("all")
@click.pass_obj
def posts_all(services: ServiceContext) -> None:
    """List every post, including soft-deleted ones."""
    try:
        items = services.posts.get_all_posts()
    except Exception as e:
        _fail(e)
        return

    _print_posts("All posts", items)


@posts.command("show")
@click.argument("post_id")
@click.pass_obj
def posts_show(services: ServiceContext, post_id: str) -> None:
    """Show an active post."""
    try:
        post = services.posts.get_post(post_id)
    except Exception as e:
        _fail(e)
        return

    _print_model(post)


@posts.command("delete")
@click.argument("post_id")
@click.pass_obj
def posts_delete(services: ServiceContext, post_id: str) -> None:
    """Soft delete a post."""
    try:
        ack = services.posts.soft_delete_post(post_id)
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] {ack.message}: {ack.resource_id}")


@posts.command("engage")
@click.argument("post_id")
@click.argument(
    "action", type=click.Choice([a.value for a in EngagementAction], case_sensitive=False)
)
@click.pass_obj
def posts_engage(services: ServiceContext, post_id: str, action: str) -> None:
    """Record a view, like or comment event on a post."""
    try:
        post = services.posts.record_engagement(post_id, action.upper())
    except Exception as e:
        _fail(e)
        return

    console.print(
        f"[green]✓[/green] Post {post.id}: {post.view_count} views, "
        f"{post.like_count} likes, {post.comment_count} comments"
    )


# --------------------------------------------------------------------------
# Preferences
# --------------------------------------------------------------------------


@cli.group()
def preferences() -> None:
    """Manage user preferences."""
    pass


@preferences.command("show")
@click.argument("user_id")
@click.pass_obj
def preferences_show(services: ServiceContext, user_id: str) -> None:
    """Show the preferences of an active user."""
    try:
        prefs = services.preferences.get_preferences(user_id)
    except Exception as e:
        _fail(e)
        return

    _print_model(prefs)


@preferences.command("set")
@click.argument("user_id")
@click.option("--theme")
@click.option("--language")
@click.option("--email-notifications/--no-email-notifications", default=None)
@click.option("--push-notifications/--no-push-notifications", default=None)
@click.option("--sms-notifications/--no-sms-notifications", default=None)
@click.option("--profile-visible/--profile-hidden", default=None)
@click.option("--show-email/--hide-email", default=None)
@click.option("--show-last-seen/--hide-last-seen", default=None)
@click.option("--content-filter")
@click.option("--setting", "settings", multiple=True, help="Custom setting as key=value")
@click.pass_obj
def preferences_set(
    services: ServiceContext,
    user_id: str,
    settings: Tuple[str, ...],
    **fields: Any,
) -> None:
    """Update selected preferences of an active user."""
    request: Dict[str, Any] = {k: v for k, v in fields.items() if v is not None}
    if settings:
        request["custom_settings"] = _parse_settings(settings)

    try:
        prefs = services.preferences.update_preferences(user_id, request)
    except Exception as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] Preferences updated for user {prefs.user_id}")


if __name__ == "__main__":
    cli()
