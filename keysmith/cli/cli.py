"""Command-line interface for Keysmith."""

import sys
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape

from keysmith import __version__
from keysmith.auth.wizard import run_auth_wizard
from keysmith.core.config import ConfigManager, ProviderConfig, config_manager
from keysmith.core.errors import KeysmithError
from keysmith.utils.log import default_log_dir, get_logger, init_logger

console = Console()
logger = get_logger()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    sys.exit(1)


def _manager(ctx: click.Context) -> ConfigManager:
    return ctx.obj.get("config_manager") or config_manager


def _describe(provider: ProviderConfig, active_id: str) -> str:
    marker = "[cyan]→[/cyan]" if provider.id == active_id else " "
    model = escape(provider.selected_model) if provider.selected_model else "[dim]default model[/dim]"
    return f"  {marker} [bold]{escape(provider.id)}[/bold] ({escape(provider.provider)}) {model}"


@click.group()
@click.version_option(version=__version__, prog_name="keysmith")
@click.option("--debug", is_flag=True, help="Write debug logs to the Keysmith log directory")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Configure AI provider credentials and models."""
    ctx.ensure_object(dict)
    if debug:
        init_logger(default_log_dir())


@cli.command(name="auth")
@click.option("--add", "append", is_flag=True, help="Add a provider instead of replacing the configuration")
@click.option(
    "--activate/--no-activate",
    default=False,
    help="Make the added provider the default one",
)
@click.pass_context
def auth_cmd(ctx: click.Context, append: bool, activate: bool) -> None:
    """Authenticate a provider and choose its model"""
    manager = _manager(ctx)
    try:
        provider_config = run_auth_wizard(append_to_existing=append, config_manager=manager)
        if provider_config is None or not append:
            return
        manager.add_provider(provider_config, activate=activate)
    except KeysmithError as exc:
        logger.warning(
            "[cli] Auth command failed: %s: %s",
            type(exc).__name__,
            exc,
            extra={"error_code": exc.error_code},
        )
        _fail(str(exc))
    console.print(f"\n[green]✓ Added provider '{escape(provider_config.id)}'.[/green]\n")


@cli.group(name="providers")
def providers_group() -> None:
    """Inspect and manage configured providers"""


@providers_group.command(name="list")
@click.pass_context
def providers_list_cmd(ctx: click.Context) -> None:
    """List configured providers"""
    try:
        loaded = _manager(ctx).load()
    except KeysmithError as exc:
        _fail(str(exc))

    config = loaded.config
    if not config.providers:
        console.print("No providers configured. Run [bold]keysmith auth[/bold] to add one.")
        return
    console.print(f"\n[bold]Providers[/bold] [dim]({escape(str(loaded.path))})[/dim]\n")
    for provider in config.providers:
        console.print(_describe(provider, config.provider))
    console.print()


@providers_group.command(name="remove")
@click.argument("provider_id")
@click.pass_context
def providers_remove_cmd(ctx: click.Context, provider_id: str) -> None:
    """Remove a configured provider"""
    try:
        config = _manager(ctx).remove_provider(provider_id)
    except KeyError:
        _fail(f"Provider '{provider_id}' does not exist.")
    except KeysmithError as exc:
        _fail(str(exc))
    console.print(f"Removed provider '{escape(provider_id)}'.")
    if config.providers:
        console.print(f"Default provider: {escape(config.provider)}")


@providers_group.command(name="use")
@click.argument("provider_id")
@click.pass_context
def providers_use_cmd(ctx: click.Context, provider_id: str) -> None:
    """Make a configured provider the default"""
    try:
        _manager(ctx).set_active_provider(provider_id)
    except KeyError:
        _fail(f"Provider '{provider_id}' does not exist.")
    except KeysmithError as exc:
        _fail(str(exc))
    console.print(f"Default provider set to '{escape(provider_id)}'.")


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    try:
        cli.main(args=argv, prog_name="keysmith", standalone_mode=True)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
