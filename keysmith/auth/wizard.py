"""Interactive wizard that authenticates a provider and stores its configuration."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Callable, List, Optional

from rich.console import Console

from keysmith.auth.registry import AUTH_PROVIDERS, AuthProviderRegistry
from keysmith.cli.ui.choice import SelectChoice, prompt_select
from keysmith.core.config import CLIConfig, ConfigManager, ProviderConfig, config_manager
from keysmith.core.errors import AuthenticationFailed, UserCancelled
from keysmith.core.identifiers import allocate_provider_id
from keysmith.core.model_catalog import (
    RouterModelsFetcher,
    provider_supports_model_list,
    resolve_models,
    sort_models_by_preference,
)
from keysmith.utils.log import get_logger

logger = get_logger()

MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 20
MODEL_PAGE_SIZE = 10

SelectFn = Callable[..., Any]


class WizardState(str, Enum):
    SELECTING_PROVIDER = "selecting_provider"
    AUTHENTICATING = "authenticating"
    RESOLVING_MODELS = "resolving_models"
    SELECTING_MODEL = "selecting_model"
    ALLOCATING_ID = "allocating_id"
    PERSISTING = "persisting"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


def provider_page_size(rows: Optional[int]) -> int:
    """Menu height for the provider list given the terminal height."""
    if not rows:
        return MIN_PAGE_SIZE
    return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, rows - 2))


def _terminal_rows() -> Optional[int]:
    try:
        return os.get_terminal_size().lines
    except OSError:
        return None


class AuthWizard:
    """Runs provider selection, authentication, model choice and persistence.

    Collaborators are injectable so the flow can run without a terminal or
    network. Nothing is written to disk unless the wizard reaches
    ``PERSISTING`` in replace mode.
    """

    def __init__(
        self,
        *,
        registry: Optional[AuthProviderRegistry] = None,
        config_manager: Optional[ConfigManager] = None,
        select: Optional[SelectFn] = None,
        fetcher: Optional[RouterModelsFetcher] = None,
        console: Optional[Console] = None,
        terminal_rows: Optional[Callable[[], Optional[int]]] = None,
    ) -> None:
        self.registry = registry or AUTH_PROVIDERS
        self.config_manager = config_manager or _default_config_manager()
        self.select = select or prompt_select
        self.fetcher = fetcher
        self.console = console or Console()
        self.terminal_rows = terminal_rows or _terminal_rows
        self.state = WizardState.SELECTING_PROVIDER

    def _enter(self, state: WizardState) -> None:
        logger.debug("[wizard] State change", extra={"from": self.state.value, "to": state.value})
        self.state = state

    def run(self, append_to_existing: bool = False) -> Optional[ProviderConfig]:
        """Run the wizard.

        In append mode the finished provider config is returned without being
        saved. In replace mode it is saved, replacing every previously
        configured provider, and ``None`` is returned. Cancellation and
        failed authentication also return ``None``.
        """
        try:
            return self._run(append_to_existing)
        except UserCancelled:
            self._enter(WizardState.CANCELLED)
            self.console.print("\n[yellow]⚠️  Configuration cancelled by user.[/yellow]\n")
            return None
        except Exception:
            self._enter(WizardState.FAILED)
            raise

    def _run(self, append_to_existing: bool) -> Optional[ProviderConfig]:
        self.state = WizardState.SELECTING_PROVIDER
        config = self.config_manager.load().config

        provider_key = self.select(
            "Select an AI provider:",
            [SelectChoice(d.label, d.key) for d in self.registry.descriptors()],
            loop=False,
            page_size=provider_page_size(self.terminal_rows()),
        )
        authenticator = self.registry.require(provider_key)

        self._enter(WizardState.AUTHENTICATING)
        try:
            result = authenticator.authenticate()
            provider_config = result.provider_config
            if provider_config.provider != authenticator.key:
                raise AuthenticationFailed(
                    f"Authenticator for '{authenticator.key}' returned a "
                    f"'{provider_config.provider}' configuration."
                )
        except UserCancelled:
            raise
        except Exception as exc:  # noqa: BLE001 - any non-cancellation failure is reported
            self._enter(WizardState.FAILED)
            logger.warning(
                "[wizard] Authentication failed: %s: %s",
                type(exc).__name__,
                exc,
                extra={"provider": provider_key},
            )
            self.console.print(f"\n[red]❌ Authentication failed: {exc}[/red]")
            return None

        self._select_model(provider_config)

        self._enter(WizardState.ALLOCATING_ID)
        provider_config.id = allocate_provider_id(provider_config.provider, config.provider_ids())

        if append_to_existing:
            self._enter(WizardState.DONE)
            return provider_config

        self._enter(WizardState.PERSISTING)
        self._persist(config, provider_config)
        self._enter(WizardState.DONE)
        self.console.print("\n[green]✓ Configuration saved successfully![/green]\n")
        return None

    def _select_model(self, provider_config: ProviderConfig) -> None:
        provider = provider_config.provider
        if provider_supports_model_list(provider):
            self._enter(WizardState.RESOLVING_MODELS)
            self.console.print("\nFetching available models...")

        resolved = resolve_models(
            provider_config,
            fetcher=self.fetcher,
            on_fetch_error=lambda _exc: self.console.print(
                "[yellow]Failed to fetch models, using defaults if available.[/yellow]"
            ),
        )
        model_ids: List[str] = sort_models_by_preference(resolved.models)
        if not model_ids:
            return

        self._enter(WizardState.SELECTING_MODEL)
        default = resolved.default_model if resolved.default_model in model_ids else None
        model_id = self.select(
            "Select a model:",
            [SelectChoice(resolved.models[mid].label, mid) for mid in model_ids],
            default=default,
            loop=False,
            page_size=MODEL_PAGE_SIZE,
        )
        provider_config.set_selected_model(model_id)

    def _persist(self, config: CLIConfig, provider_config: ProviderConfig) -> None:
        # Replace mode keeps only the new provider.
        updated = config.model_copy(update={"providers": [provider_config]})
        self.config_manager.save(updated)
        logger.info(
            "[wizard] Saved provider configuration",
            extra={"provider": provider_config.provider, "id": provider_config.id},
        )


def _default_config_manager() -> ConfigManager:
    return config_manager


def run_auth_wizard(append_to_existing: bool = False, **collaborators: Any) -> Optional[ProviderConfig]:
    """Run the auth wizard once; see :class:`AuthWizard` for collaborators."""
    return AuthWizard(**collaborators).run(append_to_existing)
