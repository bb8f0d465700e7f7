"""Prompt helpers for interactive input."""

from typing import Optional

from prompt_toolkit import prompt as pt_prompt

from keysmith.cli.ui.terminal import raw_mode
from keysmith.core.errors import UserCancelled


def prompt_secret(prompt_text: str, prompt_suffix: str = ": ") -> str:
    """Prompt for sensitive input, masking characters.

    Ctrl+C and Ctrl+D raise :class:`UserCancelled`.
    """
    full_prompt = f"{prompt_text}{prompt_suffix}"
    try:
        with raw_mode():
            return pt_prompt(full_prompt, is_password=True)
    except (KeyboardInterrupt, EOFError) as exc:
        raise UserCancelled() from exc


def prompt_text(
    prompt_text: str,
    *,
    default: Optional[str] = None,
    prompt_suffix: str = ": ",
) -> str:
    """Prompt for a line of text; empty input yields ``default``."""
    suffix = f" [{default}]{prompt_suffix}" if default else prompt_suffix
    try:
        with raw_mode():
            value = pt_prompt(f"{prompt_text}{suffix}")
    except (KeyboardInterrupt, EOFError) as exc:
        raise UserCancelled() from exc
    value = value.strip()
    if not value and default is not None:
        return default
    return value
