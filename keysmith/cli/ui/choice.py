"""Single-choice prompt used by the auth wizard.

Provider and model menus share one look: a framed, numbered list that scrolls
inside a fixed page size. Ctrl+C, Ctrl+D and Esc abort the prompt with
:class:`~keysmith.core.errors.UserCancelled`.
"""

from __future__ import annotations

import html
import os
from dataclasses import dataclass
from typing import Any, Generic, Optional, Sequence, TypeVar

from prompt_toolkit.application import Application
from prompt_toolkit.filters import has_focus, is_done
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout
from prompt_toolkit.layout.containers import ConditionalContainer
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Box, Frame, Label, RadioList

from keysmith.cli.ui.terminal import raw_mode
from keysmith.core.errors import UserCancelled

T = TypeVar("T")


def onboarding_style() -> Style:
    """Create the style for setup prompts.

    Uses adaptive palettes to preserve contrast on both dark and light terminals.
    """
    if _should_use_light_palette():
        return Style.from_dict(
            {
                "frame.border": "#4b6584",
                "selected-option": "bold",
                "option": "#1f2937",  # Dark slate option text
                "question": "#9f1239",
                "number": "#0f766e",
                "default": "#047857",
                "dim": "#6b7280",
            }
        )
    return Style.from_dict(
        {
            "frame.border": "#8b9dc3",  # Soft silver-blue border
            "selected-option": "bold",
            "option": "#f8f8f2",
            "question": "#ff79c6",
            "number": "#8be9fd",
            "default": "#50fa7b",
            "dim": "#626262",
        }
    )


def _should_use_light_palette() -> bool:
    forced = os.getenv("KEYSMITH_TERMINAL_BG", "").strip().lower()
    if forced == "light":
        return True
    if forced == "dark":
        return False
    detected = _detect_light_background_from_colorfgbg(os.getenv("COLORFGBG", ""))
    return bool(detected)


def _detect_light_background_from_colorfgbg(raw_value: str) -> Optional[bool]:
    """Best-effort light/dark detection from COLORFGBG (e.g. "15;0").

    The last numeric token is the background ANSI index; only the 16 basic
    colors are considered.
    """
    if not raw_value:
        return None
    for token in reversed(raw_value.split(";")):
        token = token.strip()
        if not token.isdigit():
            continue
        rgb = _BASE_16_RGB.get(int(token))
        if rgb is None:
            return None
        r, g, b = rgb
        return (0.2126 * r) + (0.7152 * g) + (0.0722 * b) >= 140.0
    return None


# xterm standard 16-color palette
_BASE_16_RGB: dict[int, tuple[int, int, int]] = {
    0: (0, 0, 0),
    1: (205, 0, 0),
    2: (0, 205, 0),
    3: (205, 205, 0),
    4: (0, 0, 238),
    5: (205, 0, 205),
    6: (0, 205, 205),
    7: (229, 229, 229),
    8: (127, 127, 127),
    9: (255, 0, 0),
    10: (0, 255, 0),
    11: (255, 255, 0),
    12: (92, 92, 255),
    13: (255, 0, 255),
    14: (0, 255, 255),
    15: (255, 255, 255),
}


@dataclass(frozen=True)
class SelectChoice(Generic[T]):
    """One entry in a single-choice menu."""

    name: str
    value: T


def _wrap_navigation(key_bindings: KeyBindings, radio_list: RadioList) -> None:
    @key_bindings.add("up", filter=has_focus(radio_list), eager=True)
    def _up(event: Any) -> None:  # noqa: ANN001
        count = len(radio_list.values)
        radio_list._selected_index = (radio_list._selected_index - 1) % count
        radio_list.current_value = radio_list.values[radio_list._selected_index][0]

    @key_bindings.add("down", filter=has_focus(radio_list), eager=True)
    def _down(event: Any) -> None:  # noqa: ANN001
        count = len(radio_list.values)
        radio_list._selected_index = (radio_list._selected_index + 1) % count
        radio_list.current_value = radio_list.values[radio_list._selected_index][0]


def prompt_select(
    message: str,
    choices: Sequence[SelectChoice[T]],
    *,
    default: Optional[T] = None,
    loop: bool = False,
    page_size: int = 10,
    style: Optional[Style] = None,
) -> T:
    """Ask the user to pick one of ``choices`` and return its value.

    Args:
        message: Question shown above the list
        choices: Entries in display order
        default: Value to pre-select; ignored when not among the choices
        loop: Whether the cursor wraps around at either end
        page_size: Maximum number of rows visible at once

    Raises:
        UserCancelled: The user pressed Ctrl+C, Ctrl+D or Esc.
        ValueError: ``choices`` is empty.
    """
    if not choices:
        raise ValueError("prompt_select requires at least one choice")

    values = [(index, choice.name) for index, choice in enumerate(choices)]
    default_index = 0
    if default is not None:
        for index, choice in enumerate(choices):
            if choice.value == default:
                default_index = index
                break

    radio_list: RadioList = RadioList(
        values=values,
        default=default_index,
        select_on_focus=True,
        open_character="",
        select_character=">",
        close_character="",
        show_cursor=False,
        show_numbers=True,
        default_style="class:option",
        selected_style="",
        checked_style="class:selected-option",
        number_style="class:number",
        show_scrollbar=len(choices) > page_size,
    )
    radio_list.window.height = Dimension(max=max(1, page_size))

    prompt = HTML(f"<question>{html.escape(message)}</question>")
    body = HSplit(
        [
            Box(Label(text=prompt, dont_extend_height=True), padding=0, padding_left=1),
            Box(radio_list, padding=0, padding_left=2),
        ]
    )
    container = ConditionalContainer(Frame(body), alternative_content=body, filter=~is_done)

    key_bindings = KeyBindings()
    if loop:
        _wrap_navigation(key_bindings, radio_list)

    @key_bindings.add("enter", eager=True)
    def _submit(event: Any) -> None:  # noqa: ANN001
        event.app.exit(result=radio_list.current_value, style="class:accepted")

    @key_bindings.add("c-c", eager=True)
    @key_bindings.add("escape", eager=True)
    def _abort(event: Any) -> None:  # noqa: ANN001
        event.app.exit(exception=KeyboardInterrupt, style="class:aborting")

    @key_bindings.add("c-d", eager=True)
    def _eof(event: Any) -> None:  # noqa: ANN001
        event.app.exit(exception=EOFError, style="class:aborting")

    application: Application = Application(
        layout=Layout(container, focused_element=radio_list),
        key_bindings=key_bindings,
        style=style or onboarding_style(),
        full_screen=False,
        erase_when_done=True,
    )
    try:
        with raw_mode():
            selected_index = application.run()
    except (KeyboardInterrupt, EOFError) as exc:
        raise UserCancelled() from exc
    return choices[int(selected_index)].value
