# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing logging helpers with optional colour and emoji support."""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import Literal

from rich.console import Console
from rich.rule import Rule
from rich.text import Text


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


@lru_cache(maxsize=8)
def get_console(*, color: bool, emoji: bool, tty: bool) -> Console:
    """Return a cached Rich console configured for the presentation flags.

    Args:
        color: ``True`` when ANSI colour output should be enabled.
        emoji: ``True`` when Rich should render emoji glyphs.
        tty: Whether stdout is attached to a terminal.

    Returns:
        Console: Console matching the requested preferences.
    """

    color_system: Literal["auto"] | None = "auto" if color and tty else None
    return Console(
        color_system=color_system,
        force_terminal=tty,
        no_color=not (color and tty),
        emoji=emoji,
        soft_wrap=True,
    )


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank.

    Args:
        symbol: Emoji glyph, usually followed by a space.
        enable: Whether emoji output is enabled.

    Returns:
        str: ``symbol`` or an empty string.
    """

    return symbol if enable else ""


def _print_line(msg: str, *, style: str | None, use_emoji: bool, use_color: bool | None = None) -> None:
    """Print ``msg`` on the shared console, styled when colour is enabled.

    Args:
        msg: Message to print.
        style: Rich style applied when colour output is enabled.
        use_emoji: Whether the console renders emoji glyphs.
        use_color: Colour override; ``None`` follows terminal detection.
    """

    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console(color=color_enabled, emoji=use_emoji, tty=detect_tty())
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def section(title: str, *, use_color: bool) -> None:
    """Render a section header to delineate console output blocks.

    Args:
        title: Header text.
        use_color: Draw a Rich rule when ``True``, a plain marker line otherwise.
    """

    console = get_console(color=use_color, emoji=True, tty=detect_tty())
    if use_color:
        console.print()
        console.print(Rule(title))
    else:
        console.print(f"\n--- {title} ---")


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message.

    Args:
        msg: Message to print.
        use_emoji: Prefix the message with its status emoji.
        use_color: Colour override; ``None`` follows terminal detection.
    """

    _print_line(f"{emoji('ℹ️ ', use_emoji)}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message.

    Args:
        msg: Message to print.
        use_emoji: Prefix the message with its status emoji.
        use_color: Colour override; ``None`` follows terminal detection.
    """

    _print_line(f"{emoji('✅ ', use_emoji)}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message.

    Args:
        msg: Message to print.
        use_emoji: Prefix the message with its status emoji.
        use_color: Colour override; ``None`` follows terminal detection.
    """

    _print_line(f"{emoji('⚠️ ', use_emoji)}{msg}", style="yellow", use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message.

    Args:
        msg: Message to print.
        use_emoji: Prefix the message with its status emoji.
        use_color: Colour override; ``None`` follows terminal detection.
    """

    _print_line(f"{emoji('❌ ', use_emoji)}{msg}", style="red", use_emoji=use_emoji, use_color=use_color)


__all__ = ["detect_tty", "emoji", "fail", "get_console", "info", "ok", "section", "warn"]
