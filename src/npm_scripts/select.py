"""Selection prompts.

A select function presents items and hands the user's choice to a callback::

    select(items, prompt="Pick one:", format_item=str, on_choice=callback)

``on_choice`` receives the chosen item, or None when the user cancelled.
Any callable with that signature can be configured in place of the default
terminal prompt, e.g. a fuzzy finder.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import typer

T = TypeVar("T")

SelectFn = Callable[..., object]


def terminal_select(
    items: Sequence[T],
    *,
    prompt: str,
    format_item: Callable[[T], str] = str,
    on_choice: Callable[[T | None], Any],
) -> None:
    """Show a numbered menu on the terminal and read the user's pick.

    Empty input, end of input or Ctrl-C cancel the selection.

    Args:
        items: Items to choose from.
        prompt: Heading shown above the menu.
        format_item: Renders an item for display.
        on_choice: Called once with the chosen item, or None if cancelled.
    """
    if not items:
        on_choice(None)
        return

    typer.echo(prompt, err=True)
    width = len(str(len(items)))
    for index, item in enumerate(items, start=1):
        typer.echo(f"  {index:>{width}}) {format_item(item)}", err=True)

    while True:
        try:
            answer = typer.prompt(
                "Number", default="", show_default=False, err=True
            ).strip()
        except typer.Abort:
            typer.echo("", err=True)
            on_choice(None)
            return

        if not answer:
            on_choice(None)
            return

        if answer.isdigit() and 1 <= int(answer) <= len(items):
            on_choice(items[int(answer) - 1])
            return

        typer.echo(f"Enter a number between 1 and {len(items)}", err=True)
