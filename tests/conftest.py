"""Shared fixtures for npm-scripts tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
import structlog

from npm_scripts.runner import RunRequest


def write_json(path: Path, data: Any) -> Path:
    """Write ``data`` as JSON to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


@dataclass
class SelectCall:
    items: list[Any]
    prompt: str
    format_item: Callable[[Any], str]


@dataclass
class FakeSelect:
    """Select function answering with pre-recorded choices.

    Each choice is matched against the offered items by equality or by their
    string form; None (or running out of choices) cancels.
    """

    choices: list[Any] = field(default_factory=list)
    calls: list[SelectCall] = field(default_factory=list)

    def __call__(
        self,
        items: Sequence[Any],
        *,
        prompt: str,
        format_item: Callable[[Any], str],
        on_choice: Callable[[Any], None],
    ) -> None:
        self.calls.append(SelectCall(list(items), prompt, format_item))
        choice = self.choices.pop(0) if self.choices else None
        if choice is None:
            on_choice(None)
            return
        picked = next(item for item in items if item == choice or str(item) == choice)
        on_choice(picked)


@dataclass
class Notices:
    messages: list[tuple[str, str]] = field(default_factory=list)

    def __call__(self, message: str, level: str = "info") -> None:
        self.messages.append((message, level))

    @property
    def levels(self) -> list[str]:
        return [level for _, level in self.messages]

    @property
    def text(self) -> str:
        return "\n".join(message for message, _ in self.messages)


@pytest.fixture
def requests() -> list[RunRequest]:
    """Collects RunRequests handed to the runner."""
    return []


@pytest.fixture
def notices() -> Notices:
    return Notices()


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo CLI logging configuration bound to a test runner's closed stream."""
    yield
    structlog.reset_defaults()
