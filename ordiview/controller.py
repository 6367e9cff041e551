"""Capability interface shared by view controllers, plus panel helpers.

Controllers do not inherit from a common base. Each one implements the
:class:`ViewController` protocol independently and owns its widgets; the
helpers below only build widget trees and never hold state.
"""

from __future__ import annotations

import html
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol, runtime_checkable

import ipywidgets as widgets


@runtime_checkable
class ViewController(Protocol):
    """What a session needs from a controller."""

    title: str

    def render(self, container: widgets.Box) -> None:
        """Attach the controller panel to ``container``."""

    def to_json(self) -> Dict[str, Any]:
        """Return the controller state as a JSON-compatible dict."""

    def from_json(self, json: Dict[str, Any]) -> None:
        """Restore the controller state produced by :meth:`to_json`."""


def build_panel(title: str, help_text: str, *children: widgets.Widget) -> widgets.VBox:
    """Return the standard controller panel: title row, help text, ``children``."""
    heading = widgets.HTML(
        value=f"<b>{html.escape(title)}</b>",
        layout=widgets.Layout(margin="0 0 4px 0"),
    )
    helper = widgets.HTML(
        value=f"<small>{html.escape(help_text)}</small>",
        layout=widgets.Layout(margin="0 0 6px 0"),
    )
    return widgets.VBox(
        [heading, helper, *children],
        layout=widgets.Layout(width="100%", min_width="0"),
    )


def attach(container: Optional[widgets.Box], child: widgets.Widget) -> None:
    """Append ``child`` to ``container`` unless it is already there."""
    if container is None:
        return
    if child not in container.children:
        container.children = tuple(container.children) + (child,)


class ObserverGuard:
    """Re-entrancy guard for widget observers.

    Programmatic widget writes happen inside :meth:`suspended`; observers
    check :attr:`active` and ignore the change events they caused.
    """

    def __init__(self) -> None:
        self._depth = 0

    @property
    def active(self) -> bool:
        return self._depth > 0

    @contextmanager
    def suspended(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
