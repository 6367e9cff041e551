"""Shared view registry validation.

A view registry is a plain ordered ``dict`` mapping an opaque key to a
:class:`~ordiview.render_view.RenderView`. Controllers that operate on the same
document receive the *same* dict object, so a mutation made through one
controller is observed by every other controller with no isolation.
Insertion order defines the default ("first") view.
"""

from __future__ import annotations

from typing import Dict, Optional

from .render_view import RenderView

ViewRegistry = Dict[str, RenderView]


def require_registry(registry: Optional[ViewRegistry]) -> ViewRegistry:
    """Return ``registry`` unchanged after checking controller preconditions.

    Raises
    ------
    ValueError
        If the registry is ``None`` or empty.
    TypeError
        If the registry is not a mapping or holds anything but render views.
    """
    if registry is None:
        raise ValueError("The view registry cannot be None")
    if not isinstance(registry, dict):
        raise TypeError(
            f"The view registry must be a dict of RenderView, got {type(registry).__name__}"
        )
    for key, view in registry.items():
        if not isinstance(view, RenderView):
            raise TypeError(
                f"The view registry can only hold RenderView objects; "
                f"entry {key!r} is {type(view).__name__}"
            )
    if len(registry) == 0:
        raise ValueError("The view registry cannot be empty")
    return registry


def first_view_key(registry: ViewRegistry) -> str:
    """Return the key of the first inserted view."""
    return next(iter(registry))
