"""Lenient numeric parsing for user-entered and metadata strings.

Two entry points with different strictness:

- :func:`coerce_float` is for values a user types into a control (for example
  the global marker scale). It accepts numbers, numeric strings and simple
  SymPy-evaluable expressions such as ``"3/2"``.
- :func:`parse_metadata_float` is for raw metadata cells. It never evaluates
  expressions (metadata like ``"E"`` or ``"pi"`` is a label, not a constant)
  and returns ``None`` instead of raising.
"""

from __future__ import annotations

import math
from typing import Any, Optional

import sympy as sp


def coerce_float(obj: Any) -> float:
    """Convert ``obj`` to a real, finite ``float``.

    Rules
    -----
    - Numbers (excluding ``bool``) are cast with ``float``.
    - Strings are stripped, then tried with ``float``; otherwise parsed with
      SymPy and evaluated.

    Raises
    ------
    ValueError
        If the value is empty, non-real, non-finite, or cannot be evaluated.
    """
    if isinstance(obj, bool):
        raise ValueError(f"Could not convert boolean {obj!r} to float.")

    if isinstance(obj, (int, float)):
        value = float(obj)
    elif isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError("Cannot convert empty string to float.")
        try:
            value = float(s)
        except ValueError:
            try:
                evaluated = complex(sp.sympify(s).evalf())
            except Exception as e:
                raise ValueError(
                    f"Could not convert {obj!r} to float (neither directly nor via SymPy)."
                ) from e
            if evaluated.imag != 0:
                raise ValueError(
                    f"Could not convert non-real {obj!r} to float: imaginary part is non-zero."
                )
            value = evaluated.real
    else:
        try:
            value = float(obj)
        except Exception as e:
            raise ValueError(f"Could not convert {obj!r} to float.") from e

    if not math.isfinite(value):
        raise ValueError(f"Could not convert {obj!r} to a finite float.")
    return value


def parse_metadata_float(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not numeric.

    >>> parse_metadata_float("14.2")
    14.2
    >>> parse_metadata_float("StringValue") is None
    True
    >>> parse_metadata_float("nan") is None
    True
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed
