"""Field resolution and Dutch formatting for letter text.

Every value that goes into a letter passes through a FieldResolver:
value → fallbacks → bracketed placeholder. The resolver remembers which
fields ended up as placeholders so the Letter can report them.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def format_euro(value: Decimal | int | float) -> str:
    """Format as Dutch currency: `€ 1.234,56`."""
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    whole, _, cents = f"{abs(amount):.2f}".partition(".")
    groups = []
    while len(whole) > 3:
        groups.insert(0, whole[-3:])
        whole = whole[:-3]
    groups.insert(0, whole)
    return f"€ {sign}{'.'.join(groups)},{cents}"


def format_date(value: date) -> str:
    """Format as a Dutch short date without zero padding: `5-3-2026`."""
    return f"{value.day}-{value.month}-{value.year}"


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return bool(value)
    return True


class FieldResolver:
    """Resolve letter fields uniformly and collect the ones left as placeholders."""

    def __init__(self) -> None:
        self._missing: list[str] = []

    @property
    def placeholders(self) -> tuple[str, ...]:
        return tuple(self._missing)

    def _first(self, value: Any, fallbacks: tuple[Any, ...]) -> Any:
        for candidate in (value, *fallbacks):
            if _present(candidate):
                return candidate
        return None

    def _placeholder(self, name: str, label: str | None) -> str:
        if name not in self._missing:
            self._missing.append(name)
        return f"[{label or name}]"

    def text(self, name: str, value: Any, *fallbacks: Any, label: str | None = None) -> str:
        resolved = self._first(value, fallbacks)
        if resolved is None:
            return self._placeholder(name, label)
        return str(resolved).strip()

    def amount(self, name: str, value: Any, *fallbacks: Any, label: str | None = None) -> str:
        resolved = self._first(value, fallbacks)
        if resolved is None:
            return self._placeholder(name, label)
        return format_euro(resolved)

    def date(self, name: str, value: Any, *fallbacks: Any, label: str | None = None) -> str:
        resolved = self._first(value, fallbacks)
        if resolved is None:
            return self._placeholder(name, label)
        return format_date(resolved)
