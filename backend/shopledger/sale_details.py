from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .validation import ValidationError

"""
Sale details string

A Sale row stores its lines as one text cell:

    "<name>[ @<price>] x<qty>, <name>[ @<price>] x<qty>, ..."

The "@price" suffix is present only when the line was sold at a price other
than the product's list price. Names may contain spaces and digits but not
the ", " separator, an "@<digits>" marker or a trailing "x<digits>";
check_item_name enforces this when a product is named.
"""

FRAGMENT_SEPARATOR = ", "

_FRAGMENT_RE = re.compile(r"^(?P<name>.+?)(?:\s*@(?P<price>\d+))?\s*x(?P<qty>\d+)$")
_UNSAFE_NAME_RE = re.compile(r", |@\d|(?:^|\s)x\d+$")


class DetailsParseError(ValidationError):
    """Raised when a details string has a fragment without a quantity."""


@dataclass(frozen=True)
class DetailFragment:
    name: str
    quantity: int
    price: Optional[int] = None  # override price, None means list price


def check_item_name(name: str) -> str:
    if _UNSAFE_NAME_RE.search(name):
        raise ValidationError(
            f"name {name!r} cannot contain ', ', '@<number>' or end in 'x<number>'"
        )
    return name


def render_fragment(name: str, quantity: int, price: int, original_price: int) -> str:
    price_note = f" @{price}" if price != original_price else ""
    return f"{name}{price_note} x{quantity}"


def render_details(fragments: Iterable[str]) -> str:
    return FRAGMENT_SEPARATOR.join(fragments)


def parse_details(details: str) -> list[DetailFragment]:
    if not details or not details.strip():
        return []

    fragments = []
    for part in details.split(FRAGMENT_SEPARATOR):
        part = part.strip()
        if not part:
            continue
        match = _FRAGMENT_RE.match(part)
        if not match:
            raise DetailsParseError(f"malformed sale detail: {part!r}")
        quantity = int(match.group("qty"))
        if quantity < 1:
            raise DetailsParseError(f"quantity must be at least 1: {part!r}")
        price = match.group("price")
        fragments.append(DetailFragment(
            name=match.group("name").strip(),
            quantity=quantity,
            price=int(price) if price is not None else None,
        ))
    return fragments


def quantities_by_name(details: str) -> dict[str, int]:
    """Sum quantities per product name; malformed fragments are ignored."""
    totals: dict[str, int] = {}
    if not details:
        return totals
    for part in details.split(FRAGMENT_SEPARATOR):
        match = _FRAGMENT_RE.match(part.strip())
        if not match:
            continue
        name = match.group("name").strip()
        totals[name] = totals.get(name, 0) + int(match.group("qty"))
    return totals
