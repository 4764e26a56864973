# Overview: Record identifier generation for ledger rows.

"""
Identifier Service - time-derived record ids

Sale and transaction ids are a prefix plus the low-order 8 digits of the
current epoch milliseconds ("DH12345678"). That bounds collisions within a
month but does not guarantee global uniqueness, so callers pass the ids
already present in the target partition and the generator steps forward
until it finds a free one.

Product codes are sequential: prefix + zero-padded number ("SP001").
"""

from __future__ import annotations

import re
import time
from typing import Callable, Collection

ID_DIGITS = 8


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def new_record_id(
    prefix: str,
    taken: Collection[str] = (),
    *,
    clock: Callable[[], int] = _epoch_millis,
) -> str:
    modulus = 10 ** ID_DIGITS
    tick = clock() % modulus
    for _ in range(modulus):
        candidate = f"{prefix}{tick:0{ID_DIGITS}d}"
        if candidate not in taken:
            return candidate
        tick = (tick + 1) % modulus
    raise RuntimeError(f"no free {prefix} identifier left")


def next_product_code(prefix: str, existing: Collection[str], width: int = 3) -> str:
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    highest = 0
    for code in existing:
        match = pattern.match(code or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}{highest + 1:0{width}d}"
