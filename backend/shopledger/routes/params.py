# Overview: Query/body parameter parsing shared by the JSON blueprints.

from __future__ import annotations

import re
from datetime import date

from flask import request

from ..time_utils import now
from ..validation import ValidationError

_MONTH_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{1,2})$")


def month_arg(name: str = "month") -> date:
    """
    First day of the month named by ?month=YYYY-MM (current month if absent).
    """
    raw = (request.args.get(name) or "").strip()
    if not raw:
        today = now().date()
        return date(today.year, today.month, 1)
    match = _MONTH_RE.match(raw)
    if not match:
        raise ValidationError(f"{name} must look like YYYY-MM")
    month = int(match.group("month"))
    if not 1 <= month <= 12:
        raise ValidationError(f"{name} must look like YYYY-MM")
    return date(int(match.group("year")), month, 1)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    return data


def hint_args(body: dict | None = None) -> list:
    """
    Partition hints for a lookup by id: ?month=YYYY-MM and/or "partition"
    in the body, then the current month.
    """
    hints: list = []
    if body and body.get("partition"):
        hints.append(str(body["partition"]))
    if request.args.get("month"):
        hints.append(month_arg())
    hints.append(now().date())
    return hints
