# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Locale-formatted decimal parsing.

Upstream rate figures arrive as strings that use a comma as the decimal
separator (``"1,25"``); some fields use a dot. Every numeric field goes
through :func:`parse_locale_decimal`, which rejects anything that is not a
plain signed decimal instead of coercing it.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Final

from tariff_sync.domain.entities.tariffs import RATE_FIELDS, RateVector
from tariff_sync.domain.exceptions.tariffs import RateParseError

_DECIMAL_RE: Final[re.Pattern[str]] = re.compile(r"^[+-]?\d+(?:\.\d+)?$")


def parse_locale_decimal(raw: Any, *, field: str | None = None) -> Decimal:
    """Normalize a locale-formatted numeric string into a :class:`Decimal`.

    Accepts ``int``/``Decimal`` values unchanged and strings with either a
    comma or a dot as the decimal separator. Surrounding whitespace is
    ignored.

    Args:
        raw: Value received from the provider.
        field: Optional field name, reported in error details.

    Returns:
        The parsed decimal value.

    Raises:
        RateParseError: If the value is empty, not a string/number, or not a
            plain decimal (e.g. ``"-"``, ``"1,2,3"``, ``"1e3"``).
    """
    details: dict[str, Any] = {"field": field, "value": raw}

    if isinstance(raw, bool):
        raise RateParseError("not_a_number", details=details)
    if isinstance(raw, Decimal):
        if not raw.is_finite():
            raise RateParseError("not_finite", details=details)
        return raw
    if isinstance(raw, int):
        return Decimal(raw)
    if not isinstance(raw, str):
        raise RateParseError("not_a_string", details=details)

    text = raw.strip().replace(",", ".", 1)
    if not _DECIMAL_RE.fullmatch(text):
        raise RateParseError("malformed_decimal", details=details)
    try:
        return Decimal(text)
    except InvalidOperation as exc:  # pragma: no cover - regex guards this
        raise RateParseError("malformed_decimal", details=details) from exc


def parse_rate_vector(raw: dict[str, Any]) -> RateVector:
    """Build a :class:`RateVector` from a mapping keyed by canonical field names."""
    missing = [name for name in RATE_FIELDS if name not in raw]
    if missing:
        raise RateParseError("missing_fields", details={"fields": missing})
    return RateVector(**{name: parse_locale_decimal(raw[name], field=name) for name in RATE_FIELDS})
