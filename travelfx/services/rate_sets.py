# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Pure helpers for rate sets.

A rate set maps currency codes to multipliers relative to one implicit base
currency. Nothing in here touches storage or the network.
"""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

RateSet = dict[str, float]

_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")

# Approximate CHF-based rates used when nothing better is available.
FALLBACK_BASE_CURRENCY = "CHF"
FALLBACK_RATES: RateSet = {
    "CHF": 1.0,
    "EUR": 0.93,
    "USD": 1.11,
    "GBP": 0.80,
    "JPY": 164.5,
    "CAD": 1.48,
    "AUD": 1.66,
    "SEK": 11.45,
    "NOK": 11.89,
    "DKK": 6.95,
}


def coerce_rate(value: Any) -> float:
    """Convert a raw value into a positive finite float.

    Raises:
        ValueError: If the value is not numeric, not finite or not positive.
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a rate: {value!r}")
    try:
        rate = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Not a number: {value!r}") from e
    if not math.isfinite(rate) or rate <= 0:
        raise ValueError(f"Rate must be positive and finite: {value!r}")
    return rate


def validate_rate_set(raw: Any, base_currency: str) -> RateSet:
    """Normalise a parsed provider rate map into a RateSet.

    Keys are upper-cased; keys that are not three-letter codes (metals,
    crypto tokens) are dropped. The base currency is added as 1.0 when the
    provider omits it.

    Raises:
        ValueError: If the map is empty, a value is not a usable rate, or
            the base currency maps to something other than 1.0.
    """
    if not isinstance(raw, Mapping) or not raw:
        raise ValueError("Rate map is empty or missing")

    rates: RateSet = {}
    for key, value in raw.items():
        code = str(key).upper()
        if not _CODE_PATTERN.match(code):
            continue
        rates[code] = coerce_rate(value)

    if not rates:
        raise ValueError("Rate map contains no currency codes")

    base_rate = rates.setdefault(base_currency, 1.0)
    if base_rate != 1.0:
        raise ValueError(f"Base currency {base_currency} maps to {base_rate}")
    return rates


def merge_rates(rates: Mapping[str, float], overrides: Mapping[str, float]) -> RateSet:
    """Overlay manual overrides on a rate set. Overrides always win."""
    merged = dict(rates)
    merged.update(overrides)
    return merged


def rebase_rates(
    rates: Mapping[str, float], from_base: str, to_base: str
) -> RateSet:
    """Express a rate set relative to another base currency."""
    if from_base == to_base:
        return dict(rates)
    pivot = rates.get(to_base)
    if not pivot:
        logger.warning(
            f"Cannot rebase {from_base} rates to {to_base}, keeping {from_base} values"
        )
        rebased = dict(rates)
        rebased[to_base] = 1.0
        return rebased
    rebased = {code: rate / pivot for code, rate in rates.items()}
    rebased[to_base] = 1.0
    return rebased


def fallback_rates_for(
    base_currency: str,
    table: Mapping[str, float] = FALLBACK_RATES,
    table_base: str = FALLBACK_BASE_CURRENCY,
) -> RateSet:
    """The static fallback table expressed relative to ``base_currency``."""
    return rebase_rates(table, table_base, base_currency)
