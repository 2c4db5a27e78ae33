# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Currency metadata used for presentation.

The conversion math never looks at this table; it only normalises codes
through :func:`normalize_currency`.
"""

import re
from dataclasses import dataclass

from travelfx.services.exceptions import InvalidCurrencyCode

_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class CurrencyInfo:
    """Display information for a currency."""

    code: str
    name: str
    symbol: str
    flag: str


CURRENCIES: list[CurrencyInfo] = [
    CurrencyInfo("CHF", "Swiss Franc", "CHF", "🇨🇭"),
    CurrencyInfo("EUR", "Euro", "€", "🇪🇺"),
    CurrencyInfo("USD", "US Dollar", "$", "🇺🇸"),
    CurrencyInfo("GBP", "British Pound", "£", "🇬🇧"),
    CurrencyInfo("JPY", "Japanese Yen", "¥", "🇯🇵"),
    CurrencyInfo("CAD", "Canadian Dollar", "C$", "🇨🇦"),
    CurrencyInfo("AUD", "Australian Dollar", "A$", "🇦🇺"),
    CurrencyInfo("SEK", "Swedish Krona", "SEK", "🇸🇪"),
    CurrencyInfo("NOK", "Norwegian Krone", "NOK", "🇳🇴"),
    CurrencyInfo("DKK", "Danish Krone", "DKK", "🇩🇰"),
    CurrencyInfo("PLN", "Polish Złoty", "zł", "🇵🇱"),
    CurrencyInfo("CZK", "Czech Koruna", "Kč", "🇨🇿"),
    CurrencyInfo("HUF", "Hungarian Forint", "Ft", "🇭🇺"),
    CurrencyInfo("TRY", "Turkish Lira", "₺", "🇹🇷"),
    CurrencyInfo("THB", "Thai Baht", "฿", "🇹🇭"),
    CurrencyInfo("CNY", "Chinese Yuan", "¥", "🇨🇳"),
    CurrencyInfo("INR", "Indian Rupee", "₹", "🇮🇳"),
    CurrencyInfo("NZD", "New Zealand Dollar", "NZ$", "🇳🇿"),
]

POPULAR_CURRENCY_COUNT = 6


def normalize_currency(code: str) -> str:
    """Upper-case and validate a currency code.

    Raises:
        InvalidCurrencyCode: If the code is not three ASCII letters.
    """
    if not isinstance(code, str):
        raise InvalidCurrencyCode(f"Currency code must be a string, got {code!r}")
    normalized = code.strip().upper()
    if not _CODE_PATTERN.match(normalized):
        raise InvalidCurrencyCode(f"Invalid currency code: {code!r}")
    return normalized


def get_currency_info(code: str) -> CurrencyInfo | None:
    """Look up display information for a code."""
    code = code.upper()
    for currency in CURRENCIES:
        if currency.code == code:
            return currency
    return None


def get_popular_currencies() -> list[CurrencyInfo]:
    """Currencies offered for quick selection."""
    return CURRENCIES[:POPULAR_CURRENCY_COUNT]


def search_currencies(query: str) -> list[CurrencyInfo]:
    """Case-insensitive search on code or name."""
    term = query.strip().lower()
    if not term:
        return list(CURRENCIES)
    return [
        c for c in CURRENCIES if term in c.code.lower() or term in c.name.lower()
    ]
