# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Enumeration types for exchange rate handling."""

from enum import Enum


class UpdatePolicy(str, Enum):
    """When exchange rates may be refreshed from the network."""

    AUTO = "auto"
    MANUAL = "manual"
    WIFI_ONLY = "wifi-only"


class RateSource(str, Enum):
    """Where an effective rate came from."""

    MANUAL = "manual"
    API = "api"
    FALLBACK = "fallback"


class ConnectionType(str, Enum):
    """Network the device is currently using."""

    WIFI = "wifi"
    CELLULAR = "cellular"
    UNKNOWN = "unknown"
