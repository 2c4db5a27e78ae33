# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Exchange rate acquisition, caching and conversion for the travel tracker."""

__version__ = "0.1.0"
