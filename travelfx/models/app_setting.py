# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Key/value application settings model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from travelfx.models.base import Base, TimestampMixin


class AppSetting(Base, TimestampMixin):
    """A single persisted setting.

    Holds the update policy fields as well as the cached rate set
    (``cachedRatesJSON``) and its ``cacheTimestamp``.
    """

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
