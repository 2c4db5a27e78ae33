# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Manual exchange rate override model."""

import uuid as uuid_lib
from datetime import datetime

from sqlalchemy import DateTime, Float, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from travelfx.models.base import Base, utcnow
from travelfx.models.enums import RateSource


class ManualExchangeRate(Base):
    """Operator-entered rate for one (base, target) pair."""

    __tablename__ = "manual_exchange_rates"
    __table_args__ = (
        UniqueConstraint(
            "base_currency", "target_currency", name="uq_manual_exchange_rate"
        ),
    )

    id: Mapped[uuid_lib.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid_lib.uuid4,
    )
    base_currency: Mapped[str] = mapped_column(String(3), nullable=False, index=True)
    target_currency: Mapped[str] = mapped_column(String(3), nullable=False, index=True)
    rate: Mapped[float] = mapped_column(Float, nullable=False)
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RateSource.MANUAL.value
    )
    # Set explicitly by the rate store so upserts control both stamps.
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
