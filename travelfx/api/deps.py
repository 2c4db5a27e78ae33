# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""API dependencies for dependency injection."""

from collections.abc import AsyncGenerator, Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from travelfx.database import SessionLocal
from travelfx.services.currency_service import CurrencyService, build_currency_service


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_currency_service(
    db: Session = Depends(get_db),
) -> AsyncGenerator[CurrencyService, None]:
    """Currency service bound to the request's session."""
    service = build_currency_service(db)
    try:
        yield service
    finally:
        await service.close()
