# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Key/value settings persistence."""

from sqlalchemy.orm import Session

from travelfx.models import AppSetting, utcnow


def get_setting(db: Session, key: str) -> str | None:
    """Get a setting value by key."""
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    return setting.value if setting else None


def set_setting(db: Session, key: str, value: str, commit: bool = True) -> None:
    """Insert or update a setting."""
    setting = db.query(AppSetting).filter(AppSetting.key == key).first()
    if setting:
        setting.value = value
        setting.updated_at = utcnow()
    else:
        db.add(AppSetting(key=key, value=value))
    if commit:
        db.commit()
    else:
        db.flush()


def delete_setting(db: Session, key: str, commit: bool = True) -> bool:
    """Delete a setting. Returns False when it did not exist."""
    deleted = db.query(AppSetting).filter(AppSetting.key == key).delete()
    if commit:
        db.commit()
    else:
        db.flush()
    return deleted > 0
