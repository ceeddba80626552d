from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.models.admin_login_attempt import AdminLoginAttempt

MAX_FAILED_ATTEMPTS = 8
ATTEMPT_WINDOW = timedelta(minutes=10)
LOCK_DURATION = timedelta(minutes=10)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _get_attempt(db: Session, tenant_id: int, email: str) -> Optional[AdminLoginAttempt]:
    return (
        db.query(AdminLoginAttempt)
        .filter(
            AdminLoginAttempt.tenant_id == tenant_id,
            AdminLoginAttempt.email == email,
        )
        .first()
    )


def is_login_locked(db: Session, tenant_id: int, email: str, now: Optional[datetime] = None) -> bool:
    attempt = _get_attempt(db, tenant_id, email)
    if attempt is None or attempt.locked_until is None:
        return False
    return attempt.locked_until > (now or _now())


def register_failed_login(db: Session, tenant_id: int, email: str) -> bool:
    """Conta a falha e devolve ``True`` se a conta ficou bloqueada."""
    now = _now()
    attempt = _get_attempt(db, tenant_id, email)
    if attempt is None:
        attempt = AdminLoginAttempt(tenant_id=tenant_id, email=email, failed_count=0, first_failed_at=now)
        db.add(attempt)
    elif attempt.first_failed_at is None or (now - attempt.first_failed_at) > ATTEMPT_WINDOW:
        attempt.failed_count = 0
        attempt.first_failed_at = now

    attempt.failed_count = (attempt.failed_count or 0) + 1
    if attempt.failed_count >= MAX_FAILED_ATTEMPTS:
        attempt.locked_until = now + LOCK_DURATION
        return True
    return False


def clear_login_attempts(db: Session, tenant_id: int, email: str) -> None:
    attempt = _get_attempt(db, tenant_id, email)
    if attempt is not None:
        db.delete(attempt)
