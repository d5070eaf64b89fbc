# core/rate_limiter.py

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from core.utils import parse_iso, to_iso
from models.check_in import CheckInCursor, CheckInLog


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    wait_minutes: int = 0
    last_check_in: Optional[str] = None

    @property
    def message(self) -> str:
        return f"You checked in here recently. Please wait {self.wait_minutes} minutes."


def _wait_minutes(last_timestamp: str, window: timedelta, now: datetime) -> int:
    next_allowed = parse_iso(last_timestamp) + window
    return math.ceil((next_allowed - now).total_seconds() / 60)


class CheckInRateLimiter:
    """
    Per (user, checkpoint) cooldown backed by the check-in log.

    ``check_allowed`` is a plain read; the caller writes the new log row
    afterwards, so two concurrent requests inside the window can both pass.
    ``claim`` closes that gap with a compare-and-swap on check_in_cursors.
    """

    def __init__(self, session: Session):
        self.session = session

    def latest_since(self, user_id: str, checkpoint_id: str, cutoff: str) -> Optional[CheckInLog]:
        statement = (
            select(CheckInLog)
            .where(CheckInLog.user_id == user_id)
            .where(CheckInLog.checkpoint_id == checkpoint_id)
            .where(CheckInLog.timestamp > cutoff)
            .order_by(CheckInLog.timestamp.desc())
            .limit(1)
        )
        return self.session.exec(statement).first()

    def check_allowed(
        self,
        user_id: str,
        checkpoint_id: str,
        cooldown_minutes: float,
        now: datetime,
    ) -> RateLimitDecision:
        """
        Check whether a new check-in is permitted.

        Args:
            user_id: Who is checking in
            checkpoint_id: Exact checkpoint (no proximity grouping)
            cooldown_minutes: Window length; 0 disables the cooldown
            now: Current time (aware, UTC)

        Returns:
            RateLimitDecision; when denied, ``wait_minutes`` is rounded up
        """
        window = timedelta(minutes=cooldown_minutes)
        last = self.latest_since(user_id, checkpoint_id, to_iso(now - window))
        if last is None:
            return RateLimitDecision(allowed=True)

        return RateLimitDecision(
            allowed=False,
            wait_minutes=_wait_minutes(last.timestamp, window, now),
            last_check_in=last.timestamp,
        )

    def claim(
        self,
        user_id: str,
        checkpoint_id: str,
        cooldown_minutes: float,
        now: datetime,
    ) -> RateLimitDecision:
        """
        Atomic variant: moves the (user, checkpoint) cursor to ``now`` only if
        its previous value is outside the window. Exactly one of several
        concurrent claims wins. Nothing is committed here: the claim becomes
        durable together with the log row the caller writes next.
        """
        window = timedelta(minutes=cooldown_minutes)
        now_iso = to_iso(now)
        cutoff = to_iso(now - window)

        statement = (
            update(CheckInCursor)
            .where(CheckInCursor.user_id == user_id)
            .where(CheckInCursor.checkpoint_id == checkpoint_id)
            .where(CheckInCursor.last_timestamp <= cutoff)
            .values(last_timestamp=now_iso)
        )
        result = self.session.connection().execute(statement)
        if result.rowcount == 1:
            return RateLimitDecision(allowed=True)

        cursor = self.session.get(
            CheckInCursor, (user_id, checkpoint_id), populate_existing=True
        )
        if cursor is None:
            self.session.add(
                CheckInCursor(user_id=user_id, checkpoint_id=checkpoint_id, last_timestamp=now_iso)
            )
            try:
                self.session.flush()
                return RateLimitDecision(allowed=True)
            except IntegrityError:
                # Another request created the cursor first
                self.session.rollback()
                cursor = self.session.get(
                    CheckInCursor, (user_id, checkpoint_id), populate_existing=True
                )

        last_timestamp = cursor.last_timestamp
        self.session.rollback()
        return RateLimitDecision(
            allowed=False,
            # Clock skew between instances can leave the winner's stamp at or
            # before our cutoff
            wait_minutes=max(1, _wait_minutes(last_timestamp, window, now)),
            last_check_in=last_timestamp,
        )
