# services/check_in_service.py

"""
Geofenced check-in.

A request moves strictly forward through
    Received → GeofenceChecked → RateLimitChecked → Recorded → Confirmed
and stops at the first rejection. The clock and id generator are injected
so tests can pin time.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple

from sqlmodel import Session, select

from core.config import settings
from core.geofence import NoCheckpointsError, format_radius, nearest, too_far_message
from core.logging_config import logger
from core.rate_limiter import CheckInRateLimiter
from core.utils import new_id, to_iso, utc_now
from models.check_in import CheckInLog, CheckInSettings
from models.checkpoint import Checkpoint


class CheckInStatus(str, Enum):
    CONFIRMED = "confirmed"
    REJECTED_GEOFENCE = "rejected_geofence"
    REJECTED_RATE_LIMIT = "rejected_rate_limit"
    REJECTED_NO_CHECKPOINTS = "rejected_no_checkpoints"
    REJECTED_UNAUTHENTICATED = "rejected_unauthenticated"


STATUS_CODES = {
    CheckInStatus.CONFIRMED: 200,
    CheckInStatus.REJECTED_GEOFENCE: 400,
    CheckInStatus.REJECTED_NO_CHECKPOINTS: 400,
    CheckInStatus.REJECTED_RATE_LIMIT: 429,
    CheckInStatus.REJECTED_UNAUTHENTICATED: 401,
}


@dataclass
class CheckInOutcome:
    status: CheckInStatus
    message: str
    checkpoint: Optional[Checkpoint] = None
    log: Optional[CheckInLog] = None
    distance_meters: Optional[float] = None
    wait_minutes: Optional[int] = None

    @property
    def accepted(self) -> bool:
        return self.status == CheckInStatus.CONFIRMED

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.status]

    def to_api(self) -> dict:
        if not self.accepted:
            return {"error": self.message}
        return {
            "success": True,
            "message": self.message,
            "checkpoint": self.checkpoint.name,
            "timestamp": self.log.timestamp,
        }


# -----------------------------------------------------
# Settings (singleton row)
# -----------------------------------------------------
def get_check_in_settings(session: Session) -> Tuple[float, float]:
    """(radius meters, cooldown minutes); defaults when unset."""
    row = session.exec(select(CheckInSettings).limit(1)).first()
    radius = row.radius if row is not None and row.radius is not None else settings.CHECKIN_DEFAULT_RADIUS_METERS
    window = (
        row.time_window
        if row is not None and row.time_window is not None
        else settings.CHECKIN_DEFAULT_TIME_WINDOW_MINUTES
    )
    return radius, window


def save_check_in_settings(
    session: Session,
    radius: float,
    time_window: float,
    clock: Callable[[], datetime] = utc_now,
    id_factory: Callable[[], str] = new_id,
) -> CheckInSettings:
    row = session.exec(select(CheckInSettings).limit(1)).first()
    if row is None:
        row = CheckInSettings(id=id_factory())
    row.radius = radius
    row.time_window = time_window
    row.updated_at = to_iso(clock())
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


# -----------------------------------------------------
# Recorder
# -----------------------------------------------------
class CheckInRecorder:
    """Appends immutable check-in log rows. No retries."""

    def __init__(
        self,
        session: Session,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self.session = session
        self.clock = clock
        self.id_factory = id_factory

    def record(
        self,
        user_id: str,
        checkpoint_id: str,
        latitude: float,
        longitude: float,
        at: Optional[datetime] = None,
    ) -> CheckInLog:
        entry = CheckInLog(
            id=self.id_factory(),
            user_id=user_id,
            checkpoint_id=checkpoint_id,
            latitude=latitude,
            longitude=longitude,
            timestamp=to_iso(at or self.clock()),
        )
        self.session.add(entry)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(entry)
        return entry


# -----------------------------------------------------
# Flow
# -----------------------------------------------------
class CheckInService:
    def __init__(
        self,
        session: Session,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
        atomic: Optional[bool] = None,
    ):
        self.session = session
        self.clock = clock
        self.rate_limiter = CheckInRateLimiter(session)
        self.recorder = CheckInRecorder(session, clock=clock, id_factory=id_factory)
        self.atomic = settings.CHECKIN_ATOMIC_GUARD if atomic is None else atomic

    def list_checkpoints(self) -> List[Checkpoint]:
        # Stable order so equal-distance ties resolve the same way every time
        return list(self.session.exec(select(Checkpoint).order_by(Checkpoint.created_at, Checkpoint.id)).all())

    def submit(self, user_id: str, latitude: float, longitude: float) -> CheckInOutcome:
        radius, window = get_check_in_settings(self.session)

        # Geofence
        try:
            match = nearest(latitude, longitude, self.list_checkpoints())
        except NoCheckpointsError as e:
            logger.warning(f"Check-in by {user_id} rejected: {e}")
            return CheckInOutcome(status=CheckInStatus.REJECTED_NO_CHECKPOINTS, message=str(e))

        if not match.within(radius):
            logger.info(
                f"Check-in by {user_id} rejected: {match.distance_meters:.1f}m from "
                f"'{match.checkpoint.name}' (max {format_radius(radius)}m)"
            )
            return CheckInOutcome(
                status=CheckInStatus.REJECTED_GEOFENCE,
                message=too_far_message(match.distance_meters, radius),
                checkpoint=match.checkpoint,
                distance_meters=match.distance_meters,
            )

        # Cooldown
        now = self.clock()
        if self.atomic:
            decision = self.rate_limiter.claim(user_id, match.checkpoint.id, window, now)
        else:
            decision = self.rate_limiter.check_allowed(user_id, match.checkpoint.id, window, now)

        if not decision.allowed:
            logger.info(
                f"Check-in by {user_id} at '{match.checkpoint.name}' rejected: "
                f"cooldown, {decision.wait_minutes} min left"
            )
            return CheckInOutcome(
                status=CheckInStatus.REJECTED_RATE_LIMIT,
                message=decision.message,
                checkpoint=match.checkpoint,
                distance_meters=match.distance_meters,
                wait_minutes=decision.wait_minutes,
            )

        # Record
        entry = self.recorder.record(user_id, match.checkpoint.id, latitude, longitude, at=now)
        logger.info(f"Check-in {entry.id}: user {user_id} at '{match.checkpoint.name}'")

        return CheckInOutcome(
            status=CheckInStatus.CONFIRMED,
            message=f"Checked in at {match.checkpoint.name}",
            checkpoint=match.checkpoint,
            log=entry,
            distance_meters=match.distance_meters,
        )
