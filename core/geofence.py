# core/geofence.py

import math
from dataclasses import dataclass
from typing import Any, Sequence

EARTH_RADIUS_KM = 6371


class NoCheckpointsError(Exception):
    """No checkpoints are configured; a setup problem, not a user error."""


@dataclass(frozen=True)
class GeofenceMatch:
    checkpoint: Any
    distance_meters: float

    def within(self, radius_meters: float) -> bool:
        return self.distance_meters <= radius_meters


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two lat/lon points (degrees)."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c * 1000


def nearest(latitude: float, longitude: float, checkpoints: Sequence[Any]) -> GeofenceMatch:
    """
    Linear scan for the closest checkpoint. Checkpoints only need
    ``latitude`` / ``longitude`` attributes. On equal distances the first
    one in input order is kept.
    """
    if not checkpoints:
        raise NoCheckpointsError("No checkpoints defined")

    best = None
    best_distance = math.inf
    for checkpoint in checkpoints:
        distance = haversine_meters(latitude, longitude, checkpoint.latitude, checkpoint.longitude)
        if distance < best_distance:
            best = checkpoint
            best_distance = distance

    return GeofenceMatch(checkpoint=best, distance_meters=best_distance)


def format_radius(radius_meters: float):
    # Whole radii print without a decimal point or exponent
    return int(radius_meters) if radius_meters == int(radius_meters) else radius_meters


def too_far_message(distance_meters: float, radius_meters: float) -> str:
    return (
        f"You are too far from any checkpoint. "
        f"Nearest is {math.floor(distance_meters + 0.5)}m away (Max {format_radius(radius_meters)}m)."
    )
