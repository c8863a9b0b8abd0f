"""
Proximity rules applied after each provider location write
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ...config import ARRIVAL_RADIUS_METERS
from ...shared.constants import LocationStatus


class TrackingEvent(str, Enum):
    ARRIVED = "arrived"


@dataclass(frozen=True)
class ProximityPolicy:
    arrival_radius_meters: float = ARRIVAL_RADIUS_METERS

    def evaluate(self, distance_meters: Optional[float], status: str) -> Optional[TrackingEvent]:
        """ARRIVED once a provider still on route comes within the arrival radius"""
        if status != LocationStatus.ON_ROUTE.value or distance_meters is None:
            return None
        if distance_meters <= self.arrival_radius_meters:
            return TrackingEvent.ARRIVED
        return None


def estimate_arrival(
    distance_meters: Optional[float], speed: Optional[float], now: Optional[datetime] = None
) -> Optional[datetime]:
    """Straight-line ETA at the current speed (m/s); None when not moving"""
    if distance_meters is None or not speed or speed <= 0:
        return None
    now = now or datetime.utcnow()
    return now + timedelta(seconds=distance_meters / speed)
