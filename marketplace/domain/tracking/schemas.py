"""Tracking domain schemas - Pydantic models for location tracking"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...models_tracking import LocationTracking


class StartTrackingRequest(BaseModel):
    """Service point defaults to the location stored on the session"""

    providerLatitude: float = Field(..., ge=-90, le=90)
    providerLongitude: float = Field(..., ge=-180, le=180)
    serviceLatitude: Optional[float] = Field(None, ge=-90, le=90)
    serviceLongitude: Optional[float] = Field(None, ge=-180, le=180)


class LocationUpdateRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    speed: Optional[float] = Field(None, ge=0)


class GeoPoint(BaseModel):
    latitude: float
    longitude: float


class TrackingResponse(BaseModel):
    id: int
    sessionId: int
    providerId: int
    seekerId: int
    status: str
    currentLocation: GeoPoint
    serviceLocation: GeoPoint
    distanceToDestination: Optional[float] = None
    speed: Optional[float] = None
    accuracy: Optional[float] = None
    estimatedArrivalTime: Optional[datetime] = None
    arrivedAt: Optional[datetime] = None
    serviceStartedAt: Optional[datetime] = None
    serviceCompletedAt: Optional[datetime] = None
    isActive: bool


class SeekerTrackingResponse(BaseModel):
    sessionId: int
    trackingActive: bool
    message: Optional[str] = None
    providerId: Optional[int] = None
    providerName: Optional[str] = None
    providerPhone: Optional[str] = None
    status: Optional[str] = None
    providerLocation: Optional[GeoPoint] = None
    distanceToDestination: Optional[float] = None
    estimatedArrivalTime: Optional[datetime] = None
    arrivedAt: Optional[datetime] = None
    serviceStartedAt: Optional[datetime] = None


class StopTrackingResponse(BaseModel):
    message: str


def to_tracking_response(tracking: LocationTracking) -> TrackingResponse:
    return TrackingResponse(
        id=tracking.id,
        sessionId=tracking.session_id,
        providerId=tracking.provider_id,
        seekerId=tracking.seeker_id,
        status=tracking.status,
        currentLocation=GeoPoint(
            latitude=tracking.current_latitude, longitude=tracking.current_longitude
        ),
        serviceLocation=GeoPoint(
            latitude=tracking.service_latitude, longitude=tracking.service_longitude
        ),
        distanceToDestination=tracking.distance_to_destination,
        speed=tracking.speed,
        accuracy=tracking.accuracy,
        estimatedArrivalTime=tracking.estimated_arrival_time,
        arrivedAt=tracking.arrived_at,
        serviceStartedAt=tracking.service_started_at,
        serviceCompletedAt=tracking.service_completed_at,
        isActive=tracking.is_active,
    )
