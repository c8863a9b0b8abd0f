"""Session domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models_session import ServiceSession
from ...shared.constants import CameroonProvince, PaymentStatus, ServiceCategory, SessionStatus
from ...shared.validators import validate_duration, validate_rating, validate_time_hhmm


class SessionCreate(BaseModel):
    """Schema for booking a specific service"""

    serviceId: int
    sessionDate: date
    startTime: str
    duration: float
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time_hhmm(v)

    @field_validator("duration")
    @classmethod
    def validate_session_duration(cls, v):
        return validate_duration(v)


class ServiceLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class ServiceRequestCreate(BaseModel):
    """Schema for a request that an admin will assign a provider to"""

    category: ServiceCategory
    serviceDate: date
    startTime: str
    duration: float
    location: ServiceLocation
    province: CameroonProvince
    specialInstructions: Optional[str] = None
    description: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time_hhmm(v)

    @field_validator("duration")
    @classmethod
    def validate_request_duration(cls, v):
        return validate_duration(v)


class ServiceRequestResponse(BaseModel):
    message: str
    requestId: int
    estimatedCost: float


class SessionUpdate(BaseModel):
    """Schema for updating a session; omitted fields are left as they are"""

    sessionDate: Optional[date] = None
    startTime: Optional[str] = None
    duration: Optional[float] = None
    status: Optional[SessionStatus] = None
    paymentStatus: Optional[PaymentStatus] = None
    notes: Optional[str] = None
    cancellationReason: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def validate_start_time(cls, v):
        return validate_time_hhmm(v)

    @field_validator("duration")
    @classmethod
    def validate_session_duration(cls, v):
        return validate_duration(v)


class CancelSessionRequest(BaseModel):
    reason: Optional[str] = None


class DeclineAssignmentRequest(BaseModel):
    reason: Optional[str] = None


class ReviewCreate(BaseModel):
    rating: int
    review: Optional[str] = Field(None, max_length=1000)

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v):
        return validate_rating(v)


class SessionResponse(BaseModel):
    """Schema for session response"""

    id: int
    seekerId: int
    providerId: Optional[int] = None
    serviceId: int
    serviceName: str
    category: str
    sessionDate: date
    startTime: str
    endTime: str
    duration: float
    baseDuration: float
    overtimeHours: float
    basePrice: float
    overtimePrice: float
    totalAmount: float
    currency: str
    status: str
    paymentStatus: str
    notes: Optional[str] = None
    serviceLocation: Optional[str] = None
    serviceAddress: Optional[str] = None
    assignedBy: Optional[int] = None
    assignedAt: Optional[datetime] = None
    assignmentNotes: Optional[str] = None
    rejectionReason: Optional[str] = None
    rejectedAt: Optional[datetime] = None
    cancellationReason: Optional[str] = None
    cancelledBy: Optional[int] = None
    cancelledAt: Optional[datetime] = None
    seekerRating: Optional[int] = None
    seekerReview: Optional[str] = None
    providerRating: Optional[int] = None
    providerReview: Optional[str] = None
    earningsSettledAt: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationInfo(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class SessionSummary(BaseModel):
    pendingAssignment: int = 0
    pending: int = 0
    assigned: int = 0
    confirmed: int = 0
    inProgress: int = 0
    completed: int = 0
    cancelled: int = 0
    rejected: int = 0
    totalEarnings: float = 0


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]
    pagination: PaginationInfo
    summary: Optional[SessionSummary] = None


class ServiceRequestStatusResponse(BaseModel):
    requestId: int
    status: str
    category: str
    serviceDate: date
    startTime: str
    endTime: str
    duration: float
    totalAmount: float
    serviceLocation: Optional[str] = None
    serviceAddress: Optional[str] = None
    notes: Optional[str] = None
    seekerId: int
    providerId: Optional[int] = None
    assignedAt: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def to_session_response(session: ServiceSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        seekerId=session.seeker_id,
        providerId=session.provider_id,
        serviceId=session.service_id,
        serviceName=session.service_name,
        category=session.category,
        sessionDate=session.session_date,
        startTime=session.start_time,
        endTime=session.end_time,
        duration=session.duration_hours,
        baseDuration=session.base_duration,
        overtimeHours=session.overtime_hours,
        basePrice=session.base_price,
        overtimePrice=session.overtime_price,
        totalAmount=session.total_amount,
        currency=session.currency,
        status=session.status,
        paymentStatus=session.payment_status,
        notes=session.notes,
        serviceLocation=session.service_location,
        serviceAddress=session.service_address,
        assignedBy=session.assigned_by,
        assignedAt=session.assigned_at,
        assignmentNotes=session.assignment_notes,
        rejectionReason=session.rejection_reason,
        rejectedAt=session.rejected_at,
        cancellationReason=session.cancellation_reason,
        cancelledBy=session.cancelled_by,
        cancelledAt=session.cancelled_at,
        seekerRating=session.seeker_rating,
        seekerReview=session.seeker_review,
        providerRating=session.provider_rating,
        providerReview=session.provider_review,
        earningsSettledAt=session.earnings_settled_at,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )
