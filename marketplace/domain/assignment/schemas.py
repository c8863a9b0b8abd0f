"""Assignment domain schemas - Pydantic models for admin assignment"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from ...shared.constants import CameroonProvince, ServiceCategory


class AssignProviderRequest(BaseModel):
    providerId: int
    notes: Optional[str] = None


class RejectAssignmentRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    adminNotes: Optional[str] = Field(None, max_length=1000)


class RejectAssignmentResponse(BaseModel):
    message: str
    sessionId: int
    status: str
    rejectionReason: str
    adminNotes: Optional[str] = None
    rejectedAt: datetime
    rejectedBy: int


class ProviderFilters(BaseModel):
    """Optional narrowing of the provider search; defaults come from the session"""

    category: Optional[ServiceCategory] = None
    location: Optional[CameroonProvince] = None
    minRating: Optional[float] = Field(None, ge=0, le=5)
    experienceLevel: Optional[str] = None


class AvailableProvider(BaseModel):
    id: int
    fullName: Optional[str] = None
    email: str
    phoneNumber: Optional[str] = None
    averageRating: float
    totalReviews: int
    experienceLevel: Optional[str] = None
    bio: Optional[str] = None
    serviceCategories: list[str] = []
    distance: Optional[float] = None  # km, None when either point is unknown
    lastActive: Optional[datetime] = None


class AssignmentSessionInfo(BaseModel):
    id: int
    serviceName: str
    category: str
    sessionDate: date
    startTime: str
    endTime: str
    serviceLocation: Optional[str] = None
    seekerId: int


class AvailableProvidersResponse(BaseModel):
    session: AssignmentSessionInfo
    providers: list[AvailableProvider]
    totalFound: int


class AssignmentStats(BaseModel):
    pendingAssignment: int = 0
    pending: int = 0
    assigned: int = 0
    confirmed: int = 0
    inProgress: int = 0
    completed: int = 0
    cancelled: int = 0
    rejected: int = 0
