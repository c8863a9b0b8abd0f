"""Enumerations shared across the marketplace domains"""

from enum import Enum


class ServiceCategory(str, Enum):
    CLEANING = "cleaning"
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    PAINTING = "painting"
    GARDENING = "gardening"
    CARPENTRY = "carpentry"
    COOKING = "cooking"
    TUTORING = "tutoring"
    BEAUTY = "beauty"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class CameroonProvince(str, Enum):
    CENTRE = "Centre"
    LITTORAL = "Littoral"
    WEST = "West"
    NORTHWEST = "Northwest"
    SOUTHWEST = "Southwest"
    SOUTH = "South"
    EAST = "East"
    NORTH = "North"
    ADAMAWA = "Adamawa"
    FAR_NORTH = "Far North"


class UserRole(str, Enum):
    SEEKER = "seeker"
    PROVIDER = "provider"
    ADMIN = "admin"


class ProviderStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class ServiceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class SessionStatus(str, Enum):
    # Admin-assignment workflow
    PENDING_ASSIGNMENT = "pending_assignment"
    ASSIGNED = "assigned"
    # Legacy workflow (provider fixed at creation)
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class LocationStatus(str, Enum):
    ON_ROUTE = "on_route"
    AT_LOCATION = "at_location"
    SERVICE_COMPLETE = "service_complete"


# Sessions in these states hold a slot on the provider's calendar
ACTIVE_SESSION_STATUSES = (
    SessionStatus.PENDING.value,
    SessionStatus.PENDING_ASSIGNMENT.value,
    SessionStatus.ASSIGNED.value,
    SessionStatus.CONFIRMED.value,
    SessionStatus.IN_PROGRESS.value,
)

TERMINAL_SESSION_STATUSES = (
    SessionStatus.COMPLETED.value,
    SessionStatus.CANCELLED.value,
    SessionStatus.REJECTED.value,
)
