"""
Session status transitions

Admin-assignment workflow:
    pending_assignment -> assigned -> confirmed -> in_progress -> completed
Legacy workflow (provider fixed at booking time):
    pending -> confirmed -> in_progress -> completed

completed, cancelled and rejected are terminal.
"""

from ...shared.constants import TERMINAL_SESSION_STATUSES, SessionStatus

VALID_TRANSITIONS = {
    SessionStatus.PENDING_ASSIGNMENT.value: [
        SessionStatus.ASSIGNED.value,
        SessionStatus.CONFIRMED.value,  # Auto-confirmed assignment
        SessionStatus.REJECTED.value,
        SessionStatus.CANCELLED.value,
    ],
    SessionStatus.PENDING.value: [
        SessionStatus.CONFIRMED.value,
        SessionStatus.REJECTED.value,
        SessionStatus.CANCELLED.value,
    ],
    SessionStatus.ASSIGNED.value: [
        SessionStatus.CONFIRMED.value,
        SessionStatus.REJECTED.value,
        SessionStatus.PENDING_ASSIGNMENT.value,  # Provider declined, back to the admin queue
        SessionStatus.CANCELLED.value,
    ],
    SessionStatus.CONFIRMED.value: [
        SessionStatus.IN_PROGRESS.value,
        SessionStatus.CANCELLED.value,
    ],
    SessionStatus.IN_PROGRESS.value: [
        SessionStatus.COMPLETED.value,
    ],
    SessionStatus.COMPLETED.value: [],  # Terminal state
    SessionStatus.CANCELLED.value: [],  # Terminal state
    SessionStatus.REJECTED.value: [],  # Terminal state
}

# Who may move a session into each status through a direct update. The
# assignment endpoints and tracking set statuses through their own checks.
STATUS_ACTORS = {
    SessionStatus.PENDING_ASSIGNMENT.value: {"admin"},
    SessionStatus.PENDING.value: {"admin"},
    SessionStatus.ASSIGNED.value: {"admin"},
    SessionStatus.CONFIRMED.value: {"admin", "provider"},
    SessionStatus.REJECTED.value: {"admin", "provider"},
    SessionStatus.IN_PROGRESS.value: {"admin", "provider"},
    SessionStatus.COMPLETED.value: {"admin", "provider"},
    SessionStatus.CANCELLED.value: {"admin", "provider", "seeker"},
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_SESSION_STATUSES


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate if a session status transition is allowed

    Args:
        current_status: Current session status
        new_status: Desired new status

    Returns:
        bool: True if transition is valid, False otherwise
    """
    # Allow same status (no-op)
    if current_status == new_status:
        return True

    return new_status in VALID_TRANSITIONS.get(current_status, [])


def can_set_status(new_status: str, actor: str) -> bool:
    """actor is admin, provider (the session's own provider) or seeker"""
    return actor in STATUS_ACTORS.get(new_status, set())
