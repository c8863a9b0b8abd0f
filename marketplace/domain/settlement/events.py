from dataclasses import dataclass


@dataclass(frozen=True)
class SessionCompleted:
    """Published once, after the commit that moved a session into completed"""

    session_id: int
    provider_id: int
    amount: float
    currency: str
