"""
Earnings settlement for completed sessions

The completing request claims the settlement (stamps earnings_settled_at) and
hands the SessionCompleted event to a background task. The wallet call runs
after the response is sent; a wallet failure is logged and dropped and never
rolls back or delays the completion itself.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models_session import ServiceSession
from ...shared.constants import PaymentStatus, SessionStatus
from .events import SessionCompleted
from .wallet_client import WalletClient, WalletNotConfigured

logger = logging.getLogger(__name__)

UNSETTLED_PAYMENT_STATUSES = (PaymentStatus.FAILED.value, PaymentStatus.REFUNDED.value)


class EarningsSettlement:
    """Delivers SessionCompleted events to the wallet"""

    def __init__(
        self,
        wallet: Optional[WalletClient] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self.wallet = wallet or WalletClient()
        self.background_tasks = background_tasks if background_tasks is not None else BackgroundTasks()

    def dispatch(self, event: SessionCompleted) -> None:
        """Queue the event; it is published once the response has been sent"""
        self.background_tasks.add_task(self.publish, event)

    async def publish(self, event: SessionCompleted) -> bool:
        """Returns True when the wallet accepted the earning. Never raises."""
        logger.info(
            f"💸 Settling session {event.session_id}: {event.amount} {event.currency} "
            f"to provider {event.provider_id}"
        )
        try:
            await self.wallet.process_earning(
                event.provider_id, event.session_id, event.amount, event.currency
            )
        except WalletNotConfigured:
            logger.warning(f"⚠️ Wallet service not configured, skipping settlement for session {event.session_id}")
            return False
        except Exception as e:
            logger.error(f"❌ Failed to settle earnings for session {event.session_id}: {str(e)}")
            return False

        logger.info(f"✅ Earnings settled for session {event.session_id}")
        return True


def settle_completed_session(
    db: Session, session: ServiceSession, publisher: EarningsSettlement
) -> bool:
    """
    Claim the settlement of a committed completion and dispatch SessionCompleted.

    Callers invoke this only on a transition into completed. The
    earnings_settled_at stamp is committed before the event is queued, so
    repeated calls for the same session are a no-op and the event goes out at
    most once. The wallet deduplicates on session id as well.
    """
    if session.status != SessionStatus.COMPLETED.value:
        return False
    if session.earnings_settled_at is not None:
        logger.info(f"ℹ️ Session {session.id} already settled at {session.earnings_settled_at}")
        return False
    if session.provider_id is None:
        logger.warning(f"⚠️ Session {session.id} completed without a provider, nothing to settle")
        return False
    if session.payment_status in UNSETTLED_PAYMENT_STATUSES:
        logger.warning(
            f"⚠️ Session {session.id} has payment status {session.payment_status}, skipping settlement"
        )
        return False

    session.earnings_settled_at = datetime.utcnow()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to record settlement for session {session.id}: {str(e)}")
        return False

    db.refresh(session)
    publisher.dispatch(
        SessionCompleted(
            session_id=session.id,
            provider_id=session.provider_id,
            amount=session.total_amount,
            currency=session.currency,
        )
    )
    return True


def get_earnings_settlement(background_tasks: BackgroundTasks) -> EarningsSettlement:
    """Dependency injection for EarningsSettlement, bound to the request's background tasks"""
    return EarningsSettlement(background_tasks=background_tasks)
