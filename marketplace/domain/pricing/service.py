"""Session config service - Category pricing and session price calculation"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY
from ...models import CategoryPricing, SessionConfig
from ...shared.constants import ServiceCategory
from .calculator import PricingCalculator, PricingResult
from .repository import SessionConfigRepository
from .schemas import CategoryPricingUpdate

logger = logging.getLogger(__name__)

DEFAULT_BASE_SESSION_PRICE = 3000  # FCFA for the base session
DEFAULT_BASE_SESSION_DURATION = 4  # Hours
DEFAULT_OVERTIME_RATE = 375  # FCFA per increment
DEFAULT_OVERTIME_INCREMENT = 30  # Minutes


def default_category_pricing() -> list[dict]:
    return [
        {
            "category": category.value,
            "base_session_price": DEFAULT_BASE_SESSION_PRICE,
            "base_session_duration": DEFAULT_BASE_SESSION_DURATION,
            "overtime_rate": DEFAULT_OVERTIME_RATE,
            "overtime_increment": DEFAULT_OVERTIME_INCREMENT,
        }
        for category in ServiceCategory
    ]


class SessionConfigService:
    """
    Database-backed pricing provider.

    The active configuration is read on every call so admin edits apply to
    the next price calculation without a restart.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionConfigRepository()

    def get_active_config(self) -> SessionConfig:
        """Get the active config, creating the default one on first access"""
        config = self.repo.get_active_config(self.db)
        if config:
            return config
        return self._create_default_config()

    def get_all_category_pricing(self) -> list[CategoryPricing]:
        return list(self.get_active_config().category_pricing)

    def get_category_pricing(self, category: str) -> CategoryPricing:
        category = _category_value(category)
        config = self.get_active_config()
        pricing = self.repo.get_category_pricing(self.db, config.id, category)
        if not pricing:
            raise HTTPException(
                status_code=404,
                detail=f"Pricing configuration not found for category: {category}",
            )
        return pricing

    def calculate_session_price(self, category: str, duration_hours: float) -> PricingResult:
        """Price a session of the given duration in the given category"""
        if duration_hours <= 0:
            raise HTTPException(status_code=400, detail="Duration must be greater than 0")
        return PricingCalculator(self).calculate_session_price(category, duration_hours)

    def update_category_pricing(self, category: str, data: CategoryPricingUpdate) -> SessionConfig:
        """Update one category's pricing on the active config"""
        pricing = self.get_category_pricing(category)

        updates = {
            "base_session_price": data.baseSessionPrice,
            "base_session_duration": data.baseSessionDuration,
            "overtime_rate": data.overtimeRate,
            "overtime_increment": data.overtimeIncrement,
        }
        self.repo.update_category_pricing(self.db, pricing, **updates)
        logger.info(f"💰 Pricing updated for category {pricing.category}: {data.model_dump(exclude_none=True)}")

        config = self.get_active_config()
        self.db.refresh(config)
        return config

    def _create_default_config(self) -> SessionConfig:
        logger.info("🆕 No active session config found, creating defaults")
        return self.repo.create_config(
            self.db,
            default_category_pricing(),
            default_session_duration=DEFAULT_BASE_SESSION_DURATION,
            default_overtime_increment=DEFAULT_OVERTIME_INCREMENT,
            currency=DEFAULT_CURRENCY,
            is_active=True,
            notes="Default session configuration with category-based pricing",
        )


def _category_value(category) -> str:
    return category.value if isinstance(category, ServiceCategory) else str(category)
