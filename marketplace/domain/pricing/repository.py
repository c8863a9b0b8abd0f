"""Session config repository - Database operations for pricing configuration"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import CategoryPricing, SessionConfig


class SessionConfigRepository:
    """Repository for session configuration database operations"""

    @staticmethod
    def get_active_config(db: Session) -> Optional[SessionConfig]:
        """Get the active configuration, newest first if several are flagged"""
        return (
            db.query(SessionConfig)
            .filter(SessionConfig.is_active.is_(True))
            .order_by(SessionConfig.id.desc())
            .first()
        )

    @staticmethod
    def create_config(db: Session, category_pricing: list[dict], **config_data) -> SessionConfig:
        """Create a configuration together with its category pricing rows"""
        config = SessionConfig(**config_data)
        config.category_pricing = [CategoryPricing(**row) for row in category_pricing]
        db.add(config)
        db.commit()
        db.refresh(config)
        return config

    @staticmethod
    def get_category_pricing(
        db: Session, config_id: int, category: str
    ) -> Optional[CategoryPricing]:
        return (
            db.query(CategoryPricing)
            .filter(CategoryPricing.config_id == config_id, CategoryPricing.category == category)
            .first()
        )

    @staticmethod
    def update_category_pricing(
        db: Session, pricing: CategoryPricing, **updates
    ) -> CategoryPricing:
        for key, value in updates.items():
            if value is not None and hasattr(pricing, key):
                setattr(pricing, key, value)

        db.commit()
        db.refresh(pricing)
        return pricing
