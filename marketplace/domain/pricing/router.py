"""Session config router - Pricing endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import CategoryPricing, SessionConfig, User
from ...shared.constants import ServiceCategory
from .schemas import (
    CategoryPricingResponse,
    CategoryPricingUpdate,
    PriceCalculationResponse,
    SessionConfigResponse,
)
from .service import SessionConfigService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session-config", tags=["Session Config"])


def get_session_config_service(db: Session = Depends(get_db)) -> SessionConfigService:
    """Dependency injection for SessionConfigService"""
    return SessionConfigService(db)


def _pricing_response(pricing: CategoryPricing) -> CategoryPricingResponse:
    return CategoryPricingResponse(
        category=pricing.category,
        baseSessionPrice=pricing.base_session_price,
        baseSessionDuration=pricing.base_session_duration,
        overtimeRate=pricing.overtime_rate,
        overtimeIncrement=pricing.overtime_increment,
    )


def _config_response(config: SessionConfig) -> SessionConfigResponse:
    return SessionConfigResponse(
        id=config.id,
        categoryPricing=[_pricing_response(p) for p in config.category_pricing],
        defaultSessionDuration=config.default_session_duration,
        defaultOvertimeIncrement=config.default_overtime_increment,
        currency=config.currency,
        isActive=config.is_active,
        notes=config.notes,
    )


@router.get("", response_model=SessionConfigResponse)
async def get_active_config(service: SessionConfigService = Depends(get_session_config_service)):
    """Get the active pricing configuration"""
    return _config_response(service.get_active_config())


@router.get("/category-pricing", response_model=list[CategoryPricingResponse])
async def get_all_category_pricing(
    service: SessionConfigService = Depends(get_session_config_service),
):
    return [_pricing_response(p) for p in service.get_all_category_pricing()]


@router.get("/category-pricing/{category}", response_model=CategoryPricingResponse)
async def get_category_pricing(
    category: ServiceCategory,
    service: SessionConfigService = Depends(get_session_config_service),
):
    return _pricing_response(service.get_category_pricing(category.value))


@router.get("/calculate-price/{category}/{duration}", response_model=PriceCalculationResponse)
async def calculate_price(
    category: ServiceCategory,
    duration: float,
    service: SessionConfigService = Depends(get_session_config_service),
):
    """Quote a session price before booking"""
    if duration <= 0:
        raise HTTPException(status_code=400, detail="Duration must be greater than 0")

    result = service.calculate_session_price(category.value, duration)
    return PriceCalculationResponse(
        category=category.value,
        duration=duration,
        basePrice=result.base_price,
        overtimePrice=result.overtime_price,
        totalPrice=result.total_price,
        baseDuration=result.base_duration,
        overtimeHours=result.overtime_hours,
        currency=service.get_active_config().currency,
    )


@router.put("/category-pricing/{category}", response_model=SessionConfigResponse)
async def update_category_pricing(
    category: ServiceCategory,
    data: CategoryPricingUpdate,
    admin: User = Depends(require_admin),
    service: SessionConfigService = Depends(get_session_config_service),
):
    """Update pricing for one category (admin only)"""
    logger.info(f"🔧 Admin {admin.id} updating pricing for {category.value}")
    return _config_response(service.update_category_pricing(category.value, data))
