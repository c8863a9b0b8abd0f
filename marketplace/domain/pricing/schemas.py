"""Pricing domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class CategoryPricingResponse(BaseModel):
    category: str
    baseSessionPrice: float
    baseSessionDuration: float
    overtimeRate: float
    overtimeIncrement: int


class SessionConfigResponse(BaseModel):
    id: int
    categoryPricing: list[CategoryPricingResponse]
    defaultSessionDuration: float
    defaultOvertimeIncrement: int
    currency: str
    isActive: bool
    notes: Optional[str] = None


class CategoryPricingUpdate(BaseModel):
    """Schema for an admin pricing change; omitted fields are left as they are"""

    baseSessionPrice: Optional[float] = Field(None, gt=0)
    baseSessionDuration: Optional[float] = Field(None, gt=0)
    overtimeRate: Optional[float] = Field(None, ge=0)
    overtimeIncrement: Optional[int] = Field(None, gt=0, le=240)


class PriceCalculationResponse(BaseModel):
    category: str
    duration: float
    basePrice: float
    overtimePrice: float
    totalPrice: float
    baseDuration: float
    overtimeHours: float
    currency: str
