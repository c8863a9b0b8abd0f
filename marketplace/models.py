from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    role = Column(String(20), default="seeker", nullable=False, index=True)  # seeker, provider, admin
    is_active = Column(Boolean, default=True, nullable=False)

    # Provider profile (only meaningful when role == provider)
    provider_status = Column(String(20), nullable=True)  # pending, active, suspended, inactive
    service_categories = Column(JSON, default=list, nullable=True)  # ServiceCategory values
    service_areas = Column(JSON, default=list, nullable=True)  # CameroonProvince values
    average_rating = Column(Float, default=0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    experience_level = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    current_latitude = Column(Float, nullable=True)
    current_longitude = Column(Float, nullable=True)
    last_location_update = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    services = relationship("Service", back_populates="provider")


class Service(Base):
    """Catalog entry. Services without a provider are generic per-category templates."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    location = Column(String(50), nullable=True)  # CameroonProvince
    status = Column(String(20), default="active", nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("User", back_populates="services")


class SessionConfig(Base):
    """Global session pricing configuration. Exactly one row is active."""

    __tablename__ = "session_configs"

    id = Column(Integer, primary_key=True, index=True)
    default_session_duration = Column(Float, default=4, nullable=False)  # Hours
    default_overtime_increment = Column(Integer, default=30, nullable=False)  # Minutes
    currency = Column(String(10), default="FCFA", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category_pricing = relationship(
        "CategoryPricing",
        back_populates="config",
        cascade="all, delete-orphan",
        order_by="CategoryPricing.id",
    )


class CategoryPricing(Base):
    __tablename__ = "category_pricing"
    __table_args__ = (UniqueConstraint("config_id", "category", name="uq_config_category"),)

    id = Column(Integer, primary_key=True, index=True)
    config_id = Column(Integer, ForeignKey("session_configs.id"), nullable=False)
    category = Column(String(50), nullable=False)
    base_session_price = Column(Float, nullable=False)  # FCFA
    base_session_duration = Column(Float, nullable=False)  # Hours
    overtime_rate = Column(Float, nullable=False)  # FCFA per increment
    overtime_increment = Column(Integer, default=30, nullable=False)  # Minutes

    config = relationship("SessionConfig", back_populates="category_pricing")
