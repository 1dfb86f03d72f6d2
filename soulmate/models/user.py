import uuid
import enum
from sqlalchemy import Column, String, Boolean, Float, Date, Index, TIMESTAMP, Text, func
from sqlalchemy.dialects.postgresql import UUID, ARRAY, JSONB
from soulmate.db.base import Base


class SubscriptionTier(str, enum.Enum):
    FREE = "free"
    PREMIUM = "premium"
    ELITE = "elite"
    PLATINUM = "platinum"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255), unique=True)
    gender = Column(String(20))        # man, woman, non-binary
    looking_for = Column(String(20))   # men, women, everyone
    birth_date = Column(Date)

    # Scoring inputs. Keys are stored camelCase as submitted by the clients.
    personality_traits = Column(JSONB, default={})
    deal_breakers = Column(JSONB, default={})
    lifestyle = Column(JSONB, default={})
    preferences = Column(JSONB, default={})
    has_kids = Column(Boolean, default=False)
    has_pets = Column(Boolean, default=False)
    interests = Column(ARRAY(Text), default=[])
    values = Column(ARRAY(Text), default=[])
    hobbies = Column(ARRAY(Text), default=[])

    latitude = Column(Float)
    longitude = Column(Float)

    subscription_tier = Column(String(20), default=SubscriptionTier.FREE.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_banned = Column(Boolean, default=False, nullable=False)
    suspended_for_review = Column(Boolean, default=False, nullable=False)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), onupdate=func.now(), server_default=func.now())

    __table_args__ = (
        Index('ix_user_active_location', 'is_active', 'latitude', 'longitude'),
    )
