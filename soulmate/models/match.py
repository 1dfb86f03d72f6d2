import uuid
import enum
from sqlalchemy import Column, String, Text, Float, ForeignKey, TIMESTAMP, UniqueConstraint, Index, func
from sqlalchemy.dialects.postgresql import UUID
from soulmate.db.base import Base


class MatchAction(str, enum.Enum):
    LIKE = "like"
    PASS = "pass"
    SUPER_LIKE = "super_like"


class MatchStatus(str, enum.Enum):
    PENDING = "pending"
    MUTUAL = "mutual"
    REJECTED = "rejected"


class MatchBand(str, enum.Enum):
    POTENTIAL = "potential"
    GOOD = "good"
    EXCELLENT = "excellent"
    PERFECT = "perfect"


class Match(Base):
    """
    One record per unordered pair of users.

    user_a_id/user_b_id are stored in canonical order (see PairKey), so the
    action slots always refer to the same person regardless of who acted first.
    """
    __tablename__ = "matches"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    pair_key = Column(String(32), nullable=False)
    user_a_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    user_b_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Written once, when the record is created
    score = Column(Float, default=0)
    band = Column(String(20), default=MatchBand.POTENTIAL.value)
    insight = Column(Text)

    user_a_action = Column(String(20))  # None until that side acts
    user_b_action = Column(String(20))
    status = Column(String(20), default=MatchStatus.PENDING.value, nullable=False)
    ai_analysis = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), onupdate=func.now(), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('pair_key', name='uq_match_pair_key'),
        Index('ix_match_user_a_status', 'user_a_id', 'status'),
        Index('ix_match_user_b_status', 'user_b_id', 'status'),
    )
