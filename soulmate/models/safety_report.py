import uuid
import enum
from sqlalchemy import Column, String, Text, ForeignKey, Index, TIMESTAMP, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from soulmate.db.base import Base


class ReportReason(str, enum.Enum):
    INAPPROPRIATE_BEHAVIOR = "inappropriate_behavior"
    HARASSMENT = "harassment"
    FAKE_PROFILE = "fake_profile"
    SPAM = "spam"
    ABUSE = "abuse"
    CATFISH = "catfish"
    UNDERAGE = "underage"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    INVESTIGATING = "investigating"
    RESOLVED_BANNED = "resolved_banned"
    RESOLVED_WARNING = "resolved_warning"
    RESOLVED_DISMISSED = "resolved_dismissed"


class SafetyReport(Base):
    __tablename__ = "safety_reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reported_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    reported_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    reason = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    evidence = Column(JSONB, default={})  # screenshots, messages, additional_info
    status = Column(String(50), default=ReportStatus.PENDING.value, nullable=False)

    risk_level = Column(String(20))
    ai_analysis = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), onupdate=func.now(), server_default=func.now())

    reported_user = relationship("User", foreign_keys=[reported_user_id])

    __table_args__ = (
        Index('ix_safety_report_user_status', 'reported_user_id', 'status'),
    )
