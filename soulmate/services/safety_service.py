import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from soulmate.config.constants import (
    SAFETY_MULTIPLE_REPORTS_THRESHOLD,
    SAFETY_NEW_ACCOUNT_HOURS,
    SAFETY_RECENT_REPORT_DAYS,
    SAFETY_RECOMMENDATIONS_HIGH,
    SAFETY_RECOMMENDATIONS_LOW,
    SAFETY_RECOMMENDATIONS_MEDIUM,
)
from soulmate.core.config import settings
from soulmate.core.exceptions import CollaboratorUnavailable, NotFoundError, SelfActionError, ValidationError
from soulmate.db.repositories import SqlUserRepository
from soulmate.models.safety_report import ReportReason, SafetyReport
from soulmate.models.user import User
from soulmate.schemas.match import RiskLevel, SafetyAnalysis, SafetyAssessment
from soulmate.services.protocols import EnrichmentProvider, UserId, UserRepository

logger = logging.getLogger(__name__)


def _as_uuid(value: UserId) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class SafetyService:
    def __init__(
        self,
        session: AsyncSession,
        ai: EnrichmentProvider,
        users: Optional[UserRepository] = None,
        timeout: Optional[float] = None,
    ):
        self.session = session
        self.ai = ai
        self.users = users or SqlUserRepository(session)
        self.timeout = timeout

    async def _analyze(self, profile_data: Dict[str, Any], messages: list) -> SafetyAnalysis:
        timeout = settings.ENRICHMENT_TIMEOUT_SECONDS if self.timeout is None else self.timeout
        try:
            return await asyncio.wait_for(self.ai.analyze_safety_risk(profile_data, messages), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Safety analysis timed out after {timeout}s")
        except Exception as e:
            logger.exception(f"Safety analysis failed: {e}")
        return SafetyAnalysis(
            risk_level=RiskLevel.UNKNOWN,
            analysis="Unable to analyze safety risks at this time.",
            requires_review=True,
        )

    async def report_user(
        self,
        reported_by: UserId,
        reported_user: UserId,
        reason: str,
        description: str,
        evidence: Optional[Dict[str, Any]] = None,
    ) -> SafetyReport:
        """
        File a report, run the AI risk analysis on it and suspend the
        reported user when the risk comes back HIGH.
        """
        if str(reported_by) == str(reported_user):
            raise SelfActionError("Cannot report yourself")
        try:
            reason_value = ReportReason(reason).value
        except ValueError:
            raise ValidationError(
                f"Unknown report reason: {reason}",
                [{"field": "reason", "message": f"must be one of {[r.value for r in ReportReason]}"}],
            )
        if not description or not description.strip():
            raise ValidationError("Report description is required", [{"field": "description", "message": "required"}])

        profile = await self.users.find_user_by_id(reported_user)
        if profile is None:
            raise NotFoundError(f"User {reported_user} not found")

        evidence = evidence or {}
        report = SafetyReport(
            reported_by_id=_as_uuid(reported_by),
            reported_user_id=_as_uuid(reported_user),
            reason=reason_value,
            description=description.strip(),
            evidence=evidence,
        )
        try:
            self.session.add(report)
            await self.session.commit()
            await self.session.refresh(report)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise CollaboratorUnavailable(f"Failed to store report against {reported_user}") from e

        analysis = await self._analyze(
            profile.model_dump(mode="json", include={"id", "first_name", "gender", "interests", "is_verified"}),
            list(evidence.get("messages") or []),
        )
        report.risk_level = analysis.risk_level.value
        report.ai_analysis = analysis.analysis
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise CollaboratorUnavailable(f"Failed to store analysis for report {report.id}") from e

        if analysis.risk_level == RiskLevel.HIGH:
            await self.users.set_active(reported_user, False, suspended_for_review=True)
            # Stands in for the safety-team e-mail
            logger.warning(f"User {reported_user} suspended for review after HIGH risk report {report.id}")

        logger.info(f"Safety report {report.id} filed against {reported_user} ({reason_value}, {analysis.risk_level.value})")
        return report

    async def check_user_safety(self, user_id: UserId) -> SafetyAssessment:
        uid = _as_uuid(user_id)
        now = datetime.now(timezone.utc)
        try:
            user = await self.session.get(User, uid)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")

            total_reports = await self.session.scalar(
                select(func.count(SafetyReport.id)).where(SafetyReport.reported_user_id == uid)
            )
            recent_reports = await self.session.scalar(
                select(func.count(SafetyReport.id)).where(
                    SafetyReport.reported_user_id == uid,
                    SafetyReport.created_at >= now - timedelta(days=SAFETY_RECENT_REPORT_DAYS),
                )
            )
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable(f"Failed to load safety data for {user_id}") from e

        created_at = user.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        risk_factors = {
            "multipleReports": (total_reports or 0) > SAFETY_MULTIPLE_REPORTS_THRESHOLD,
            "recentReports": (recent_reports or 0) > 0,
            "unverified": not user.is_verified,
            "newAccount": created_at is not None
            and created_at > now - timedelta(hours=SAFETY_NEW_ACCOUNT_HOURS),
        }
        factor_count = sum(risk_factors.values())

        if factor_count >= 3:
            risk_level, recommendations = RiskLevel.HIGH, SAFETY_RECOMMENDATIONS_HIGH
        elif factor_count >= 2:
            risk_level, recommendations = RiskLevel.MEDIUM, SAFETY_RECOMMENDATIONS_MEDIUM
        else:
            risk_level, recommendations = RiskLevel.LOW, SAFETY_RECOMMENDATIONS_LOW

        return SafetyAssessment(
            risk_level=risk_level,
            risk_factors=risk_factors,
            recommendations=list(recommendations),
        )
