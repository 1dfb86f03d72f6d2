import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from soulmate.core.exceptions import CollaboratorUnavailable, ValidationError
from soulmate.models.match import Match, MatchStatus
from soulmate.models.user import User
from soulmate.schemas.profile import UserProfile
from soulmate.services.protocols import GeoQuery, PairKey, UserId
from soulmate.utils.geo import bounding_box

logger = logging.getLogger(__name__)


def _as_uuid(value: UserId) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class SqlMatchRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_one(self, pair_key: str) -> Optional[Match]:
        try:
            result = await self.session.execute(select(Match).where(Match.pair_key == pair_key))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable(f"Failed to load match {pair_key}") from e

    async def upsert(
        self,
        pair: PairKey,
        defaults: Optional[Dict[str, Any]],
        patch: Callable[[Match], None],
    ) -> Match:
        """
        Find-or-create plus patch in one transaction.

        The insert is a no-op when a concurrent request already created the
        pair; the row lock then serialises the two patches.
        """
        try:
            if defaults is not None:
                values = dict(defaults)
                values["user_a_id"] = _as_uuid(values.get("user_a_id", pair.user_a_id))
                values["user_b_id"] = _as_uuid(values.get("user_b_id", pair.user_b_id))
                stmt = (
                    pg_insert(Match)
                    .values(id=uuid.uuid4(), pair_key=pair.key, status=MatchStatus.PENDING.value, **values)
                    .on_conflict_do_nothing(index_elements=[Match.pair_key])
                )
                await self.session.execute(stmt)

            stmt = (
                select(Match)
                .where(Match.pair_key == pair.key)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            record = result.scalar_one_or_none()
            if record is None:
                await self.session.rollback()
                raise CollaboratorUnavailable(f"Match {pair.key} disappeared before it could be updated")

            patch(record)
            await self.session.commit()
            return record
        except SQLAlchemyError as e:
            try:
                await self.session.rollback()
            except SQLAlchemyError as rollback_err:
                logger.error(f"Error during rollback for match {pair.key}: {rollback_err}")
            raise CollaboratorUnavailable(f"Failed to upsert match {pair.key}") from e

    async def set_analysis(self, pair_key: str, analysis: str) -> None:
        try:
            await self.session.execute(
                update(Match).where(Match.pair_key == pair_key).values(ai_analysis=analysis)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            try:
                await self.session.rollback()
            except SQLAlchemyError as rollback_err:
                logger.error(f"Error during rollback for match {pair_key}: {rollback_err}")
            raise CollaboratorUnavailable(f"Failed to store analysis for match {pair_key}") from e

    async def find_mutual_for_user(self, user_id: UserId) -> List[Match]:
        uid = _as_uuid(user_id)
        stmt = (
            select(Match)
            .where(
                or_(Match.user_a_id == uid, Match.user_b_id == uid),
                Match.status == MatchStatus.MUTUAL.value,
            )
            .order_by(Match.updated_at.desc())
        )
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable(f"Failed to load matches for {user_id}") from e


class SqlUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_user_by_id(self, user_id: UserId) -> Optional[UserProfile]:
        try:
            user = await self.session.get(User, _as_uuid(user_id))
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable(f"Failed to load user {user_id}") from e
        if user is None:
            return None
        return UserProfile.from_user(user)

    async def find_candidates(self, query: GeoQuery) -> List[UserProfile]:
        """
        Active, unbanned users inside the query's bounding box.

        The box is coarse; exact distance filtering is left to the caller.
        """
        min_lat, max_lat, min_lng, max_lng = bounding_box(query.lat, query.lng, query.radius_miles)
        if min_lng <= max_lng:
            lng_filter = User.longitude.between(min_lng, max_lng)
        else:
            lng_filter = or_(User.longitude >= min_lng, User.longitude <= max_lng)

        stmt = select(User).where(
            User.is_active.is_(True),
            User.is_banned.is_(False),
            and_(User.latitude.is_not(None), User.longitude.is_not(None)),
            User.latitude.between(min_lat, max_lat),
            lng_filter,
        )
        if query.exclude_ids:
            stmt = stmt.where(User.id.not_in([_as_uuid(uid) for uid in query.exclude_ids]))
        if query.limit:
            stmt = stmt.limit(query.limit)

        try:
            result = await self.session.execute(stmt)
            users = result.scalars().all()
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable("Failed to load discovery candidates") from e

        profiles = []
        for user in users:
            try:
                profiles.append(UserProfile.from_user(user))
            except ValidationError as e:
                # One incomplete profile must not break discovery for everyone else
                logger.warning(f"Skipping candidate {user.id}: {e} {e.errors}")
        return profiles

    async def set_active(self, user_id: UserId, is_active: bool, suspended_for_review: Optional[bool] = None) -> None:
        values: Dict[str, Any] = {"is_active": is_active}
        if suspended_for_review is not None:
            values["suspended_for_review"] = suspended_for_review
        try:
            await self.session.execute(update(User).where(User.id == _as_uuid(user_id)).values(**values))
            await self.session.commit()
        except SQLAlchemyError as e:
            try:
                await self.session.rollback()
            except SQLAlchemyError as rollback_err:
                logger.error(f"Error during rollback for user {user_id}: {rollback_err}")
            raise CollaboratorUnavailable(f"Failed to update user {user_id}") from e
