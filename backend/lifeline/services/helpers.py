from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifeline.models import Account, Helper


@dataclass(frozen=True)
class HelperProfile:
    """Helper fields joined with the identity fields from their account."""

    helper_id: UUID
    name: str
    role: str
    phone: str
    avatar: Optional[str]
    profession: Optional[str]
    degree: Optional[str]
    response_rate: float
    rating: float
    is_verified: bool
    is_available: bool
    is_active: bool

    @property
    def is_matchable(self) -> bool:
        return self.is_active and self.is_available and self.is_verified


def _profile(helper: Helper, account: Account) -> HelperProfile:
    return HelperProfile(
        helper_id=helper.id,
        name=account.name,
        role=account.role.value,
        phone=account.phone_number,
        avatar=account.profile_image,
        profession=helper.profession,
        degree=helper.degree,
        response_rate=helper.response_rate,
        rating=helper.rating,
        is_verified=helper.is_verified,
        is_available=helper.is_available,
        is_active=helper.is_active and not account.is_blocked,
    )


class HelperDirectory:
    """Read-only view of helpers used for integrity checks and enrichment."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, helper_id: UUID) -> bool:
        result = await self.session.execute(select(Helper.id).where(Helper.id == helper_id))
        return result.scalar_one_or_none() is not None

    async def find_by_id(self, helper_id: UUID) -> Optional[HelperProfile]:
        profiles = await self.profiles_for([helper_id])
        return profiles.get(helper_id)

    async def profiles_for(self, helper_ids: Iterable[UUID]) -> dict[UUID, HelperProfile]:
        """Profiles keyed by helper id. Helpers without an account are left out."""
        ids = list({helper_id for helper_id in helper_ids if helper_id is not None})
        if not ids:
            return {}

        result = await self.session.execute(
            select(Helper, Account)
            .join(Account, Account.helper_id == Helper.id)
            .where(Helper.id.in_(ids))
        )
        return {helper.id: _profile(helper, account) for helper, account in result.all()}
