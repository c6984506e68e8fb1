from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifeline.exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from lifeline.models import Account, AccountRole


@dataclass(frozen=True)
class OwnerRef:
    """Who a Location belongs to: exactly one of user_id / helper_id."""

    role: AccountRole
    user_id: Optional[UUID] = None
    helper_id: Optional[UUID] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.helper_id is None):
            raise ValidationError("Location owner must be exactly one of userId or helperId")
        if self.role == AccountRole.HELPER and self.helper_id is None:
            raise ValidationError("Helper owner requires a helperId")
        if self.role == AccountRole.USER and self.user_id is None:
            raise ValidationError("User owner requires a userId")

    @classmethod
    def for_user(cls, user_id: UUID) -> "OwnerRef":
        return cls(role=AccountRole.USER, user_id=user_id)

    @classmethod
    def for_helper(cls, helper_id: UUID) -> "OwnerRef":
        return cls(role=AccountRole.HELPER, helper_id=helper_id)

    @property
    def is_helper(self) -> bool:
        return self.role == AccountRole.HELPER

    @property
    def owner_id(self) -> UUID:
        return self.helper_id if self.is_helper else self.user_id


def owner_from_account(account: Account) -> OwnerRef:
    if account.role == AccountRole.HELPER:
        if account.helper_id is None:
            raise ReferentialIntegrityError(f"Account {account.id} has no helper profile")
        return OwnerRef.for_helper(account.helper_id)
    if account.user_id is None:
        raise ReferentialIntegrityError(f"Account {account.id} has no user profile")
    return OwnerRef.for_user(account.user_id)


class IdentityResolver:
    """Maps an account id to the profile a location write should target."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_role(self, account_id: UUID) -> OwnerRef:
        result = await self.session.execute(select(Account).where(Account.id == account_id))
        account = result.scalar_one_or_none()
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")
        return owner_from_account(account)
