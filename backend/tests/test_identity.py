"""Tests for owner references and account resolution."""
import uuid

import pytest

from lifeline.exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from lifeline.models.account import Account, AccountRole
from lifeline.services.identity import IdentityResolver, OwnerRef, owner_from_account


class TestOwnerRef:
    def test_exactly_one_id(self):
        with pytest.raises(ValidationError):
            OwnerRef(role=AccountRole.USER)
        with pytest.raises(ValidationError):
            OwnerRef(role=AccountRole.USER, user_id=uuid.uuid4(), helper_id=uuid.uuid4())

    def test_role_must_match_id(self):
        with pytest.raises(ValidationError, match="Helper owner requires a helperId"):
            OwnerRef(role=AccountRole.HELPER, user_id=uuid.uuid4())

    def test_owner_id(self):
        helper_id = uuid.uuid4()
        owner = OwnerRef.for_helper(helper_id)
        assert owner.is_helper
        assert owner.owner_id == helper_id


class TestOwnerFromAccount:
    def test_helper_without_profile(self):
        account = Account(id=uuid.uuid4(), role=AccountRole.HELPER)
        with pytest.raises(ReferentialIntegrityError, match="has no helper profile"):
            owner_from_account(account)

    def test_user(self):
        user_id = uuid.uuid4()
        account = Account(id=uuid.uuid4(), role=AccountRole.USER, user_id=user_id)
        assert owner_from_account(account) == OwnerRef.for_user(user_id)


class TestIdentityResolver:
    async def test_resolves_helper(self, session, make_helper):
        helper, account = await make_helper()
        owner = await IdentityResolver(session).resolve_role(account.id)
        assert owner == OwnerRef.for_helper(helper.id)

    async def test_unknown_account(self, session):
        with pytest.raises(NotFoundError, match="not found"):
            await IdentityResolver(session).resolve_role(uuid.uuid4())
