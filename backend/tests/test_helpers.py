"""Tests for the helper directory."""
import uuid

from lifeline.services.helpers import HelperDirectory


class TestHelperDirectory:
    async def test_find_by_id_joins_account(self, session, make_helper):
        helper, account = await make_helper(profession="Nurse", response_rate=95)

        profile = await HelperDirectory(session).find_by_id(helper.id)

        assert profile is not None
        assert profile.helper_id == helper.id
        assert profile.name == account.name
        assert profile.phone == account.phone_number
        assert profile.role == "helper"
        assert profile.profession == "Nurse"
        assert profile.response_rate == 95
        assert profile.is_matchable is True

    async def test_find_by_id_missing(self, session):
        assert await HelperDirectory(session).find_by_id(uuid.uuid4()) is None

    async def test_find_by_id_without_account(self, session, make_helper):
        helper, _ = await make_helper(with_account=False)
        directory = HelperDirectory(session)

        assert await directory.exists(helper.id) is True
        assert await directory.find_by_id(helper.id) is None

    async def test_blocked_account_is_not_matchable(self, session, make_helper):
        helper, _ = await make_helper(is_blocked=True)
        profile = await HelperDirectory(session).find_by_id(helper.id)
        assert profile.is_active is False
        assert profile.is_matchable is False
