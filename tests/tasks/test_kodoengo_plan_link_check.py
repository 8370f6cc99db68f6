"""
行動援護 支援手順書リンク未設定チェックのテスト
"""
import pytest
from datetime import date
from sqlalchemy import select

from carealert.models.alert_log import AlertLog
from carealert.schemas.alert_check import CheckResult
from carealert.tasks.kodoengo_plan_link_check import run_kodoengo_plan_link_check


@pytest.mark.asyncio
class TestKodoengoPlanLinkCheck:

    async def test_client_with_kodoengo_shift_and_no_link(self, db_session, client_factory, shift_factory):
        client = await client_factory(kaipoke_cs_id="10000001", name="鈴木次郎")
        await client_factory(kaipoke_cs_id="10000002", kodoengo_plan_link="https://docs.example.com/plan")
        await client_factory(kaipoke_cs_id="10000003")
        await shift_factory("10000001", date(2025, 10, 1), service_code="行動援護")
        await shift_factory("10000002", date(2025, 10, 1), service_code="行動援護")
        await shift_factory("10000003", date(2025, 10, 1), service_code="身体介護")

        result = await run_kodoengo_plan_link_check(db_session)

        assert result == CheckResult(scanned=1, created=1)
        alert = (await db_session.execute(select(AlertLog))).scalars().one()
        assert alert.kaipoke_cs_id == "10000001"
        assert alert.message.startswith("【行動援護 支援手順書リンク無】 <a href=")
        assert f"/kaipoke-info-detail/{client.id}" in alert.message
        assert ">鈴木次郎</a>" in alert.message

    async def test_inactive_or_unset_active_client_is_ignored(self, db_session, client_factory, shift_factory):
        await client_factory(kaipoke_cs_id="10000001", is_active=False)
        await client_factory(kaipoke_cs_id="10000002", is_active=None)
        await shift_factory("10000001", date(2025, 10, 1), service_code="行動援護")
        await shift_factory("10000002", date(2025, 10, 1), service_code="行動援護")

        result = await run_kodoengo_plan_link_check(db_session)

        assert result == CheckResult()

    async def test_blank_link_counts_as_missing(self, db_session, client_factory, shift_factory):
        await client_factory(kaipoke_cs_id="10000001", kodoengo_plan_link="  ")
        await shift_factory("10000001", date(2025, 10, 1), service_code="行動援護")

        result = await run_kodoengo_plan_link_check(db_session)

        assert result.created == 1

    async def test_no_kodoengo_shifts(self, db_session, client_factory):
        await client_factory()

        assert await run_kodoengo_plan_link_check(db_session) == CheckResult()
