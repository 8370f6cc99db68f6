"""
契約書・計画書不足チェックのテスト
"""
import pytest
from datetime import date
from sqlalchemy import select

from carealert.models.alert_log import AlertLog
from carealert.schemas.alert_check import CheckResult
from carealert.services.contract_plan_service import ClientMissingDocs, MissingDoc
from carealert.tasks.cs_contract_plan_check import build_contract_plan_message, run_cs_contract_plan_check
from carealert.utils.deep_link import LinkBuilder

FROM = date(2025, 10, 1)
TO = date(2025, 10, 31)


def missing(doc_id, label):
    return MissingDoc(doc_id=doc_id, doc_label=label, requirement_types=[], required_by_services=[])


class TestBuildContractPlanMessage:

    def test_format(self):
        client = ClientMissingDocs(
            client_id="c-1",
            kaipoke_cs_id="10000001",
            name="山田太郎",
            related_service_codes=["身体介護", "家事援助", "通院等介助"],
            missing_docs=[missing("a", "居宅介護契約書"), missing("b", "居宅介護計画書")],
        )

        message = build_contract_plan_message(client, LinkBuilder("https://portal.example.com"))

        assert message == (
            '<a href="https://portal.example.com/kaipoke-info-detail/c-1">山田太郎様</a>には '
            "身体介護・家事援助サービス等を実施していますが、"
            "必要な書類（居宅介護契約書・居宅介護計画書）が利用者情報へ格納されていません。"
            "書類の作成＆サイン受領を実施してください。"
        )

    def test_defaults_when_lists_are_empty(self):
        client = ClientMissingDocs(
            client_id="c-1", kaipoke_cs_id="10000001", name="山田太郎",
            related_service_codes=[], missing_docs=[],
        )

        message = build_contract_plan_message(client, LinkBuilder("https://portal.example.com"))

        assert "各種サービス等を実施" in message
        assert "必要な書類（契約書・計画書）" in message


@pytest.mark.asyncio
class TestCsContractPlanCheck:

    async def test_creates_one_alert_per_client(
        self, db_session, client_factory, shift_factory, contract_plan_master
    ):
        client = await client_factory(kaipoke_cs_id="10000001", name="山田太郎")
        await client_factory(kaipoke_cs_id="10000002", documents=[
            {"doc_master_id": "doc-kyotaku-contract"},
            {"doc_master_id": "doc-kyotaku-plan"},
        ])
        await shift_factory("10000001", date(2025, 10, 5), service_code="身体介護")
        await shift_factory("10000001", date(2025, 10, 6), service_code="家事援助")
        await shift_factory("10000002", date(2025, 10, 5), service_code="身体介護")

        result = await run_cs_contract_plan_check(db_session, from_date=FROM, to_date=TO)

        assert result == CheckResult(scanned=3, created=1)
        alert = (await db_session.execute(select(AlertLog))).scalars().one()
        assert alert.kaipoke_cs_id == "10000001"
        assert f"/kaipoke-info-detail/{client.id}" in alert.message
        assert "居宅介護契約書・居宅介護計画書" in alert.message

    async def test_new_missing_document_keeps_single_alert(
        self, db_session, client_factory, shift_factory, contract_plan_master
    ):
        """不足書類の内容が変わっても利用者ごとに1件"""
        client = await client_factory(
            kaipoke_cs_id="10000001", documents=[{"doc_master_id": "doc-kyotaku-contract"}]
        )
        await shift_factory("10000001", date(2025, 10, 5))
        await run_cs_contract_plan_check(db_session, from_date=FROM, to_date=TO)

        client.documents = []
        await db_session.flush()
        second = await run_cs_contract_plan_check(db_session, from_date=FROM, to_date=TO)

        assert second == CheckResult(scanned=1, existing=1)

    async def test_default_range_from_today(self, db_session, client_factory, shift_factory, contract_plan_master):
        await client_factory(kaipoke_cs_id="10000001")
        await shift_factory("10000001", date(2025, 10, 20))

        near = await run_cs_contract_plan_check(db_session, today=date(2025, 10, 15), dry_run=True)
        far = await run_cs_contract_plan_check(db_session, today=date(2025, 10, 1), dry_run=True)

        assert near == CheckResult(scanned=1, created=1)
        assert far == CheckResult()
