"""
アラートチェックAPIのテスト

テスト対象:
- GET/POST /api/v1/alert-checks/{check_name}
  - 正常系: チェック実行と集計の返却
  - 正常系: Bearer / X-Cron-Token / ?token= のいずれでも認証できる
  - 異常系: トークン無し・不一致（401）、CRON_SECRET 未設定（500）、未登録のチェック（404）
- GET/POST /api/v1/alert-batches/{batch_name}
  - 正常系: バッチ実行（200）
  - 異常系: 一部のチェックが失敗（500 で部分的な集計を返す）、未登録のバッチ（404）
"""
import pytest
from unittest.mock import patch
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.core.config import settings
from carealert.models.alert_batch_run import AlertBatchRun
from carealert.models.alert_log import AlertLog
from carealert.models.enums import BatchRunType
from carealert.tasks.alert_batch import ALERT_CHECKS

pytestmark = pytest.mark.asyncio

CHECK_URL = "/api/v1/alert-checks"
BATCH_URL = "/api/v1/alert-batches"


async def failing_check(db, **kwargs):
    raise RuntimeError("boom")


async def test_run_check_success(async_client: AsyncClient, db_session: AsyncSession, client_factory, cron_headers):
    """正常系: 郵便番号チェックを実行し、集計が返る"""
    await client_factory(postal_code=None)

    response = await async_client.post(f"{CHECK_URL}/postal_code", headers=cron_headers)

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "check": "postal_code",
        "dry_run": False,
        "result": {"scanned": 1, "created": 1, "existing": 0, "failed": 0},
    }
    alerts = (await db_session.execute(select(AlertLog))).scalars().all()
    assert len(alerts) == 1


async def test_run_check_get_and_dry_run(async_client: AsyncClient, db_session: AsyncSession, client_factory, cron_headers):
    """正常系: GET でも実行でき、dry_run では書き込まない"""
    await client_factory(postal_code=None)

    response = await async_client.get(f"{CHECK_URL}/postal_code?dry_run=true", headers=cron_headers)

    assert response.status_code == 200
    assert response.json()["dry_run"] is True
    assert response.json()["result"]["created"] == 1
    alerts = (await db_session.execute(select(AlertLog))).scalars().all()
    assert alerts == []


async def test_run_check_with_x_cron_token(async_client: AsyncClient):
    response = await async_client.post(
        f"{CHECK_URL}/postal_code", headers={"X-Cron-Token": "test-cron-secret"}
    )

    assert response.status_code == 200


async def test_run_check_with_query_token(async_client: AsyncClient):
    response = await async_client.get(f"{CHECK_URL}/postal_code?token=test-cron-secret")

    assert response.status_code == 200


async def test_run_check_with_from_date(async_client: AsyncClient, cron_headers):
    response = await async_client.post(
        f"{CHECK_URL}/shift_cert?from_date=2025-10-01&dry_run=true", headers=cron_headers
    )

    assert response.status_code == 200
    assert response.json()["check"] == "shift_cert"


async def test_run_check_without_token(async_client: AsyncClient):
    """異常系: トークン無しは401"""
    response = await async_client.post(f"{CHECK_URL}/postal_code")

    assert response.status_code == 401


@pytest.mark.parametrize("headers", [
    {"Authorization": "Bearer wrong-secret"},
    {"X-Cron-Token": "wrong-secret"},
    {"Authorization": "Basic test-cron-secret"},
])
async def test_run_check_with_wrong_token(async_client: AsyncClient, headers):
    """異常系: トークン不一致は401"""
    response = await async_client.post(f"{CHECK_URL}/postal_code", headers=headers)

    assert response.status_code == 401


async def test_run_check_without_server_secret(async_client: AsyncClient, cron_headers, monkeypatch):
    """異常系: サーバー側に CRON_SECRET が無い場合は500"""
    monkeypatch.setattr(settings, "CRON_SECRET", None)

    response = await async_client.post(f"{CHECK_URL}/postal_code", headers=cron_headers)

    assert response.status_code == 500
    assert response.json()["detail"] == "CRON_SECRET が設定されていません"


async def test_run_unknown_check(async_client: AsyncClient, cron_headers):
    """異常系: 未登録のチェック名は404"""
    response = await async_client.post(f"{CHECK_URL}/unknown_check", headers=cron_headers)

    assert response.status_code == 404
    assert "unknown_check" in response.json()["detail"]


async def test_run_check_failure_returns_500(async_client: AsyncClient, cron_headers):
    """異常系: チェックが例外を送出した場合は500"""
    with patch.dict(ALERT_CHECKS, {"postal_code": failing_check}):
        response = await async_client.post(f"{CHECK_URL}/postal_code", headers=cron_headers)

    assert response.status_code == 500
    assert response.json()["detail"] == "postal_code: boom"


async def test_run_batch_success(async_client: AsyncClient, db_session: AsyncSession, client_factory, cron_headers):
    """正常系: バッチを実行し、stats と実行レコードIDが返る"""
    await client_factory(postal_code=None)

    response = await async_client.post(f"{BATCH_URL}/alert_check_excuse", headers=cron_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["batch_run_id"]
    assert body["stats"]["postal_code"]["created"] == 1
    assert body["stats"]["total"]["created"] == 1

    run = (await db_session.execute(select(AlertBatchRun))).scalars().one()
    assert str(run.id) == body["batch_run_id"]
    assert run.run_type == BatchRunType.scheduled


async def test_run_batch_partial_failure(async_client: AsyncClient, client_factory, cron_headers):
    """異常系: 一部のチェックが失敗した場合は500で部分的な集計を返す"""
    await client_factory(postal_code=None)

    with patch.dict(ALERT_CHECKS, {"shift_record_unfinished": failing_check}):
        response = await async_client.post(f"{BATCH_URL}/alert_check_excuse", headers=cron_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["ok"] is False
    assert body["errors"] == {"shift_record_unfinished": "boom"}
    assert body["stats"]["postal_code"]["created"] == 1
    assert "shift_record_unfinished" not in body["stats"]


async def test_run_unknown_batch(async_client: AsyncClient, cron_headers):
    response = await async_client.get(f"{BATCH_URL}/nightly", headers=cron_headers)

    assert response.status_code == 404


async def test_run_batch_requires_token(async_client: AsyncClient):
    response = await async_client.post(f"{BATCH_URL}/alert_check_excuse")

    assert response.status_code == 401
