"""
ensure_system_alert（重複防止付きアラート作成）のテスト
"""
import pytest
from unittest.mock import AsyncMock, patch
from sqlalchemy import func, select

from carealert import crud
from carealert.models.alert_log import AlertLog
from carealert.models.enums import AlertStatus, AlertStatusSource, VisibleRole
from carealert.services.alert_service import build_dedup_key, ensure_system_alert


async def count_alerts(db) -> int:
    result = await db.execute(select(func.count()).select_from(AlertLog))
    return result.scalar_one()


@pytest.mark.asyncio
class TestEnsureSystemAlert:
    """アラート作成と重複防止"""

    async def test_creates_open_system_alert_with_defaults(self, db_session):
        """
        未対応アラートが無ければ open / system で作成される

        Given: アラートが1件も無い
        When: ensure_system_alert() 実行
        Then: created=True、重要度2・表示ロール manager/staff で作成される
        """
        result = await ensure_system_alert(db_session, message="テストアラート", kaipoke_cs_id="10000001")

        assert result.created is True
        alert = await crud.alert_log.get(db=db_session, id=result.id)
        assert alert.status == AlertStatus.open
        assert alert.status_source == AlertStatusSource.system
        assert alert.severity == 2
        assert alert.visible_roles == [VisibleRole.manager.value, VisibleRole.staff.value]
        assert alert.kaipoke_cs_id == "10000001"

    async def test_second_call_returns_existing_without_write(self, db_session):
        """
        同じ本文・同じ利用者で2回呼ぶと2回目は既存を返す

        Then: created は True → False、id は同じ、行は1件のまま
        """
        first = await ensure_system_alert(db_session, message="同じ違反", kaipoke_cs_id="10000001")
        second = await ensure_system_alert(db_session, message="同じ違反", kaipoke_cs_id="10000001", severity=3)

        assert first.created is True
        assert second.created is False
        assert second.id == first.id
        assert await count_alerts(db_session) == 1

        # 2回目の重要度で更新されない
        alert = await crud.alert_log.get(db=db_session, id=first.id)
        assert alert.severity == 2

    async def test_dedup_is_scoped_by_subject(self, db_session):
        """本文が同じでも利用者が違えば別のアラートになる"""
        a = await ensure_system_alert(db_session, message="共通の本文", kaipoke_cs_id="10000001")
        b = await ensure_system_alert(db_session, message="共通の本文", kaipoke_cs_id="10000002")

        assert a.created is True
        assert b.created is True
        assert a.id != b.id
        assert await count_alerts(db_session) == 2

    async def test_dedup_is_scoped_by_worker(self, db_session):
        """本文が同じでもスタッフが違えば別のアラートになる"""
        a = await ensure_system_alert(db_session, message="共通の本文", user_id="staff001")
        b = await ensure_system_alert(db_session, message="共通の本文", user_id="staff002")

        assert a.created is True
        assert b.created is True

    @pytest.mark.parametrize("closed_status", [AlertStatus.done, AlertStatus.cancelled])
    async def test_closed_alert_does_not_block_new_alert(self, db_session, closed_status):
        """
        done / cancelled にされた後に再発した場合は新しいアラートを作成する
        """
        first = await ensure_system_alert(db_session, message="再発する違反", kaipoke_cs_id="10000001")
        await crud.alert_log.update_status(
            db=db_session,
            alert_id=first.id,
            status=closed_status,
            completed_by="manager01",
            auto_commit=False
        )

        second = await ensure_system_alert(db_session, message="再発する違反", kaipoke_cs_id="10000001")

        assert second.created is True
        assert second.id != first.id
        assert await count_alerts(db_session) == 2

    @pytest.mark.parametrize("active_status", [AlertStatus.in_progress, AlertStatus.muted])
    async def test_in_progress_and_muted_still_deduplicate(self, db_session, active_status):
        first = await ensure_system_alert(db_session, message="対応中の違反", kaipoke_cs_id="10000001")
        await crud.alert_log.update_status(
            db=db_session, alert_id=first.id, status=active_status, auto_commit=False
        )

        second = await ensure_system_alert(db_session, message="対応中の違反", kaipoke_cs_id="10000001")

        assert second.created is False
        assert second.id == first.id

    async def test_manual_alert_does_not_block_system_alert(self, db_session):
        """人が手動で作成したアラートは重複判定の対象外"""
        await crud.alert_log.create(
            db=db_session,
            obj_in={
                "message": "手動アラート",
                "dedup_key": build_dedup_key("手動アラート", "10000001"),
                "visible_roles": ["manager"],
                "status_source": AlertStatusSource.manual,
            },
            auto_commit=False
        )

        result = await ensure_system_alert(db_session, message="手動アラート", kaipoke_cs_id="10000001")

        assert result.created is True

    async def test_fingerprint_keeps_series_when_message_changes(self, db_session):
        """
        fingerprint を指定すると本文の文言が変わっても同じ違反として扱う
        """
        first = await ensure_system_alert(
            db_session,
            message="シフト件数: 3 件",
            fingerprint="resigner_shift:staff001",
            user_id="staff001"
        )
        second = await ensure_system_alert(
            db_session,
            message="シフト件数: 4 件",
            fingerprint="resigner_shift:staff001",
            user_id="staff001"
        )

        assert first.created is True
        assert second.created is False
        assert second.id == first.id

    async def test_message_change_without_fingerprint_creates_new_alert(self, db_session):
        await ensure_system_alert(db_session, message="本文A", kaipoke_cs_id="10000001")
        result = await ensure_system_alert(db_session, message="本文B", kaipoke_cs_id="10000001")

        assert result.created is True

    @pytest.mark.parametrize("given, expected", [(0, 1), (1, 1), (3, 3), (9, 3)])
    async def test_severity_is_clamped(self, db_session, given, expected):
        result = await ensure_system_alert(
            db_session, message=f"重要度 {given}", kaipoke_cs_id="10000001", severity=given
        )

        alert = await crud.alert_log.get(db=db_session, id=result.id)
        assert alert.severity == expected

    async def test_visible_roles_override(self, db_session):
        result = await ensure_system_alert(
            db_session, message="管理者のみ", visible_roles=[VisibleRole.admin]
        )

        alert = await crud.alert_log.get(db=db_session, id=result.id)
        assert alert.visible_roles == ["admin"]

    async def test_dry_run_does_not_write(self, db_session):
        result = await ensure_system_alert(
            db_session, message="ドライラン", kaipoke_cs_id="10000001", dry_run=True
        )

        assert result.created is True
        assert result.id is None
        assert await count_alerts(db_session) == 0

    async def test_concurrent_insert_returns_winner(self, db_session):
        """
        検索と作成の間に別のバッチが同じ違反を作成した場合

        Given: 一意インデックスで守られた未対応アラートが既にある
        When: 検索結果が（競合により）空だったとして作成を試みる
        Then: 一意制約違反を吸収し、先に作成されたアラートを created=False で返す
        """
        winner = await crud.alert_log.create_system_alert(
            db=db_session,
            message="競合する違反",
            dedup_key=build_dedup_key("競合する違反", "10000001"),
            severity=2,
            visible_roles=["manager", "staff"],
            kaipoke_cs_id="10000001"
        )

        with patch.object(
            crud.alert_log,
            "get_active_system_alert",
            new=AsyncMock(side_effect=[None, winner])
        ):
            result = await ensure_system_alert(
                db_session, message="競合する違反", kaipoke_cs_id="10000001"
            )

        assert result.created is False
        assert result.id == winner.id
        assert await count_alerts(db_session) == 1


class TestBuildDedupKey:

    def test_same_input_same_key(self):
        assert build_dedup_key("msg", "10000001") == build_dedup_key("msg", "10000001")

    def test_subject_changes_key(self):
        assert build_dedup_key("msg", "10000001") != build_dedup_key("msg", "10000002")
        assert build_dedup_key("msg", None, "staff001") != build_dedup_key("msg", None, "staff002")

    def test_subject_and_worker_are_not_interchangeable(self):
        assert build_dedup_key("msg", "x", None) != build_dedup_key("msg", None, "x")

    def test_key_fits_column(self):
        assert len(build_dedup_key("長い本文" * 100, "10000001", "staff001")) == 64
