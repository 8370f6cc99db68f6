"""
AlertLog CRUD操作
"""
from typing import List, Optional
from uuid import UUID
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import CRUDBase
from carealert.models.alert_log import AlertLog
from carealert.models.enums import AlertStatus, AlertStatusSource, ACTIVE_ALERT_STATUSES
from carealert.schemas.alert_log import AlertLogCreate, AlertLogUpdate


class CRUDAlertLog(CRUDBase[AlertLog, AlertLogCreate, AlertLogUpdate]):
    """AlertLog CRUD操作クラス"""

    async def get_active_system_alert(
        self,
        db: AsyncSession,
        dedup_key: str
    ) -> Optional[AlertLog]:
        """
        未対応（open / in_progress / muted）のシステムアラートを dedup_key で取得

        複数存在する場合は最も古いものを返す。

        Args:
            db: データベースセッション
            dedup_key: 重複判定キー

        Returns:
            AlertLog または None
        """
        result = await db.execute(
            select(self.model)
            .where(
                self.model.status_source == AlertStatusSource.system,
                self.model.status.in_(ACTIVE_ALERT_STATUSES),
                self.model.dedup_key == dedup_key
            )
            .order_by(self.model.created_at.asc())
            .limit(1)
        )
        return result.scalars().first()

    async def create_system_alert(
        self,
        db: AsyncSession,
        *,
        message: str,
        dedup_key: str,
        severity: int,
        visible_roles: List[str],
        kaipoke_cs_id: Optional[str] = None,
        user_id: Optional[str] = None,
        shift_id: Optional[str] = None,
        rpa_request_id: Optional[str] = None
    ) -> AlertLog:
        """
        システムアラートを open で作成（flushのみ、コミットは呼び出し側）
        """
        return await self.create(
            db=db,
            obj_in={
                "message": message,
                "dedup_key": dedup_key,
                "visible_roles": list(visible_roles),
                "status": AlertStatus.open,
                "status_source": AlertStatusSource.system,
                "severity": severity,
                "kaipoke_cs_id": kaipoke_cs_id,
                "user_id": user_id,
                "shift_id": shift_id,
                "rpa_request_id": rpa_request_id,
            },
            auto_commit=False
        )

    async def get_by_subject(
        self,
        db: AsyncSession,
        kaipoke_cs_id: str
    ) -> List[AlertLog]:
        """利用者に紐づくアラート一覧を新しい順に取得"""
        result = await db.execute(
            select(self.model)
            .where(self.model.kaipoke_cs_id == kaipoke_cs_id)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        db: AsyncSession,
        alert_id: UUID,
        status: AlertStatus,
        *,
        completed_by: Optional[str] = None,
        result_comment: Optional[str] = None,
        auto_commit: bool = True
    ) -> Optional[AlertLog]:
        """
        アラートのステータスを更新（人による対応）

        done / cancelled にすると以後の重複判定から外れ、
        同じ違反が再発した場合は新しいアラートが作成される。
        """
        alert = await self.get(db=db, id=alert_id)
        if not alert:
            return None

        update_data = {"status": status}
        if status in (AlertStatus.done, AlertStatus.cancelled):
            update_data["completed_by"] = completed_by
        if result_comment is not None:
            update_data["result_comment"] = result_comment
            update_data["result_comment_by"] = completed_by
            update_data["result_comment_at"] = datetime.now(timezone.utc)

        return await self.update(db=db, db_obj=alert, obj_in=update_data, auto_commit=auto_commit)

    async def raise_severity(
        self,
        db: AsyncSession,
        alert_id: UUID,
        severity: int
    ) -> Optional[AlertLog]:
        """
        アラートの重要度を引き上げる（flushのみ、コミットは呼び出し側）

        現在の重要度以下の値では何もしない。本文・ステータスは変更しない。
        """
        alert = await self.get(db=db, id=alert_id)
        if not alert or alert.severity >= severity:
            return alert
        return await self.update(db=db, db_obj=alert, obj_in={"severity": severity}, auto_commit=False)


alert_log = CRUDAlertLog(AlertLog)
