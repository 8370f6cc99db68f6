"""
AlertBatchRun CRUD操作
"""
from typing import Dict, Optional
from uuid import UUID
from datetime import datetime, timezone

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import CRUDBase
from carealert.models.alert_batch_run import AlertBatchRun
from carealert.models.enums import BatchRunStatus, BatchRunType


class CRUDAlertBatchRun(CRUDBase[AlertBatchRun, BaseModel, BaseModel]):
    """AlertBatchRun CRUD操作クラス"""

    async def create_run(
        self,
        db: AsyncSession,
        *,
        batch_name: str,
        run_type: BatchRunType,
        triggered_by: Optional[str] = None
    ) -> AlertBatchRun:
        """バッチ実行レコードを running で作成してコミット"""
        return await self.create(
            db=db,
            obj_in={
                "batch_name": batch_name,
                "run_type": run_type,
                "triggered_by": triggered_by,
                "status": BatchRunStatus.running,
                "stats": {},
            },
            auto_commit=True
        )

    async def finish_run(
        self,
        db: AsyncSession,
        *,
        run_id: UUID,
        stats: Dict[str, dict],
        error_message: Optional[str] = None
    ) -> Optional[AlertBatchRun]:
        """
        バッチ実行レコードを完了に更新

        error_message がある場合は failed、なければ completed とする。
        """
        run = await self.get(db=db, id=run_id)
        if not run:
            return None

        return await self.update(
            db=db,
            db_obj=run,
            obj_in={
                "status": BatchRunStatus.failed if error_message else BatchRunStatus.completed,
                "stats": stats,
                "error_message": error_message,
                "completed_at": datetime.now(timezone.utc),
            },
            auto_commit=True
        )


alert_batch_run = CRUDAlertBatchRun(AlertBatchRun)
