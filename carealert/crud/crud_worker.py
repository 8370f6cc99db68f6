from typing import Any, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import CRUDBase
from carealert.models.worker import Worker, FormEntry


class CRUDWorker(CRUDBase[Worker, BaseModel, BaseModel]):

    async def get_by_status(
        self,
        db: AsyncSession,
        status: str
    ) -> List[Worker]:
        """在籍ステータスでスタッフを取得"""
        result = await db.execute(
            select(self.model)
            .where(self.model.status == status)
            .order_by(self.model.user_id)
        )
        return list(result.scalars().all())

    async def get_attachments(
        self,
        db: AsyncSession,
        user_id: str
    ) -> List[Any]:
        """
        スタッフのエントリーフォームに添付されたファイル一覧を取得

        user_id → auth_user_id → form_entries.attachments の順にたどる。
        どこかで見つからない場合は空リスト。
        """
        worker = await self.get(db=db, id=user_id)
        if not worker or not worker.auth_user_id:
            return []

        result = await db.execute(
            select(FormEntry.attachments)
            .where(FormEntry.auth_uid == worker.auth_user_id)
            .limit(1)
        )
        attachments: Optional[Any] = result.scalars().first()
        return attachments if isinstance(attachments, list) else []


worker = CRUDWorker(Worker)
