"""
EventTask 読み取り専用クエリ
"""
import uuid
from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import real_subject_filter
from carealert.models.enums import OPEN_EVENT_TASK_STATUSES
from carealert.models.event_task import EventTask, EventTemplate


class CRUDEventTask:

    def __init__(self, model=EventTask):
        self.model = model

    async def get_overdue(
        self,
        db: AsyncSession,
        *,
        today: date,
        test_prefix: Optional[str] = None
    ) -> List[EventTask]:
        """
        期限（due_date）が today より前で未完了（open / in_progress）のタスクを取得

        利用者IDが無いもの、テスト用利用者のものは除く。
        """
        result = await db.execute(
            select(self.model)
            .where(
                self.model.due_date < today,
                self.model.status.in_([s.value for s in OPEN_EVENT_TASK_STATUSES]),
                real_subject_filter(self.model.kaipoke_cs_id, test_prefix)
            )
            .order_by(self.model.due_date.asc(), self.model.kaipoke_cs_id.asc())
        )
        return list(result.scalars().all())

    async def get_template_names(
        self,
        db: AsyncSession,
        template_ids: Sequence[uuid.UUID]
    ) -> Dict[uuid.UUID, str]:
        """テンプレートID → テンプレート名"""
        if not template_ids:
            return {}
        result = await db.execute(
            select(EventTemplate.id, EventTemplate.template_name)
            .where(EventTemplate.id.in_(template_ids))
        )
        return {row.id: row.template_name for row in result.all()}


event_task = CRUDEventTask()
