from typing import Dict, List, Sequence

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import CRUDBase
from carealert.models.user_doc_master import UserDocMaster

CERTIFICATE_CATEGORY = "certificate"


class CRUDUserDocMaster(CRUDBase[UserDocMaster, BaseModel, BaseModel]):

    async def get_certificate_master(
        self,
        db: AsyncSession
    ) -> List[UserDocMaster]:
        """有効な資格マスタを表示順で取得"""
        result = await db.execute(
            select(self.model)
            .where(
                self.model.category == CERTIFICATE_CATEGORY,
                self.model.is_active.is_not(False)
            )
            .order_by(self.model.sort_order.asc(), self.model.id.asc())
        )
        return list(result.scalars().all())

    async def get_labels(
        self,
        db: AsyncSession,
        doc_ids: Sequence[str]
    ) -> Dict[str, str]:
        """書類ID → 表示名 の辞書を取得（ラベル未設定は含めない）"""
        if not doc_ids:
            return {}
        result = await db.execute(
            select(self.model.id, self.model.label).where(self.model.id.in_(doc_ids))
        )
        return {doc_id: label for doc_id, label in result.all() if doc_id and label}


user_doc_master = CRUDUserDocMaster(UserDocMaster)
