from typing import List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import CRUDBase, real_subject_filter
from carealert.models.cs_kaipoke_info import CsKaipokeInfo


def _is_active(column):
    # is_active が NULL の利用者は有効扱い
    return or_(column.is_(None), column.is_(True))


def _is_blank(column):
    return or_(column.is_(None), func.trim(column) == "")


class CRUDCsKaipokeInfo(CRUDBase[CsKaipokeInfo, BaseModel, BaseModel]):

    async def get_active_without_postal_code(
        self,
        db: AsyncSession,
        *,
        test_prefix: Optional[str] = None
    ) -> List[CsKaipokeInfo]:
        """有効な利用者のうち郵便番号が未入力のものを取得（テスト用利用者は除く）"""
        result = await db.execute(
            select(self.model)
            .where(
                real_subject_filter(self.model.kaipoke_cs_id, test_prefix),
                _is_active(self.model.is_active),
                _is_blank(self.model.postal_code)
            )
            .order_by(self.model.kaipoke_cs_id)
        )
        return list(result.scalars().all())

    async def get_active_without_kodoengo_plan_link(
        self,
        db: AsyncSession,
        kaipoke_cs_ids: Sequence[str]
    ) -> List[CsKaipokeInfo]:
        """指定利用者のうち、有効で行動援護 支援手順書リンクが空のものを取得"""
        if not kaipoke_cs_ids:
            return []
        result = await db.execute(
            select(self.model)
            .where(
                self.model.kaipoke_cs_id.in_(kaipoke_cs_ids),
                self.model.is_active.is_(True),
                _is_blank(self.model.kodoengo_plan_link)
            )
            .order_by(self.model.kaipoke_cs_id)
        )
        return list(result.scalars().all())

    async def get_active_without_transport_info(
        self,
        db: AsyncSession,
        kaipoke_cs_ids: Sequence[str]
    ) -> List[CsKaipokeInfo]:
        """指定利用者のうち、標準移動手段・目的のどちらかが空のものを取得"""
        if not kaipoke_cs_ids:
            return []
        result = await db.execute(
            select(self.model)
            .where(
                self.model.kaipoke_cs_id.in_(kaipoke_cs_ids),
                _is_active(self.model.is_active),
                or_(
                    _is_blank(self.model.standard_trans_ways),
                    _is_blank(self.model.standard_purpose)
                )
            )
            .order_by(self.model.kaipoke_cs_id)
        )
        return list(result.scalars().all())

    async def get_by_cs_ids(
        self,
        db: AsyncSession,
        kaipoke_cs_ids: Sequence[str],
        *,
        exclude_inactive: bool = False,
        service_kinds: Optional[Sequence[str]] = None
    ) -> List[CsKaipokeInfo]:
        """
        利用者IDの一覧から利用者を取得

        exclude_inactive=True の場合は is_active が明示的に False のものを除く。
        service_kinds を指定した場合はその種別の利用者だけに絞る。
        """
        if not kaipoke_cs_ids:
            return []
        stmt = select(self.model).where(self.model.kaipoke_cs_id.in_(kaipoke_cs_ids))
        if exclude_inactive:
            stmt = stmt.where(_is_active(self.model.is_active))
        if service_kinds is not None:
            stmt = stmt.where(self.model.service_kind.in_(service_kinds))
        result = await db.execute(stmt.order_by(self.model.kaipoke_cs_id))
        return list(result.scalars().all())


cs_kaipoke_info = CRUDCsKaipokeInfo(CsKaipokeInfo)
