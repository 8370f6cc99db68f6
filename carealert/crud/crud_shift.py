"""
Shift 読み取り専用クエリ

シフトはルールチェックから参照されるだけで、更新はしない。
"""
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.crud.base import real_subject_filter
from carealert.models.shift import Shift, ShiftRecord, ShiftServiceCode
from carealert.models.cs_kaipoke_info import CsKaipokeInfo
from carealert.models.enums import ShiftRecordStatus
from carealert.schemas.shift import ShiftWithRecord


class CRUDShift:
    """Shift 参照クラス"""

    def __init__(self, model=Shift):
        self.model = model

    def _shift_with_record_stmt(self):
        return (
            select(
                Shift.shift_id,
                Shift.kaipoke_cs_id,
                CsKaipokeInfo.name.label("client_name"),
                Shift.shift_start_date,
                Shift.shift_start_time,
                Shift.shift_end_date,
                Shift.shift_end_time,
                Shift.service_code,
                Shift.staff_01_user_id,
                Shift.staff_02_user_id,
                Shift.staff_03_user_id,
                Shift.staff_02_attend_flg,
                Shift.staff_03_attend_flg,
                Shift.two_person_work_flg,
                Shift.required_staff_count,
                ShiftRecord.status.label("record_status"),
            )
            .outerjoin(ShiftRecord, ShiftRecord.shift_id == Shift.shift_id)
            .outerjoin(CsKaipokeInfo, CsKaipokeInfo.kaipoke_cs_id == Shift.kaipoke_cs_id)
        )

    async def get_shifts_with_record(
        self,
        db: AsyncSession,
        *,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        kaipoke_cs_id: Optional[str] = None,
        test_prefix: Optional[str] = None,
        unsubmitted_only: bool = False
    ) -> List[ShiftWithRecord]:
        """
        シフト＋実施記録を日付・開始時刻順に取得

        Args:
            db: データベースセッション
            from_date: shift_start_date の下限（含む）
            to_date: shift_start_date の上限（含む）
            kaipoke_cs_id: 利用者で絞り込む場合に指定
            test_prefix: 除外するテスト用利用者IDのプレフィックス
            unsubmitted_only: True の場合、実施記録が未作成または submitted 以外のみ

        Returns:
            List[ShiftWithRecord]
        """
        stmt = self._shift_with_record_stmt().where(
            real_subject_filter(Shift.kaipoke_cs_id, test_prefix)
        )
        if from_date:
            stmt = stmt.where(Shift.shift_start_date >= from_date)
        if to_date:
            stmt = stmt.where(Shift.shift_start_date <= to_date)
        if kaipoke_cs_id:
            stmt = stmt.where(Shift.kaipoke_cs_id == kaipoke_cs_id)
        if unsubmitted_only:
            stmt = stmt.where(
                or_(
                    ShiftRecord.status.is_(None),
                    ShiftRecord.status != ShiftRecordStatus.submitted.value
                )
            )
        stmt = stmt.order_by(
            Shift.shift_start_date.asc(),
            Shift.shift_start_time.asc(),
            Shift.shift_id.asc()
        )

        result = await db.execute(stmt)
        return [ShiftWithRecord.model_validate(dict(row)) for row in result.mappings().all()]

    async def get_shifts_assigned_to(
        self,
        db: AsyncSession,
        *,
        user_ids: Sequence[str],
        from_date: date,
        test_prefix: Optional[str] = None
    ) -> List[Shift]:
        """指定スタッフがいずれかのスロットに入っている from_date 以降のシフトを取得"""
        if not user_ids:
            return []

        result = await db.execute(
            select(self.model)
            .where(
                self.model.shift_start_date >= from_date,
                real_subject_filter(self.model.kaipoke_cs_id, test_prefix),
                or_(
                    self.model.staff_01_user_id.in_(user_ids),
                    self.model.staff_02_user_id.in_(user_ids),
                    self.model.staff_03_user_id.in_(user_ids)
                )
            )
            .order_by(self.model.shift_start_date.asc(), self.model.shift_id.asc())
        )
        return list(result.scalars().all())

    async def get_distinct_cs_ids(
        self,
        db: AsyncSession,
        *,
        service_code: Optional[str] = None,
        service_codes: Optional[Sequence[str]] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        test_prefix: Optional[str] = None
    ) -> List[str]:
        """
        シフトに登場する利用者IDを重複なしで取得

        service_code / service_codes でサービス、from_date / to_date で
        shift_start_date（両端を含む）を絞り込める。
        """
        stmt = (
            select(self.model.kaipoke_cs_id)
            .where(real_subject_filter(self.model.kaipoke_cs_id, test_prefix))
            .distinct()
        )
        if service_code:
            stmt = stmt.where(self.model.service_code == service_code)
        if service_codes is not None:
            stmt = stmt.where(self.model.service_code.in_(service_codes))
        if from_date:
            stmt = stmt.where(self.model.shift_start_date >= from_date)
        if to_date:
            stmt = stmt.where(self.model.shift_start_date <= to_date)

        result = await db.execute(stmt.order_by(self.model.kaipoke_cs_id))
        return [cs_id for cs_id in result.scalars().all() if cs_id]

    async def get_shifts_in_range(
        self,
        db: AsyncSession,
        *,
        from_date: date,
        to_date: date,
        test_prefix: Optional[str] = None
    ) -> List[Shift]:
        """期間内でサービスコードが設定されたシフトを取得"""
        result = await db.execute(
            select(self.model)
            .where(
                self.model.shift_start_date >= from_date,
                self.model.shift_start_date <= to_date,
                self.model.service_code.is_not(None),
                real_subject_filter(self.model.kaipoke_cs_id, test_prefix)
            )
            .order_by(self.model.shift_start_date.asc(), self.model.shift_id.asc())
        )
        return list(result.scalars().all())

    async def get_service_codes(
        self,
        db: AsyncSession,
        service_codes: Sequence[str]
    ) -> List[ShiftServiceCode]:
        """サービスコードマスタを取得"""
        if not service_codes:
            return []
        result = await db.execute(
            select(ShiftServiceCode).where(ShiftServiceCode.service_code.in_(service_codes))
        )
        return list(result.scalars().all())

    async def get_transport_service_codes(self, db: AsyncSession) -> List[str]:
        """移動系（idou_f = True）のサービスコード一覧"""
        result = await db.execute(
            select(ShiftServiceCode.service_code)
            .where(ShiftServiceCode.idou_f.is_(True))
            .order_by(ShiftServiceCode.service_code)
        )
        return list(result.scalars().all())


shift = CRUDShift()
