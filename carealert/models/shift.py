import uuid
import datetime
from typing import Optional

from sqlalchemy import (
    func, String, Date, Time, DateTime, Boolean, Integer, ForeignKey, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class Shift(Base):
    """シフト（1回の訪問予定）"""
    __tablename__ = 'shift'

    shift_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kaipoke_cs_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    shift_start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    shift_start_time: Mapped[Optional[datetime.time]] = mapped_column(Time)
    shift_end_date: Mapped[Optional[datetime.date]] = mapped_column(Date)
    shift_end_time: Mapped[Optional[datetime.time]] = mapped_column(Time)
    service_code: Mapped[Optional[str]] = mapped_column(String(64))

    staff_01_user_id: Mapped[Optional[str]] = mapped_column(String(64))
    staff_02_user_id: Mapped[Optional[str]] = mapped_column(String(64))
    staff_03_user_id: Mapped[Optional[str]] = mapped_column(String(64))
    staff_02_attend_flg: Mapped[Optional[bool]] = mapped_column(Boolean)
    staff_03_attend_flg: Mapped[Optional[bool]] = mapped_column(Boolean)

    two_person_work_flg: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    required_staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )


class ShiftRecord(Base):
    """訪問記録（実施記録）"""
    __tablename__ = 'shift_records'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    shift_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('shift.shift_id', ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    status: Mapped[Optional[str]] = mapped_column(String(32))
    created_by: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )


class ShiftServiceCode(Base):
    """サービスコードマスタ（必要な契約書・計画書の書類ID、移動系フラグを保持）"""
    __tablename__ = 'shift_service_code'

    service_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    # user_doc_master.id
    contract_required: Mapped[Optional[str]] = mapped_column(String(64))
    plan_required: Mapped[Optional[str]] = mapped_column(String(64))
    # 移動系サービス（移動支援・同行援護など）
    idou_f: Mapped[Optional[bool]] = mapped_column(Boolean)
