import uuid
import datetime
from typing import Optional

from sqlalchemy import func, String, Date, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class EventTemplate(Base):
    """イベントタスクのテンプレート（モニタリング、計画更新など）"""
    __tablename__ = 'event_template'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    template_name: Mapped[str] = mapped_column(String(255), nullable=False)


class EventTask(Base):
    """利用者ごとのイベントタスク"""
    __tablename__ = 'event_tasks'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    kaipoke_cs_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    # 担当スタッフ
    user_id: Mapped[Optional[str]] = mapped_column(String(64))
    due_date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    # EventTaskStatus の値
    status: Mapped[str] = mapped_column(String(32), nullable=False, default='open')

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
