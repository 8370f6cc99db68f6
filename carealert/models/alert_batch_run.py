import uuid
import datetime
from typing import Optional

from sqlalchemy import func, String, Text, DateTime, JSON, Uuid, Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base
from carealert.models.enums import BatchRunType, BatchRunStatus


class AlertBatchRun(Base):
    """アラートバッチの実行履歴"""
    __tablename__ = 'alert_batch_runs'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    batch_name: Mapped[str] = mapped_column(String(64), nullable=False)
    run_type: Mapped[BatchRunType] = mapped_column(SQLAlchemyEnum(BatchRunType), nullable=False)
    triggered_by: Mapped[Optional[str]] = mapped_column(String(64))
    status: Mapped[BatchRunStatus] = mapped_column(
        SQLAlchemyEnum(BatchRunStatus),
        nullable=False,
        default=BatchRunStatus.running
    )
    stats: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    started_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    completed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True))
