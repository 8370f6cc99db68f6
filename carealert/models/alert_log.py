import uuid
import datetime
from typing import List, Optional

from sqlalchemy import (
    func, text, String, Text, DateTime, Integer, Index, JSON, Uuid,
    Enum as SQLAlchemyEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base
from carealert.models.enums import AlertStatus, AlertStatusSource

# 未対応のシステムアラートは dedup_key ごとに1件のみ
_ACTIVE_SYSTEM_ALERT_WHERE = text(
    "status_source = 'system' AND status IN ('open', 'in_progress', 'muted')"
)


class AlertLog(Base):
    """アラート（alert_log）"""
    __tablename__ = 'alert_log'
    __table_args__ = (
        Index(
            'uq_alert_log_active_system_dedup_key',
            'dedup_key',
            unique=True,
            postgresql_where=_ACTIVE_SYSTEM_ALERT_WHERE,
            sqlite_where=_ACTIVE_SYSTEM_ALERT_WHERE,
        ),
        Index('idx_alert_log_kaipoke_cs_id', 'kaipoke_cs_id'),
        Index('idx_alert_log_status', 'status'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    # 違反の同一性を表すキー（fingerprint または message と対象者から算出）
    dedup_key: Mapped[Optional[str]] = mapped_column(String(64))
    visible_roles: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[AlertStatus] = mapped_column(
        SQLAlchemyEnum(AlertStatus),
        nullable=False,
        default=AlertStatus.open
    )
    status_source: Mapped[AlertStatusSource] = mapped_column(
        SQLAlchemyEnum(AlertStatusSource),
        nullable=False,
        default=AlertStatusSource.manual
    )
    severity: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    kaipoke_cs_id: Mapped[Optional[str]] = mapped_column(String(64))
    user_id: Mapped[Optional[str]] = mapped_column(String(64))
    shift_id: Mapped[Optional[str]] = mapped_column(String(64))
    rpa_request_id: Mapped[Optional[str]] = mapped_column(String(64))

    result_comment: Mapped[Optional[str]] = mapped_column(Text)
    result_comment_by: Mapped[Optional[str]] = mapped_column(String(64))
    result_comment_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[Optional[str]] = mapped_column(String(64))
    assigned_to: Mapped[Optional[str]] = mapped_column(String(64))
    completed_by: Mapped[Optional[str]] = mapped_column(String(64))

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
