import uuid
import datetime
from typing import Any, Optional

from sqlalchemy import func, String, Text, Date, DateTime, Boolean, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class CsKaipokeInfo(Base):
    """利用者（カイポケ連携の利用者マスタ）"""
    __tablename__ = 'cs_kaipoke_info'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    kaipoke_cs_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    postal_code: Mapped[Optional[str]] = mapped_column(String(16))
    # NULL は有効扱い
    is_active: Mapped[Optional[bool]] = mapped_column(Boolean)
    end_at: Mapped[Optional[datetime.date]] = mapped_column(Date)
    # 移動系サービスの標準移動手段・目的
    standard_trans_ways: Mapped[Optional[str]] = mapped_column(Text)
    standard_purpose: Mapped[Optional[str]] = mapped_column(Text)
    # 要介護 / 要支援 / 障害 など
    service_kind: Mapped[Optional[str]] = mapped_column(String(32))
    # 相談支援事業所（fax.id）
    care_consultant: Mapped[Optional[str]] = mapped_column(String(64))
    # 行動援護 支援手順書のURL
    kodoengo_plan_link: Mapped[Optional[str]] = mapped_column(Text)
    # 格納済み書類（[{"doc_master_id": ..., "url": ...}, ...]）
    documents: Mapped[Optional[Any]] = mapped_column(JSON)

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
