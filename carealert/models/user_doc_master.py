from typing import Optional

from sqlalchemy import String, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class UserDocMaster(Base):
    """書類・資格マスタ"""
    __tablename__ = 'user_doc_master'

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # certificate / cs_doc など
    category: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    label: Mapped[Optional[str]] = mapped_column(String(255))
    # 資格が対応するサービス群（サービスキー）
    doc_group: Mapped[Optional[str]] = mapped_column(String(64))
    is_active: Mapped[Optional[bool]] = mapped_column(Boolean, default=True)
    sort_order: Mapped[Optional[int]] = mapped_column(Integer)
