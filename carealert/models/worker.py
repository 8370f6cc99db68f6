import uuid
from typing import Any, Optional

from sqlalchemy import String, Integer, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class Worker(Base):
    """スタッフ（users）"""
    __tablename__ = 'users'

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    auth_user_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    last_name_kanji: Mapped[Optional[str]] = mapped_column(String(64))
    first_name_kanji: Mapped[Optional[str]] = mapped_column(String(64))
    last_name_kana: Mapped[Optional[str]] = mapped_column(String(64))
    first_name_kana: Mapped[Optional[str]] = mapped_column(String(64))
    # 在籍ステータス（removed_from_lineworks_kaipoke が最終状態）
    status: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    level: Mapped[Optional[int]] = mapped_column(Integer)

    @property
    def full_name(self) -> str:
        name = f"{self.last_name_kanji or ''} {self.first_name_kanji or ''}".strip()
        return name or self.user_id


class FormEntry(Base):
    """スタッフのエントリーフォーム（資格証などの添付ファイルを保持）"""
    __tablename__ = 'form_entries'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    auth_uid: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    # [{"id": ..., "url": ..., "type": ..., "label": ...}, ...]
    attachments: Mapped[Optional[Any]] = mapped_column(JSON)
