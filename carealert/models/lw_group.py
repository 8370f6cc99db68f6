from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class LwGroupChannel(Base):
    """LINE WORKS グループとチャンネルの対応"""
    __tablename__ = 'group_lw_channel'

    group_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    # 利用者情報連携グループの場合は kaipoke_cs_id
    group_account: Mapped[Optional[str]] = mapped_column(String(128), index=True)
    group_type: Mapped[Optional[str]] = mapped_column(String(64))
    channel_id: Mapped[Optional[str]] = mapped_column(String(128))
