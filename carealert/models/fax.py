import uuid
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carealert.db.base import Base


class Fax(Base):
    """連携先事業所の連絡先（相談支援事業所など）"""
    __tablename__ = 'fax'

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    fax: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(String(255))
    office_name: Mapped[Optional[str]] = mapped_column(String(255))
    service_kind: Mapped[Optional[str]] = mapped_column(String(32))
    postal_code: Mapped[Optional[str]] = mapped_column(String(16))
