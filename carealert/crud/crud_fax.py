import logging
import uuid
from typing import Dict, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.models.fax import Fax

logger = logging.getLogger(__name__)


class CRUDFax:

    def __init__(self, model=Fax):
        self.model = model

    async def get_by_ids(
        self,
        db: AsyncSession,
        fax_ids: Sequence[str]
    ) -> Dict[str, Fax]:
        """
        文字列の fax.id 一覧から連絡先を取得

        UUIDとして解釈できないIDは該当レコードなしとして扱う。

        Returns:
            {渡された文字列ID: Fax}
        """
        raw_by_id: Dict[uuid.UUID, str] = {}
        for raw in fax_ids:
            try:
                raw_by_id[uuid.UUID(raw)] = raw
            except ValueError:
                logger.warning(f"[FAX] Invalid fax id: {raw!r}")
        if not raw_by_id:
            return {}

        result = await db.execute(select(self.model).where(self.model.id.in_(list(raw_by_id))))
        return {raw_by_id[row.id]: row for row in result.scalars().all()}


fax = CRUDFax()
