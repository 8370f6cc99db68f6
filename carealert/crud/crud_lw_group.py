from typing import Sequence, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.models.lw_group import LwGroupChannel


class CRUDLwGroup:

    def __init__(self, model=LwGroupChannel):
        self.model = model

    async def get_linked_accounts(
        self,
        db: AsyncSession,
        *,
        group_type: str,
        accounts: Sequence[str]
    ) -> Set[str]:
        """指定種別のグループが存在する group_account の集合を取得"""
        if not accounts:
            return set()
        result = await db.execute(
            select(self.model.group_account)
            .where(
                self.model.group_type == group_type,
                self.model.group_account.in_(accounts)
            )
        )
        return {account for account in result.scalars().all() if account}


lw_group = CRUDLwGroup()
