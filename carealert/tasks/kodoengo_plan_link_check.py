"""
行動援護 支援手順書リンク未設定チェック（定期実行タスク）
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert
from carealert.services.service_keys import KODOENGO
from carealert.utils.deep_link import LinkBuilder, client_detail_link

logger = logging.getLogger(__name__)


async def run_kodoengo_plan_link_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    行動援護のシフトがあるのに支援手順書リンクが空の利用者にアラートを出す

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        link_builder: 利用者詳細アンカーの生成に使う LinkBuilder

    Returns:
        CheckResult
    """
    links = link_builder or LinkBuilder()

    try:
        cs_ids = await crud.shift.get_distinct_cs_ids(
            db=db,
            service_code=KODOENGO,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
        if not cs_ids:
            logger.info("[KODOENGO] No 行動援護 shifts found")
            return CheckResult()
        targets = await crud.cs_kaipoke_info.get_active_without_kodoengo_plan_link(
            db=db,
            kaipoke_cs_ids=cs_ids
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"kodoengo plan link select failed: {e}") from e

    result = CheckResult(scanned=len(targets))
    logger.info(f"[KODOENGO] {len(cs_ids)} clients with 行動援護, {len(targets)} without plan link")

    for client in targets:
        link = links.anchor(client_detail_link(client.id), client.name or ja.NAME_NOT_SET)
        try:
            ensured = await ensure_system_alert(
                db,
                message=ja.ALERT_KODOENGO_PLAN_LINK_MISSING.format(link=link),
                fingerprint=f"kodoengo_plan_link:{client.kaipoke_cs_id}",
                kaipoke_cs_id=client.kaipoke_cs_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[KODOENGO] Failed to ensure alert: kaipoke_cs_id={client.kaipoke_cs_id}, error={e}",
                exc_info=True
            )
            result.failed += 1
            continue

        if ensured.created:
            result.created += 1
        else:
            result.existing += 1

    if not dry_run:
        await db.commit()

    logger.info(
        f"[KODOENGO] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
