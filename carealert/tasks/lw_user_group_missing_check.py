"""
LINE WORKS 利用者様情報連携グループ未作成チェック（定期実行タスク）
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert

logger = logging.getLogger(__name__)


async def run_lw_user_group_missing_check(
    db: AsyncSession,
    *,
    dry_run: bool = False
) -> CheckResult:
    """
    シフトに登場するのに情報連携グループが無い利用者にアラートを出す

    処理内容:
    - シフトに登場する利用者ID（NULL・テスト用を除く）を重複なしで取得
    - group_lw_channel に group_type = LW_USER_GROUP_TYPE かつ
      group_account = 利用者ID の行が無いものを抽出
    - is_active が False の利用者は対象外

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える

    Returns:
        CheckResult
    """
    try:
        cs_ids = await crud.shift.get_distinct_cs_ids(db=db, test_prefix=settings.TEST_CS_ID_PREFIX)
        if not cs_ids:
            logger.info("[LW_GROUP] No clients found in shifts")
            return CheckResult()

        linked = await crud.lw_group.get_linked_accounts(
            db=db,
            group_type=settings.LW_USER_GROUP_TYPE,
            accounts=cs_ids
        )
        missing_ids = [cs_id for cs_id in cs_ids if cs_id not in linked]
        if not missing_ids:
            logger.info("[LW_GROUP] All user groups exist")
            return CheckResult()

        targets = await crud.cs_kaipoke_info.get_by_cs_ids(
            db=db,
            kaipoke_cs_ids=missing_ids,
            exclude_inactive=True
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"lw user group select failed: {e}") from e

    result = CheckResult(scanned=len(targets))
    logger.info(f"[LW_GROUP] {len(targets)} clients without user group")

    for client in targets:
        message = ja.ALERT_LW_USER_GROUP_MISSING.format(
            name=client.name or ja.NAME_NOT_SET,
            cs_id=client.kaipoke_cs_id,
        )
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"lw_user_group_missing:{client.kaipoke_cs_id}",
                kaipoke_cs_id=client.kaipoke_cs_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[LW_GROUP] Failed to ensure alert: kaipoke_cs_id={client.kaipoke_cs_id}, error={e}",
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
        f"[LW_GROUP] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
