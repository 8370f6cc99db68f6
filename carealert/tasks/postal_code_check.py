"""
郵便番号未入力チェック（定期実行タスク）
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
from carealert.utils.deep_link import LinkBuilder, client_detail_link

logger = logging.getLogger(__name__)


async def run_postal_code_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    郵便番号が未入力の利用者にアラートを出す

    処理内容:
    - is_active が NULL または True の利用者のうち、postal_code が NULL / 空白のものを抽出
      （CS ID が TEST_CS_ID_PREFIX で始まるテスト用利用者は除外）
    - 利用者ごとに ensure_system_alert を呼ぶ（未対応アラートがあれば作成しない）

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        link_builder: 利用者詳細URLの生成に使う LinkBuilder

    Returns:
        CheckResult

    Examples:
        >>> result = await run_postal_code_check(db=db)
        >>> logger.info(f"created={result.created}, existing={result.existing}")
    """
    links = link_builder or LinkBuilder()

    try:
        targets = await crud.cs_kaipoke_info.get_active_without_postal_code(
            db=db,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"cs_kaipoke_info select failed: {e}") from e

    result = CheckResult(scanned=len(targets))
    logger.info(f"[POSTAL_CODE] {len(targets)} clients without postal code")

    for client in targets:
        message = ja.ALERT_POSTAL_CODE_MISSING.format(
            name=client.name or ja.NAME_NOT_SET,
            cs_id=client.kaipoke_cs_id,
            url=links.url(client_detail_link(client.id)),
        )
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"postal_code:{client.kaipoke_cs_id}",
                kaipoke_cs_id=client.kaipoke_cs_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[POSTAL_CODE] Failed to ensure alert: kaipoke_cs_id={client.kaipoke_cs_id}, error={e}",
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
        f"[POSTAL_CODE] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
