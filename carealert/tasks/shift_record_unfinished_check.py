"""
実施記録未提出チェック（定期実行タスク）
"""
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert
from carealert.utils.date_utils import local_today

logger = logging.getLogger(__name__)


async def run_shift_record_unfinished_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    today: Optional[date] = None
) -> CheckResult:
    """
    実施記録が submitted になっていない過去シフトにアラートを出す

    処理内容:
    - shift_start_date が [ALERT_MIN_SHIFT_DATE, 今日 - SHIFT_RECORD_GRACE_DAYS] のシフトを対象
    - 実施記録が未作成、または status が submitted 以外のものを抽出
    - 利用者IDが無いシフト、テスト用利用者のシフトは対象外
    - シフトごとに1件のアラートを出す

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        today: 基準日（省略時は現地時間の今日）

    Returns:
        CheckResult
    """
    grace_days = settings.SHIFT_RECORD_GRACE_DAYS
    cutoff = (today or local_today()) - timedelta(days=grace_days)
    if cutoff < settings.ALERT_MIN_SHIFT_DATE:
        logger.info(f"[SHIFT_RECORD] Cutoff {cutoff} is before {settings.ALERT_MIN_SHIFT_DATE}, nothing to check")
        return CheckResult()

    try:
        shifts = await crud.shift.get_shifts_with_record(
            db=db,
            from_date=settings.ALERT_MIN_SHIFT_DATE,
            to_date=cutoff,
            test_prefix=settings.TEST_CS_ID_PREFIX,
            unsubmitted_only=True
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"shift_records select failed: {e}") from e

    result = CheckResult(scanned=len(shifts))
    logger.info(f"[SHIFT_RECORD] {len(shifts)} unsubmitted shifts up to {cutoff}")

    for shift in shifts:
        message = ja.ALERT_SHIFT_RECORD_UNFINISHED.format(
            days=grace_days,
            cs_id=shift.kaipoke_cs_id,
            shift_id=shift.shift_id,
            date=shift.shift_start_date.isoformat(),
            time=shift.shift_start_time.strftime("%H:%M") if shift.shift_start_time else "",
            status=shift.record_status or ja.SHIFT_RECORD_STATUS_NOT_CREATED,
        )
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"shift_record_unfinished:{shift.shift_id}",
                kaipoke_cs_id=shift.kaipoke_cs_id,
                shift_id=str(shift.shift_id),
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[SHIFT_RECORD] Failed to ensure alert: shift_id={shift.shift_id}, error={e}",
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
        f"[SHIFT_RECORD] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
