"""
退職者シフト残りチェック（定期実行タスク）

カイポケから削除済み（退職）のスタッフが、今日以降のシフトに
割り当てられたままになっていないかを検出する。
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.models.shift import Shift
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert
from carealert.utils.date_utils import first_of_month, local_today
from carealert.utils.deep_link import LinkBuilder, shift_view_link

logger = logging.getLogger(__name__)


async def run_resigner_shift_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    today: Optional[date] = None,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    退職済みスタッフのシフト残りにアラートを出す

    処理内容:
    - users.status が TERMINAL_WORKER_STATUS のスタッフを抽出
    - max(今日, ALERT_MIN_SHIFT_DATE) 以降のシフトで、いずれかのスロットに
      そのスタッフが入っているものを抽出（テスト用利用者は除外）
    - スタッフごとに1件、シフト件数と最初の日付を載せたアラートを出す
    - シフト一覧リンクは基準日の月初を表示月にする

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        today: 基準日（省略時は現地時間の今日）
        link_builder: シフト一覧URLの生成に使う LinkBuilder

    Returns:
        CheckResult: scanned はシフトが残っているスタッフ数
    """
    links = link_builder or LinkBuilder()
    today = today or local_today()
    from_date = max(today, settings.ALERT_MIN_SHIFT_DATE)
    # シフト一覧は当月から表示する
    view_month = first_of_month(today).isoformat()

    try:
        workers = await crud.worker.get_by_status(db=db, status=settings.TERMINAL_WORKER_STATUS)
        worker_by_id = {w.user_id: w for w in workers}
        shifts = await crud.shift.get_shifts_assigned_to(
            db=db,
            user_ids=list(worker_by_id),
            from_date=from_date,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"resigner shift select failed: {e}") from e

    shifts_by_user: Dict[str, List[Shift]] = defaultdict(list)
    for shift in shifts:
        slots = {shift.staff_01_user_id, shift.staff_02_user_id, shift.staff_03_user_id}
        for user_id in slots:
            if user_id in worker_by_id:
                shifts_by_user[user_id].append(shift)

    result = CheckResult(scanned=len(shifts_by_user))
    logger.info(
        f"[RESIGNER_SHIFT] {len(workers)} resigned staff, "
        f"{len(shifts_by_user)} with shifts on/after {from_date}"
    )

    for user_id in sorted(shifts_by_user):
        user_shifts = shifts_by_user[user_id]
        first_date = min(s.shift_start_date for s in user_shifts)
        link = links.anchor(
            shift_view_link(user_id, view_month),
            ja.ALERT_RESIGNER_SHIFT_LINK_TEXT,
            new_tab=True
        )
        message = ja.ALERT_RESIGNER_SHIFT_REMAINING.format(
            name=worker_by_id[user_id].full_name,
            user_id=user_id,
            count=len(user_shifts),
            first_date=first_date.isoformat(),
            link=f" {link}",
        )
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"resigner_shift:{user_id}",
                severity=3,
                user_id=user_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[RESIGNER_SHIFT] Failed to ensure alert: user_id={user_id}, error={e}",
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
        f"[RESIGNER_SHIFT] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
