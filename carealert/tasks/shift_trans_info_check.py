"""
移動系サービス情報未設定チェック（定期実行タスク）

移動系サービス（shift_service_code.idou_f = True）のシフトがある利用者について、
標準移動手段・目的が利用者情報に登録されているかを確認する。
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
from carealert.utils.date_utils import add_months, local_today
from carealert.utils.deep_link import LinkBuilder, client_detail_link

logger = logging.getLogger(__name__)


async def run_shift_trans_info_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    today: Optional[date] = None,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    移動系サービスを利用しているのに標準移動手段・目的が空の利用者にアラートを出す

    処理内容:
    - idou_f = True のサービスコードを取得（無ければ何もしない）
    - 今日の SHIFT_TRANS_INFO_LOOKBACK_MONTHS か月前 〜 今日＋SHIFT_TRANS_INFO_LOOKAHEAD_DAYS 日の
      該当サービスのシフトから利用者を抽出（テスト用利用者は除外）
    - is_active が False 以外で、standard_trans_ways / standard_purpose のどちらかが
      NULL / 空白の利用者ごとにアラートを出す

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        today: 基準日（省略時は現地時間の今日）
        link_builder: 利用者詳細URLの生成に使う LinkBuilder

    Returns:
        CheckResult
    """
    links = link_builder or LinkBuilder()
    today = today or local_today()
    from_date = add_months(today, -settings.SHIFT_TRANS_INFO_LOOKBACK_MONTHS)
    to_date = today + timedelta(days=settings.SHIFT_TRANS_INFO_LOOKAHEAD_DAYS)

    try:
        service_codes = await crud.shift.get_transport_service_codes(db=db)
        if not service_codes:
            logger.info("[SHIFT_TRANS_INFO] No transport service codes (idou_f = True)")
            return CheckResult()
        cs_ids = await crud.shift.get_distinct_cs_ids(
            db=db,
            service_codes=service_codes,
            from_date=from_date,
            to_date=to_date,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
        targets = await crud.cs_kaipoke_info.get_active_without_transport_info(
            db=db,
            kaipoke_cs_ids=cs_ids
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"shift trans info select failed: {e}") from e

    result = CheckResult(scanned=len(targets))
    logger.info(
        f"[SHIFT_TRANS_INFO] {len(cs_ids)} clients with transport shifts {from_date}..{to_date}, "
        f"{len(targets)} without standard transport info"
    )

    for client in targets:
        message = ja.ALERT_SHIFT_TRANS_INFO_MISSING.format(
            name=client.name or ja.NAME_NOT_SET,
            cs_id=client.kaipoke_cs_id,
            url=links.url(client_detail_link(client.id)),
        )
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"shift_trans_info:{client.kaipoke_cs_id}",
                kaipoke_cs_id=client.kaipoke_cs_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[SHIFT_TRANS_INFO] Failed to ensure alert: kaipoke_cs_id={client.kaipoke_cs_id}, error={e}",
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
        f"[SHIFT_TRANS_INFO] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
