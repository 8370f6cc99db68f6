"""
アラートチェックスケジューラー

定期実行スケジュール:
- alert_check_excuse: 毎日 23:00 UTC（08:00 JST）
- compliance: 毎日 23:30 UTC（08:30 JST）
"""
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from carealert.db.session import AsyncSessionLocal
from carealert.models.enums import BatchRunType
from carealert.tasks.alert_batch import run_alert_batch

logger = logging.getLogger(__name__)

SCHEDULER_TRIGGERED_BY = "scheduler"

# スケジューラーインスタンス作成
alert_batch_scheduler = AsyncIOScheduler()


async def scheduled_alert_batch(batch_name: str):
    """
    アラートバッチのスケジュール実行

    失敗はログに残すだけで、次回の実行で冪等に再チェックされる。
    """
    async with AsyncSessionLocal() as db:
        try:
            result = await run_alert_batch(
                db=db,
                batch_name=batch_name,
                run_type=BatchRunType.scheduled,
                triggered_by=SCHEDULER_TRIGGERED_BY
            )
            total = result.total
            if result.ok:
                logger.info(
                    f"[ALERT_SCHEDULER] {batch_name} completed: run_id={result.batch_run_id}, "
                    f"scanned={total.scanned}, created={total.created}, existing={total.existing}"
                )
            else:
                logger.error(
                    f"[ALERT_SCHEDULER] {batch_name} finished with errors: "
                    f"run_id={result.batch_run_id}, error={result.error}"
                )
        except Exception as e:
            logger.error(
                f"[ALERT_SCHEDULER] {batch_name} failed: {e}",
                exc_info=True
            )


def start():
    """スケジューラーを開始"""
    alert_batch_scheduler.add_job(
        scheduled_alert_batch,
        trigger=CronTrigger(hour=23, minute=0, timezone='UTC'),
        args=["alert_check_excuse"],
        id='alert_check_excuse',
        replace_existing=True,
        name='アラートチェック（郵便番号・退職者シフト・実施記録）'
    )

    alert_batch_scheduler.add_job(
        scheduled_alert_batch,
        trigger=CronTrigger(hour=23, minute=30, timezone='UTC'),
        args=["compliance"],
        id='compliance',
        replace_existing=True,
        name='コンプライアンスチェック（資格・書類・連携グループ）'
    )

    alert_batch_scheduler.start()
    logger.info(
        "[ALERT_SCHEDULER] Started successfully\n"
        "  - alert_check_excuse: Daily at 23:00 UTC\n"
        "  - compliance: Daily at 23:30 UTC"
    )


def shutdown():
    """スケジューラーをシャットダウン"""
    alert_batch_scheduler.shutdown(wait=True)
    logger.info("[ALERT_SCHEDULER] Shutdown completed")
