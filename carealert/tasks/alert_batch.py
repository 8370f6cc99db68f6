"""
アラートチェックのバッチ実行

登録済みのルールチェックを決まった順番で実行し、結果を alert_batch_runs に記録する。

バッチ一覧:
- alert_check_excuse: 郵便番号 → 退職者シフト → 実施記録未提出 → 移動系サービス情報
  → イベントタスク期限超過 → 相談支援 連絡先
- compliance: シフト資格 → 行動援護リンク → LW利用者グループ → 契約書・計画書
- all: 上記すべて
"""
import logging
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from carealert import crud
from carealert.core.exceptions import AlertCheckError
from carealert.messages import ja
from carealert.models.alert_batch_run import AlertBatchRun
from carealert.models.enums import BatchRunType
from carealert.schemas.alert_check import BatchRunResult, CheckResult
from carealert.tasks.cs_contract_plan_check import run_cs_contract_plan_check
from carealert.tasks.event_task_check import run_event_task_check
from carealert.tasks.kaipoke_cs_fax_check import run_kaipoke_cs_fax_check
from carealert.tasks.kodoengo_plan_link_check import run_kodoengo_plan_link_check
from carealert.tasks.lw_user_group_missing_check import run_lw_user_group_missing_check
from carealert.tasks.postal_code_check import run_postal_code_check
from carealert.tasks.resigner_shift_check import run_resigner_shift_check
from carealert.tasks.shift_cert_check import run_shift_cert_check
from carealert.tasks.shift_record_unfinished_check import run_shift_record_unfinished_check
from carealert.tasks.shift_trans_info_check import run_shift_trans_info_check

logger = logging.getLogger(__name__)

CheckFunc = Callable[..., Awaitable[CheckResult]]

ALERT_CHECKS: Dict[str, CheckFunc] = {
    "postal_code": run_postal_code_check,
    "resigner_shift": run_resigner_shift_check,
    "shift_record_unfinished": run_shift_record_unfinished_check,
    "shift_cert": run_shift_cert_check,
    "kodoengo_plan_link": run_kodoengo_plan_link_check,
    "lw_user_group_missing": run_lw_user_group_missing_check,
    "cs_contract_plan": run_cs_contract_plan_check,
    "shift_trans_info": run_shift_trans_info_check,
    "event_task": run_event_task_check,
    "kaipoke_cs_fax": run_kaipoke_cs_fax_check,
}

# from_date を受け付けるチェック
DATE_RANGE_CHECKS = frozenset({"shift_cert", "cs_contract_plan"})

ALERT_BATCHES: Dict[str, List[str]] = {
    "alert_check_excuse": [
        "postal_code", "resigner_shift", "shift_record_unfinished",
        "shift_trans_info", "event_task", "kaipoke_cs_fax",
    ],
    "compliance": ["shift_cert", "kodoengo_plan_link", "lw_user_group_missing", "cs_contract_plan"],
    "all": list(ALERT_CHECKS),
}

TOTAL_KEY = "total"


def get_check(check_name: str) -> CheckFunc:
    check = ALERT_CHECKS.get(check_name)
    if check is None:
        raise AlertCheckError(ja.ALERT_CHECK_NOT_FOUND.format(name=check_name))
    return check


async def run_alert_check(
    db: AsyncSession,
    check_name: str,
    *,
    dry_run: bool = False,
    from_date: Optional[date] = None
) -> CheckResult:
    """
    チェックを1つだけ実行する（バッチ実行レコードは作らない）

    Raises:
        AlertCheckError: 未登録のチェック名
    """
    check = get_check(check_name)
    kwargs = {"dry_run": dry_run}
    if from_date and check_name in DATE_RANGE_CHECKS:
        kwargs["from_date"] = from_date
    elif from_date:
        logger.warning(f"[ALERT_BATCH] {check_name} does not accept from_date, ignored")
    return await check(db, **kwargs)


# 実行レコードの書き込みは一時的な接続エラーのみリトライする
_bookkeeping_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(OperationalError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True
)


@_bookkeeping_retry
async def _start_run(
    db: AsyncSession,
    *,
    batch_name: str,
    run_type: BatchRunType,
    triggered_by: Optional[str]
) -> AlertBatchRun:
    try:
        return await crud.alert_batch_run.create_run(
            db=db,
            batch_name=batch_name,
            run_type=run_type,
            triggered_by=triggered_by
        )
    except SQLAlchemyError:
        await db.rollback()
        raise


@_bookkeeping_retry
async def _finish_run(
    db: AsyncSession,
    *,
    run_id,
    stats: Dict[str, dict],
    error_message: Optional[str]
) -> None:
    try:
        await crud.alert_batch_run.finish_run(
            db=db,
            run_id=run_id,
            stats=stats,
            error_message=error_message
        )
    except SQLAlchemyError:
        await db.rollback()
        raise


async def run_alert_batch(
    db: AsyncSession,
    *,
    batch_name: str,
    run_type: BatchRunType = BatchRunType.manual,
    triggered_by: Optional[str] = None,
    checks: Optional[Sequence[str]] = None,
    dry_run: bool = False
) -> BatchRunResult:
    """
    バッチを実行する

    処理内容:
    1. alert_batch_runs に running で実行レコードを作成
    2. チェックを順番に実行し、完了したものだけ stats に記録
    3. チェックが例外を送出した場合はロールバックしてエラーを記録し、残りのチェックを続行
    4. stats に total（完了したチェックの合計）を追加
    5. 実行レコードを completed / failed に更新

    実行レコードを作成できなかった場合は ok=False, batch_run_id="" を返す。

    Args:
        db: データベースセッション
        batch_name: ALERT_BATCHES に登録されたバッチ名
        run_type: manual / scheduled
        triggered_by: 実行者（手動実行時）
        checks: 実行するチェック名（省略時はバッチの既定の並び）
        dry_run: Trueの場合は各チェックをドライランで実行

    Returns:
        BatchRunResult

    Raises:
        AlertCheckError: 未登録のバッチ名・チェック名

    Examples:
        >>> result = await run_alert_batch(db=db, batch_name="alert_check_excuse")
        >>> logger.info(f"ok={result.ok}, total={result.total}")
    """
    if batch_name not in ALERT_BATCHES:
        raise AlertCheckError(ja.ALERT_BATCH_NOT_FOUND.format(name=batch_name))
    check_names = list(checks) if checks is not None else ALERT_BATCHES[batch_name]
    for check_name in check_names:
        get_check(check_name)

    try:
        run = await _start_run(
            db,
            batch_name=batch_name,
            run_type=run_type,
            triggered_by=triggered_by
        )
    except SQLAlchemyError as e:
        logger.error(f"[ALERT_BATCH] Failed to create batch run: {e}", exc_info=True)
        return BatchRunResult(ok=False, error=ja.ALERT_BATCH_RUN_CREATE_FAILED.format(error=e))

    # rollback 後は run の属性を読めない
    run_id = run.id

    logger.info(
        f"[ALERT_BATCH] Started {batch_name}: run_id={run_id}, run_type={run_type.value}, "
        f"checks={check_names}, dry_run={dry_run}"
    )

    stats: Dict[str, CheckResult] = {}
    errors: Dict[str, str] = {}
    for check_name in check_names:
        try:
            stats[check_name] = await ALERT_CHECKS[check_name](db, dry_run=dry_run)
        except Exception as e:
            logger.error(f"[ALERT_BATCH] {check_name} failed: {e}", exc_info=True)
            await db.rollback()
            errors[check_name] = str(e)

    total = CheckResult()
    for result in stats.values():
        total = total + result
    stats[TOTAL_KEY] = total

    error_message = "; ".join(f"{name}: {error}" for name, error in errors.items()) or None
    batch_result = BatchRunResult(
        ok=not errors,
        batch_run_id=str(run_id),
        stats=stats,
        errors=errors,
        error=error_message
    )

    try:
        await _finish_run(
            db,
            run_id=run_id,
            stats={name: result.model_dump() for name, result in stats.items()},
            error_message=error_message
        )
    except SQLAlchemyError as e:
        logger.error(f"[ALERT_BATCH] Failed to finish batch run {run_id}: {e}", exc_info=True)
        batch_result.ok = False
        batch_result.error = "; ".join(filter(None, [error_message, str(e)]))

    logger.info(
        f"[ALERT_BATCH] Finished {batch_name}: run_id={run_id}, ok={batch_result.ok}, "
        f"scanned={total.scanned}, created={total.created}, "
        f"existing={total.existing}, failed={total.failed}"
    )
    return batch_result
