"""
アラートチェックAPIエンドポイント

cron（または手動）からルールチェック・バッチを起動するためのAPI。
すべて CRON_SECRET による認証が必要。
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.api import deps
from carealert.core.exceptions import AlertCheckError, InternalServerException, NotFoundException
from carealert.models.enums import BatchRunType
from carealert.schemas.alert_check import BatchRunResult, CheckRunResponse
from carealert.tasks.alert_batch import run_alert_batch, run_alert_check

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(deps.verify_cron_token)])


@router.api_route(
    "/alert-checks/{check_name}",
    methods=["GET", "POST"],
    response_model=CheckRunResponse
)
async def run_check(
    check_name: str,
    *,
    db: AsyncSession = Depends(deps.get_db),
    dry_run: bool = Query(False),
    from_date: Optional[date] = Query(None)
) -> CheckRunResponse:
    """
    ルールチェックを1つ実行

    - check_name: postal_code / resigner_shift / shift_record_unfinished / shift_cert /
      kodoengo_plan_link / lw_user_group_missing / cs_contract_plan /
      shift_trans_info / event_task / kaipoke_cs_fax
    - dry_run: trueの場合はアラートを作成しない
    - from_date: 対象期間の開始日（shift_cert / cs_contract_plan のみ）
    """
    try:
        result = await run_alert_check(db, check_name, dry_run=dry_run, from_date=from_date)
    except AlertCheckError as e:
        raise NotFoundException(str(e))
    except Exception as e:
        logger.error(f"[ALERT_CHECK_API] {check_name} failed: {e}", exc_info=True)
        await db.rollback()
        raise InternalServerException(f"{check_name}: {e}")

    return CheckRunResponse(ok=True, check=check_name, dry_run=dry_run, result=result)


@router.api_route(
    "/alert-batches/{batch_name}",
    methods=["GET", "POST"],
    response_model=BatchRunResult
)
async def run_batch(
    batch_name: str,
    *,
    db: AsyncSession = Depends(deps.get_db),
    dry_run: bool = Query(False)
) -> JSONResponse:
    """
    アラートバッチを実行

    - batch_name: alert_check_excuse / compliance / all
    - 結果の ok に応じて 200 / 500 を返す（部分的な集計は 500 でも返す）
    """
    try:
        result = await run_alert_batch(
            db=db,
            batch_name=batch_name,
            run_type=BatchRunType.scheduled,
            dry_run=dry_run
        )
    except AlertCheckError as e:
        raise NotFoundException(str(e))

    return JSONResponse(
        status_code=status.HTTP_200_OK if result.ok else status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.model_dump(mode="json")
    )
