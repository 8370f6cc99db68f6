"""
シフト資格チェック（定期実行タスク）

訪問スタッフの保有資格がシフトのサービスに足りているかを判定し、
不足しているシフトにアラートを出す。
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.schemas.alert_check import CheckResult
from carealert.schemas.shift import ShiftCertJudgement, ShiftWithRecord
from carealert.services.alert_service import ensure_system_alert
from carealert.services.shift_certificate_service import (
    ShiftCertificateService,
    shift_certificate_service,
)

logger = logging.getLogger(__name__)


def build_shift_cert_message(shift: ShiftWithRecord, judgement: ShiftCertJudgement) -> str:
    client = shift.client_name if shift.client_name and shift.client_name.strip() else ja.SHIFT_CERT_CLIENT_UNKNOWN
    time = f" {shift.shift_start_time.strftime('%H:%M')}" if shift.shift_start_time else ""
    return ja.ALERT_SHIFT_CERT_MISSING.format(
        client=client,
        cs_id=shift.kaipoke_cs_id or ja.CS_ID_UNKNOWN,
        date=shift.shift_start_date.isoformat(),
        time=time,
        service=shift.service_code or ja.SHIFT_CERT_SERVICE_UNKNOWN,
        reason=" / ".join(judgement.reasons),
    )


async def run_shift_cert_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    kaipoke_cs_id: Optional[str] = None,
    service: Optional[ShiftCertificateService] = None
) -> CheckResult:
    """
    資格が不足しているシフトにアラートを出す

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        from_date: 対象シフトの開始日（既定 SHIFT_CERT_FROM_DATE）
        to_date: 対象シフトの終了日（省略時は上限なし）
        kaipoke_cs_id: 特定の利用者だけを対象にする場合に指定
        service: 判定に使う ShiftCertificateService（サービスキー対応表の差し替え用）

    Returns:
        CheckResult: scanned は判定したシフト件数
    """
    judge = service or shift_certificate_service
    from_date = from_date or settings.SHIFT_CERT_FROM_DATE

    try:
        shifts = await crud.shift.get_shifts_with_record(
            db=db,
            from_date=from_date,
            to_date=to_date,
            kaipoke_cs_id=kaipoke_cs_id,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
        judgements = await judge.judge_shifts(db=db, shifts=shifts)
    except SQLAlchemyError as e:
        raise DatabaseError(f"shift certificate select failed: {e}") from e

    result = CheckResult(scanned=len(shifts))
    logger.info(f"[SHIFT_CERT] Judging {len(shifts)} shifts from {from_date}")

    for shift, judgement in zip(shifts, judgements):
        if judgement.compliant:
            continue

        try:
            ensured = await ensure_system_alert(
                db,
                message=build_shift_cert_message(shift, judgement),
                fingerprint=f"shift_cert:{shift.shift_id}",
                kaipoke_cs_id=shift.kaipoke_cs_id,
                shift_id=str(shift.shift_id),
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[SHIFT_CERT] Failed to ensure alert: shift_id={shift.shift_id}, error={e}",
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
        f"[SHIFT_CERT] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
