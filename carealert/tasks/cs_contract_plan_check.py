"""
契約書・計画書不足チェック（定期実行タスク）

判定は services/contract_plan_service.py に任せ、ここではアラート本文を組み立てて投入する。
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert
from carealert.services.contract_plan_service import (
    ClientMissingDocs,
    MissingDoc,
    find_clients_missing_contract_and_plan_docs,
)
from carealert.utils.deep_link import LinkBuilder, client_detail_link

logger = logging.getLogger(__name__)


def _service_part(service_codes: List[str]) -> str:
    # 3つ以上あっても先頭2つまで（本文側で「等」を付ける）
    unique = list(dict.fromkeys(service_codes))
    if not unique:
        return ja.CONTRACT_PLAN_ANY_SERVICE
    return "・".join(unique[:2]) + ja.CONTRACT_PLAN_SERVICE_SUFFIX


def _doc_part(missing_docs: List[MissingDoc]) -> str:
    if not missing_docs:
        return ja.CONTRACT_PLAN_DEFAULT_DOCS
    return "・".join(
        doc.doc_label or ja.DOC_LABEL_GENERIC.format(doc_id=doc.doc_id)
        for doc in missing_docs
    )


def build_contract_plan_message(client: ClientMissingDocs, links: LinkBuilder) -> str:
    link = links.anchor(
        client_detail_link(client.client_id),
        ja.CLIENT_HONORIFIC.format(name=client.name)
    )
    return ja.ALERT_CONTRACT_PLAN_MISSING.format(
        link=link,
        services=_service_part(client.related_service_codes),
        docs=_doc_part(client.missing_docs),
    )


async def run_cs_contract_plan_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    必要な契約書・計画書が格納されていない利用者にアラートを出す

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        from_date: 対象シフトの開始日（既定 CONTRACT_PLAN_FROM_DATE）
        to_date: 対象シフトの終了日（既定 今日 + CONTRACT_PLAN_LOOKAHEAD_DAYS）
        today: 基準日（省略時は現地時間の今日）
        link_builder: 利用者詳細アンカーの生成に使う LinkBuilder

    Returns:
        CheckResult: scanned は対象期間内のシフト件数
    """
    links = link_builder or LinkBuilder()

    try:
        scan = await find_clients_missing_contract_and_plan_docs(
            db,
            from_date=from_date,
            to_date=to_date,
            today=today
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"contract/plan select failed: {e}") from e

    result = CheckResult(scanned=scan.scanned_shifts)

    for client in scan.clients:
        try:
            ensured = await ensure_system_alert(
                db,
                message=build_contract_plan_message(client, links),
                fingerprint=f"cs_contract_plan:{client.kaipoke_cs_id}",
                kaipoke_cs_id=client.kaipoke_cs_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[CONTRACT_PLAN] Failed to ensure alert: kaipoke_cs_id={client.kaipoke_cs_id}, error={e}",
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
        f"[CONTRACT_PLAN] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
