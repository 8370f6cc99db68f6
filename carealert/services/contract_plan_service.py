"""
利用者ごとの「契約書／計画書」不足判定

期間内のシフトのサービスコードから必要書類（shift_service_code の
contract_required / plan_required）を集め、cs_kaipoke_info.documents に
格納済みの書類と突き合わせる。
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.messages import ja
from carealert.models.enums import DocRequirementType
from carealert.utils.date_utils import local_today

logger = logging.getLogger(__name__)

# documents の各要素で書類マスタIDを持つキー（先に見つかったものを使う）
DOC_MASTER_ID_KEYS = ("doc_master_id", "type_id", "doc_type_id", "document_type_id")


@dataclass
class MissingDoc:
    doc_id: str
    doc_label: str
    requirement_types: List[DocRequirementType]
    required_by_services: List[str]


@dataclass
class ClientMissingDocs:
    client_id: str
    kaipoke_cs_id: str
    name: str
    related_service_codes: List[str]
    missing_docs: List[MissingDoc]


@dataclass
class ContractPlanScanResult:
    scanned_shifts: int = 0
    clients: List[ClientMissingDocs] = field(default_factory=list)


@dataclass
class _RequiredDoc:
    requirement_types: Set[DocRequirementType] = field(default_factory=set)
    required_by_services: Set[str] = field(default_factory=set)


def extract_doc_master_ids(documents: Any) -> Set[str]:
    """
    cs_kaipoke_info.documents から書類マスタIDを抜き出す

    JSON配列、またはJSON配列の文字列を受け付ける。解釈できない値は空集合。
    """
    if not documents:
        return set()

    items = documents
    if isinstance(documents, str):
        try:
            items = json.loads(documents)
        except ValueError:
            return set()
    if not isinstance(items, list):
        return set()

    found = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        for key in DOC_MASTER_ID_KEYS:
            value = item.get(key)
            if isinstance(value, str) and value:
                found.add(value)
                break
    return found


def _fallback_label(doc_id: str, types: Set[DocRequirementType]) -> str:
    if len(types) > 1:
        return ja.DOC_LABEL_CONTRACT_OR_PLAN
    if types == {DocRequirementType.contract}:
        return ja.DOC_LABEL_CONTRACT
    if types == {DocRequirementType.plan}:
        return ja.DOC_LABEL_PLAN
    return ja.DOC_LABEL_GENERIC.format(doc_id=doc_id)


async def find_clients_missing_contract_and_plan_docs(
    db: AsyncSession,
    *,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None
) -> ContractPlanScanResult:
    """
    必要書類が足りていない利用者を検索する

    Args:
        db: データベースセッション
        from_date: 対象シフトの開始日（既定 CONTRACT_PLAN_FROM_DATE）
        to_date: 対象シフトの終了日（既定 今日 + CONTRACT_PLAN_LOOKAHEAD_DAYS）
        today: 基準日（テスト用）

    Returns:
        ContractPlanScanResult
    """
    from_date = from_date or settings.CONTRACT_PLAN_FROM_DATE
    to_date = to_date or (today or local_today()) + timedelta(days=settings.CONTRACT_PLAN_LOOKAHEAD_DAYS)
    logger.info(f"[CONTRACT_PLAN] Scanning shifts from {from_date} to {to_date}")

    shifts = await crud.shift.get_shifts_in_range(
        db=db,
        from_date=from_date,
        to_date=to_date,
        test_prefix=settings.TEST_CS_ID_PREFIX
    )
    if not shifts:
        logger.info("[CONTRACT_PLAN] No shifts in range")
        return ContractPlanScanResult()

    service_codes = sorted({shift.service_code for shift in shifts})
    service_rows = await crud.shift.get_service_codes(db=db, service_codes=service_codes)

    # service_code → [(doc_id, 種別)]
    requirements: Dict[str, List[tuple]] = {}
    for row in service_rows:
        reqs = []
        if row.contract_required:
            reqs.append((row.contract_required, DocRequirementType.contract))
        if row.plan_required:
            reqs.append((row.plan_required, DocRequirementType.plan))
        if reqs:
            requirements[row.service_code] = reqs

    if not requirements:
        logger.info("[CONTRACT_PLAN] No contract/plan requirements defined in shift_service_code")
        return ContractPlanScanResult(scanned_shifts=len(shifts))

    # kaipoke_cs_id → (サービスコード集合, doc_id → 必要理由)
    per_client: Dict[str, tuple] = {}
    for shift in shifts:
        reqs = requirements.get(shift.service_code)
        if not reqs:
            continue
        service_set, required_docs = per_client.setdefault(shift.kaipoke_cs_id, (set(), {}))
        service_set.add(shift.service_code)
        for doc_id, requirement_type in reqs:
            required = required_docs.setdefault(doc_id, _RequiredDoc())
            required.requirement_types.add(requirement_type)
            required.required_by_services.add(shift.service_code)

    if not per_client:
        return ContractPlanScanResult(scanned_shifts=len(shifts))

    # 利用終了者も書類整備の対象とするため is_active では絞らない
    clients = await crud.cs_kaipoke_info.get_by_cs_ids(db=db, kaipoke_cs_ids=list(per_client))
    client_by_cs_id = {client.kaipoke_cs_id: client for client in clients}

    all_doc_ids = sorted({doc_id for _, docs in per_client.values() for doc_id in docs})
    labels = await crud.user_doc_master.get_labels(db=db, doc_ids=all_doc_ids)

    result = ContractPlanScanResult(scanned_shifts=len(shifts))
    for cs_id, (service_set, required_docs) in per_client.items():
        client = client_by_cs_id.get(cs_id)
        if not client:
            continue

        present = extract_doc_master_ids(client.documents)
        missing = [
            MissingDoc(
                doc_id=doc_id,
                doc_label=labels.get(doc_id) or _fallback_label(doc_id, required.requirement_types),
                requirement_types=sorted(required.requirement_types, key=lambda t: t.value),
                required_by_services=sorted(required.required_by_services),
            )
            for doc_id, required in required_docs.items()
            if doc_id not in present
        ]
        if not missing:
            continue

        result.clients.append(
            ClientMissingDocs(
                client_id=str(client.id),
                kaipoke_cs_id=client.kaipoke_cs_id,
                name=client.name or ja.NAME_NOT_SET,
                related_service_codes=sorted(service_set),
                missing_docs=missing,
            )
        )

    logger.info(
        f"[CONTRACT_PLAN] Scanned {result.scanned_shifts} shifts, "
        f"{len(result.clients)} clients with missing documents"
    )
    return result
