"""
相談支援 連絡先未登録チェック（定期実行タスク）

直近にシフトがある介護保険の利用者について、相談支援事業所（care_consultant → fax）と
その FAX / Email が登録されているかを確認する。
"""
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.core.config import settings
from carealert.core.exceptions import DatabaseError
from carealert.messages import ja
from carealert.models.cs_kaipoke_info import CsKaipokeInfo
from carealert.models.fax import Fax
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert
from carealert.utils.date_utils import add_months, local_today
from carealert.utils.deep_link import LinkBuilder, client_detail_link

logger = logging.getLogger(__name__)

NO_CONSULTANT = "no_consultant"
MISSING_CONTACT = "missing_contact"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def find_contact_problem(
    client: CsKaipokeInfo,
    fax_by_id: Dict[str, Fax]
) -> Optional[Tuple[str, List[str]]]:
    """
    利用者の相談支援 連絡先の不足を判定する

    Returns:
        None: 問題なし
        (NO_CONSULTANT, []): care_consultant が未登録
        (MISSING_CONTACT, [不足項目...]): fax レコードが無い、または FAX / Email が空
    """
    consultant_id = _clean(client.care_consultant)
    if not consultant_id:
        return NO_CONSULTANT, []

    contact = fax_by_id.get(consultant_id)
    missing = []
    if contact is None or not _clean(contact.fax):
        missing.append(ja.CS_FAX_PART_FAX)
    if contact is None or not _clean(contact.email):
        missing.append(ja.CS_FAX_PART_EMAIL)
    if missing:
        return MISSING_CONTACT, missing
    return None


def _build_message(
    client: CsKaipokeInfo,
    kind: str,
    missing: List[str],
    contact: Optional[Fax],
    url: str
) -> str:
    name = client.name or ja.NAME_NOT_SET
    if kind == NO_CONSULTANT:
        return ja.ALERT_CS_FAX_NO_CONSULTANT.format(name=name, cs_id=client.kaipoke_cs_id, url=url)
    return ja.ALERT_CS_FAX_MISSING_CONTACT.format(
        missing="/".join(missing),
        name=name,
        cs_id=client.kaipoke_cs_id,
        office=_clean(contact.office_name if contact else None) or ja.CS_FAX_OFFICE_UNKNOWN,
        fax=_clean(contact.fax if contact else None) or ja.CS_FAX_NOT_REGISTERED,
        email=_clean(contact.email if contact else None) or ja.CS_FAX_NOT_REGISTERED,
        url=url,
    )


async def run_kaipoke_cs_fax_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    today: Optional[date] = None,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    相談支援事業所または連絡先が未登録の利用者にアラートを出す

    処理内容:
    - 今日の CS_FAX_LOOKBACK_MONTHS か月前 〜 今日 のシフトから利用者を抽出（テスト用利用者は除外）
    - service_kind が CS_FAX_SERVICE_KINDS で、is_active が False 以外の利用者に絞る
    - care_consultant 未登録 → 未登録アラート
    - care_consultant が指す fax が無い、または FAX / Email が空 → 連絡先未登録アラート

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートを作成せず件数のみ数える
        today: 基準日（省略時は現地時間の今日）
        link_builder: 利用者詳細URLの生成に使う LinkBuilder

    Returns:
        CheckResult: scanned は不足のある利用者数
    """
    links = link_builder or LinkBuilder()
    today = today or local_today()
    from_date = add_months(today, -settings.CS_FAX_LOOKBACK_MONTHS)

    try:
        cs_ids = await crud.shift.get_distinct_cs_ids(
            db=db,
            from_date=from_date,
            to_date=today,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
        clients = await crud.cs_kaipoke_info.get_by_cs_ids(
            db=db,
            kaipoke_cs_ids=cs_ids,
            exclude_inactive=True,
            service_kinds=settings.CS_FAX_SERVICE_KINDS
        )
        consultant_ids = sorted({_clean(c.care_consultant) for c in clients} - {""})
        fax_by_id = await crud.fax.get_by_ids(db=db, fax_ids=consultant_ids)
    except SQLAlchemyError as e:
        raise DatabaseError(f"kaipoke cs fax select failed: {e}") from e

    targets = []
    for client in clients:
        problem = find_contact_problem(client, fax_by_id)
        if problem:
            targets.append((client, *problem))

    result = CheckResult(scanned=len(targets))
    logger.info(
        f"[CS_FAX] {len(clients)} clients with shifts {from_date}..{today}, "
        f"{len(targets)} without consultant contact"
    )

    for client, kind, missing in targets:
        message = _build_message(
            client,
            kind,
            missing,
            fax_by_id.get(_clean(client.care_consultant)),
            links.url(client_detail_link(client.id)),
        )
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"kaipoke_cs_fax:{kind}:{client.kaipoke_cs_id}",
                kaipoke_cs_id=client.kaipoke_cs_id,
                dry_run=dry_run,
            )
        except Exception as e:
            logger.error(
                f"[CS_FAX] Failed to ensure alert: kaipoke_cs_id={client.kaipoke_cs_id}, error={e}",
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
        f"[CS_FAX] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
