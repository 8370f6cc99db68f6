"""
シフト × 資格 の突き合わせ

シフトのサービスコードが要求するサービスキーを、実際に訪問するスタッフの
保有資格でカバーできているかを判定する。
"""
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.messages import ja
from carealert.schemas.certificate import CertificateDoc, CertificateMasterRow
from carealert.schemas.shift import ShiftWithRecord, ShiftCertJudgement
from carealert.services.certificate_judge import determine_services_from_certificates
from carealert.services.service_keys import ServiceKeyTable, service_key_table

logger = logging.getLogger(__name__)

CERTIFICATE_KEYWORDS = ("資格", "certificate", "certification")


def _is_certificate_attachment(attachment: dict) -> bool:
    type_ = (attachment.get("type") or "").lower()
    label = (attachment.get("label") or "").lower()
    return any(keyword in type_ or keyword in label for keyword in CERTIFICATE_KEYWORDS)


def required_staff_count_of(shift: ShiftWithRecord) -> int:
    base = 2 if shift.two_person_work_flg else 1
    from_column = shift.required_staff_count if shift.required_staff_count and shift.required_staff_count > 0 else 1
    return max(base, from_column)


class ShiftCertificateService:

    def __init__(self, key_table: Optional[ServiceKeyTable] = None):
        self.key_table = key_table or service_key_table

    @staticmethod
    async def load_certificate_master(db: AsyncSession) -> List[CertificateMasterRow]:
        rows = await crud.user_doc_master.get_certificate_master(db=db)
        return [CertificateMasterRow.model_validate(row) for row in rows]

    @staticmethod
    async def load_cert_docs(db: AsyncSession, user_id: str) -> List[CertificateDoc]:
        """スタッフの添付ファイルから資格書類だけを取り出す"""
        attachments = await crud.worker.get_attachments(db=db, user_id=user_id)
        return [
            CertificateDoc(label=attachment.get("label"), type=attachment.get("type"))
            for attachment in attachments
            if isinstance(attachment, dict) and _is_certificate_attachment(attachment)
        ]

    async def build_user_service_keys(
        self,
        db: AsyncSession,
        user_ids: Sequence[str],
        master_rows: Sequence[CertificateMasterRow]
    ) -> Dict[str, List[str]]:
        """user_id → 提供可能サービスキー の対応表を作る"""
        user_keys: Dict[str, List[str]] = {}
        for user_id in dict.fromkeys(user_ids):
            docs = await self.load_cert_docs(db=db, user_id=user_id)
            user_keys[user_id] = determine_services_from_certificates(docs, master_rows)
        return user_keys

    def judge_shift(
        self,
        shift: ShiftWithRecord,
        user_keys: Mapping[str, Sequence[str]]
    ) -> ShiftCertJudgement:
        """
        シフト1件の資格充足を判定する（I/Oなし）

        - 必要サービスキーが無いサービスコードは常に OK
        - 訪問スタッフが1名もいなければ NG
        - 必要キーごとに、いずれかの訪問スタッフが保有していること
        - 必要キーを保有するスタッフ数が必要人数以上であること
        """
        required_keys = self.key_table.required_keys(shift.service_code)
        required_count = required_staff_count_of(shift)

        if not required_keys:
            return ShiftCertJudgement(
                shift_id=shift.shift_id,
                compliant=True,
                required_staff_count=required_count,
            )

        attending = shift.attending_staff()
        if not attending:
            return ShiftCertJudgement(
                shift_id=shift.shift_id,
                compliant=False,
                required_keys=required_keys,
                missing_keys=required_keys,
                required_staff_count=required_count,
                reasons=[ja.SHIFT_CERT_NO_STAFF],
            )

        reasons: List[str] = []
        covered = set()
        ok_count = 0
        for slot, user_id in attending:
            keys = set(user_keys.get(user_id, []))
            matched = keys.intersection(required_keys)
            covered.update(matched)
            if matched:
                ok_count += 1
            elif not keys:
                reasons.append(ja.SHIFT_CERT_STAFF_NO_CERT.format(slot=slot, user_id=user_id))
            else:
                reasons.append(ja.SHIFT_CERT_STAFF_KEY_MISSING.format(slot=slot, user_id=user_id))

        missing_keys = [key for key in required_keys if key not in covered]
        for key in missing_keys:
            reasons.append(ja.SHIFT_CERT_KEY_UNCOVERED.format(key=key))
        if ok_count < required_count:
            reasons.append(ja.SHIFT_CERT_STAFF_COUNT_SHORT.format(required=required_count, ok=ok_count))

        return ShiftCertJudgement(
            shift_id=shift.shift_id,
            compliant=not missing_keys and ok_count >= required_count,
            required_keys=required_keys,
            missing_keys=missing_keys,
            required_staff_count=required_count,
            ok_staff_count=ok_count,
            reasons=reasons,
        )

    async def judge_shifts(
        self,
        db: AsyncSession,
        shifts: Sequence[ShiftWithRecord]
    ) -> List[ShiftCertJudgement]:
        """
        複数シフトをまとめて判定する

        資格マスタは1回だけ読み、スタッフごとの保有キーも1回だけ計算する。
        """
        if not shifts:
            return []

        master_rows = await self.load_certificate_master(db=db)
        if not master_rows:
            logger.warning("[SHIFT_CERT] Certificate master is empty; every staff is treated as unqualified")

        user_ids = [
            user_id
            for shift in shifts
            if self.key_table.required_keys(shift.service_code)
            for _, user_id in shift.attending_staff()
        ]
        user_keys = await self.build_user_service_keys(db=db, user_ids=user_ids, master_rows=master_rows)

        return [self.judge_shift(shift, user_keys) for shift in shifts]


shift_certificate_service = ShiftCertificateService()
