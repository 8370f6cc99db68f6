"""
システムアラートの重複防止付き作成

同じ違反に対して未対応のアラートを「1件だけ」維持する。
"""
import hashlib
import logging
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carealert import crud
from carealert.models.enums import VisibleRole
from carealert.schemas.alert_log import EnsureResult

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = 2
DEFAULT_VISIBLE_ROLES = (VisibleRole.manager, VisibleRole.staff)


def build_dedup_key(
    identity: str,
    kaipoke_cs_id: Optional[str] = None,
    user_id: Optional[str] = None
) -> str:
    """
    違反の同一性キーを作る

    identity（fingerprint または本文）と対象者（利用者・スタッフ）の組から
    SHA-256 を計算する。対象者が違えば本文が同じでも別のキーになる。
    """
    raw = "\x1f".join([identity, kaipoke_cs_id or "", user_id or ""])
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _clamp_severity(severity: int) -> int:
    return max(1, min(3, severity))


async def ensure_system_alert(
    db: AsyncSession,
    *,
    message: str,
    fingerprint: Optional[str] = None,
    severity: int = DEFAULT_SEVERITY,
    visible_roles: Optional[Sequence[VisibleRole]] = None,
    kaipoke_cs_id: Optional[str] = None,
    user_id: Optional[str] = None,
    shift_id: Optional[str] = None,
    rpa_request_id: Optional[str] = None,
    dry_run: bool = False
) -> EnsureResult:
    """
    未対応のシステムアラートが無ければ作成する

    処理内容:
    1. dedup_key（fingerprint または message ＋ 対象者）を算出
    2. status_source=system かつ open / in_progress / muted の既存アラートを検索
    3. 既存があれば何も書き込まず created=False を返す
    4. 無ければ open で作成し created=True を返す

    既存アラートの本文・重要度は更新しない。done / cancelled に
    された後に再発した場合は新しいアラートを作成する。

    挿入はセーブポイント内で行い、同時実行で一意制約に違反した場合は
    先に作成されたアラートを返す。それ以外のDBエラーは呼び出し側に送出する。

    Args:
        db: データベースセッション（コミットは呼び出し側）
        message: アラート本文（HTMLアンカーを含んでもよい）
        fingerprint: 違反の安定した識別子。指定時は本文の代わりに重複判定に使う
        severity: 重要度 1〜3（既定 2）
        visible_roles: 表示対象ロール（既定 manager, staff）
        kaipoke_cs_id: 対象利用者
        user_id: 対象スタッフ
        shift_id: 対象シフト
        rpa_request_id: 関連するRPAリクエスト
        dry_run: Trueの場合は検索のみで書き込まない

    Returns:
        EnsureResult
    """
    dedup_key = build_dedup_key(fingerprint or message, kaipoke_cs_id, user_id)
    roles = [VisibleRole(role).value for role in (visible_roles or DEFAULT_VISIBLE_ROLES)]

    try:
        async with db.begin_nested():
            existing = await crud.alert_log.get_active_system_alert(db=db, dedup_key=dedup_key)
            if existing:
                logger.debug(
                    f"[ALERT] Active alert already exists: id={existing.id}, "
                    f"kaipoke_cs_id={kaipoke_cs_id}, user_id={user_id}"
                )
                return EnsureResult(created=False, id=existing.id)

            if dry_run:
                logger.info(f"[DRY RUN] Would create alert: {message}")
                return EnsureResult(created=True, id=None)

            alert = await crud.alert_log.create_system_alert(
                db=db,
                message=message,
                dedup_key=dedup_key,
                severity=_clamp_severity(severity),
                visible_roles=roles,
                kaipoke_cs_id=kaipoke_cs_id,
                user_id=user_id,
                shift_id=shift_id,
                rpa_request_id=rpa_request_id
            )
    except IntegrityError:
        # 別のバッチが同じ違反のアラートを先に作成した
        winner = await crud.alert_log.get_active_system_alert(db=db, dedup_key=dedup_key)
        if winner is None:
            raise
        logger.info(
            f"[ALERT] Concurrent insert detected, reusing alert id={winner.id}"
        )
        return EnsureResult(created=False, id=winner.id)

    logger.info(
        f"[ALERT] Created alert: id={alert.id}, severity={alert.severity}, "
        f"kaipoke_cs_id={kaipoke_cs_id}, user_id={user_id}, shift_id={shift_id}"
    )
    return EnsureResult(created=True, id=alert.id)
