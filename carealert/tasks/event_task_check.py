"""
イベントタスク期限超過チェック（定期実行タスク）

期限を過ぎても未完了のイベントタスクにアラートを出す。
超過日数に応じて重要度を引き上げる。
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
from carealert.models.cs_kaipoke_info import CsKaipokeInfo
from carealert.schemas.alert_check import CheckResult
from carealert.services.alert_service import ensure_system_alert
from carealert.utils.date_utils import local_today
from carealert.utils.deep_link import LinkBuilder, client_detail_link, event_tasks_link

logger = logging.getLogger(__name__)

MAX_SEVERITY = 3


def overdue_severity(today: date, due_date: date) -> int:
    """
    超過日数から重要度を決める

    1 + 超過日数 // EVENT_TASK_SEVERITY_STEP_DAYS を 1〜3 に収める。
    既定（2日）では 1日超過 → 1、2〜3日 → 2、4日以上 → 3。
    """
    step = max(1, settings.EVENT_TASK_SEVERITY_STEP_DAYS)
    overdue_days = (today - due_date).days
    return max(1, min(MAX_SEVERITY, 1 + overdue_days // step))


def _client_label(links: LinkBuilder, client: Optional[CsKaipokeInfo]) -> str:
    if client is None:
        return ja.CLIENT_HONORIFIC.format(name=ja.NAME_NOT_SET)
    return links.anchor(
        client_detail_link(client.id),
        ja.CLIENT_HONORIFIC.format(name=client.name or ja.NAME_NOT_SET)
    )


async def run_event_task_check(
    db: AsyncSession,
    *,
    dry_run: bool = False,
    today: Optional[date] = None,
    link_builder: Optional[LinkBuilder] = None
) -> CheckResult:
    """
    期限超過のイベントタスクにアラートを出す

    処理内容:
    - due_date < 今日 かつ status が open / in_progress のタスクを抽出
      （cancelled / muted とテスト用利用者のタスクは除外）
    - タスクごとに1件、利用者とテンプレート名を載せたアラートを出す
    - 既存アラートがあれば、超過日数に応じて重要度だけ引き上げる

    Args:
        db: データベースセッション
        dry_run: Trueの場合はアラートの作成・重要度更新を行わず件数のみ数える
        today: 基準日（省略時は現地時間の今日）
        link_builder: 利用者詳細・タスク一覧のURL生成に使う LinkBuilder

    Returns:
        CheckResult: scanned は期限超過タスク数
    """
    links = link_builder or LinkBuilder()
    today = today or local_today()

    try:
        tasks = await crud.event_task.get_overdue(
            db=db,
            today=today,
            test_prefix=settings.TEST_CS_ID_PREFIX
        )
        template_names = await crud.event_task.get_template_names(
            db=db,
            template_ids=list({t.template_id for t in tasks if t.template_id})
        )
        clients = await crud.cs_kaipoke_info.get_by_cs_ids(
            db=db,
            kaipoke_cs_ids=sorted({t.kaipoke_cs_id for t in tasks})
        )
    except SQLAlchemyError as e:
        raise DatabaseError(f"event task select failed: {e}") from e

    client_by_cs_id = {c.kaipoke_cs_id: c for c in clients}
    result = CheckResult(scanned=len(tasks))
    logger.info(f"[EVENT_TASK] {len(tasks)} overdue tasks before {today}")

    for task in tasks:
        template = template_names.get(task.template_id) or ja.EVENT_TASK_TEMPLATE_UNKNOWN
        message = ja.ALERT_EVENT_TASK_OVERDUE.format(
            client=_client_label(links, client_by_cs_id.get(task.kaipoke_cs_id)),
            task=links.anchor(event_tasks_link(), ja.EVENT_TASK_TEMPLATE.format(template=template)),
            due_date=task.due_date.isoformat(),
        )
        severity = overdue_severity(today, task.due_date)
        try:
            ensured = await ensure_system_alert(
                db,
                message=message,
                fingerprint=f"event_task:{task.id}",
                severity=severity,
                kaipoke_cs_id=task.kaipoke_cs_id,
                user_id=task.user_id,
                dry_run=dry_run,
            )
            if not ensured.created and ensured.id and not dry_run:
                await crud.alert_log.raise_severity(db=db, alert_id=ensured.id, severity=severity)
        except Exception as e:
            logger.error(
                f"[EVENT_TASK] Failed to ensure alert: event_task_id={task.id}, "
                f"kaipoke_cs_id={task.kaipoke_cs_id}, error={e}",
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
        f"[EVENT_TASK] Done: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )
    return result
