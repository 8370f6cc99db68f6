"""
ポータルへのディープリンク

アラート本文にURLを直接書かず、リンク先の種類とIDだけを持つ DeepLink を
LinkBuilder でURL・アンカーに変換する。ベースURLは設定から注入する。
"""
import enum
import html
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import quote, urlencode

from carealert.core.config import settings


class LinkKind(str, enum.Enum):
    client_detail = 'client_detail'  # 利用者詳細
    shift_view = 'shift_view'        # シフト一覧
    event_tasks = 'event_tasks'      # イベントタスク一覧


_PATHS = {
    LinkKind.client_detail: "/kaipoke-info-detail/{entity_id}",
    LinkKind.shift_view: "/shift-view",
    LinkKind.event_tasks: "/event-tasks",
}


@dataclass(frozen=True)
class DeepLink:
    kind: LinkKind
    entity_id: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)


class LinkBuilder:
    """DeepLink をポータルのURLに解決する"""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or settings.PORTAL_BASE_URL).rstrip("/")

    def url(self, link: DeepLink) -> str:
        path = _PATHS[link.kind].format(entity_id=quote(link.entity_id or "", safe=""))
        query = f"?{urlencode(link.params)}" if link.params else ""
        return f"{self.base_url}{path}{query}"

    def anchor(self, link: DeepLink, text: str, new_tab: bool = False) -> str:
        """<a href=...> 形式のアンカーを返す（表示側でそのまま描画される）"""
        attrs = f'href="{html.escape(self.url(link), quote=True)}"'
        if new_tab:
            attrs += ' target="_blank" rel="noreferrer"'
        return f"<a {attrs}>{html.escape(text, quote=False)}</a>"


def client_detail_link(client_id) -> DeepLink:
    return DeepLink(kind=LinkKind.client_detail, entity_id=str(client_id))


def shift_view_link(user_id: str, month_start: str) -> DeepLink:
    return DeepLink(
        kind=LinkKind.shift_view,
        params={"user_id": user_id, "date": month_start, "per": "50", "page": "1"},
    )


def event_tasks_link() -> DeepLink:
    return DeepLink(kind=LinkKind.event_tasks)
