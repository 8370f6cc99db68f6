import hmac
import logging
from typing import AsyncGenerator, Optional

from fastapi import Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carealert.core.config import settings
from carealert.core.exceptions import InternalServerException, UnauthorizedException
from carealert.db.session import AsyncSessionLocal
from carealert.messages import ja

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    各APIリクエストに対して、独立したDBセッションを提供する依存性注入関数。
    セッションはリクエスト処理の完了後に自動的にクローズされます。
    """
    async with AsyncSessionLocal() as session:
        yield session


def _extract_cron_token(
    authorization: Optional[str],
    x_cron_token: Optional[str],
    token: Optional[str]
) -> Optional[str]:
    # 優先順位: Authorization: Bearer → X-Cron-Token → ?token=
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return x_cron_token or token


async def verify_cron_token(
    authorization: Optional[str] = Header(None),
    x_cron_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None)
) -> None:
    """
    定期実行エンドポイントの共有シークレットを検証する依存性注入関数。

    - サーバー側に CRON_SECRET が未設定: 500
    - トークンが無い・一致しない: 401
    """
    if settings.CRON_SECRET is None or not settings.CRON_SECRET.get_secret_value():
        logger.error("[CRON_AUTH] CRON_SECRET is not configured")
        raise InternalServerException(ja.CRON_SECRET_NOT_CONFIGURED)

    provided = _extract_cron_token(authorization, x_cron_token, token)
    expected = settings.CRON_SECRET.get_secret_value()
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("[CRON_AUTH] Invalid cron token")
        raise UnauthorizedException(ja.CRON_TOKEN_INVALID)
