from fastapi import FastAPI
import uvicorn
import logging
import os
import sys

from carealert.core.config import settings
from carealert.api.v1.api import api_router
from carealert.scheduler.alert_batch_scheduler import (
    alert_batch_scheduler,
    start as start_alert_scheduler,
    shutdown as shutdown_alert_scheduler
)

# ログ設定（標準出力に出力）
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)
logger.info("Application starting...")

app = FastAPI(title="carealert")


def _scheduler_enabled() -> bool:
    # テスト実行中はスケジューラーを起動しない
    return settings.ALERT_SCHEDULER_ENABLED and os.getenv("TESTING") != "1"


@app.on_event("startup")
async def startup_event():
    """アプリケーション起動時の処理"""
    if not _scheduler_enabled():
        logger.info("Alert batch scheduler is disabled")
        return
    logger.info("Starting alert batch scheduler...")
    start_alert_scheduler()
    logger.info("Alert batch scheduler started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """アプリケーション終了時の処理"""
    if not alert_batch_scheduler.running:
        return
    logger.info("Shutting down alert batch scheduler...")
    shutdown_alert_scheduler()
    logger.info("Alert batch scheduler stopped successfully")


@app.get("/")
async def read_root():
    return {"message": "Welcome to the carealert API!"}


app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
