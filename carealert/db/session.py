import dotenv
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from carealert.core.config import ENV_FILE, settings

# TESTING などの settings 外のフラグも os.environ から読めるようにする
dotenv.load_dotenv(ENV_FILE)

ASYNC_DATABASE_URL = settings.DATABASE_URL

engine_options = {
    "pool_pre_ping": True,  # 接続の有効性を事前確認
    "echo": False,          # 本番環境ではSQLログを無効化
}
if not ASYNC_DATABASE_URL.startswith("sqlite"):
    # SQLite(テスト用)はコネクションプールのサイズ指定を受け付けない
    engine_options.update(
        pool_size=20,       # 同時接続数
        max_overflow=30,    # プールサイズを超えた場合の追加接続数
        pool_recycle=3600,  # 1時間後に接続を再利用
    )

async_engine = create_async_engine(ASYNC_DATABASE_URL, **engine_options)
AsyncSessionLocal = async_sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=async_engine
)