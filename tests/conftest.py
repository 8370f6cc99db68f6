# tests/conftest.py (pytest-asyncio構成)
import os
from datetime import date, time
from typing import Any, AsyncGenerator, Optional
import logging

# テスト環境であることを示すフラグを設定（スケジューラーなどを無効化するため）
os.environ["TESTING"] = "1"
# settings の読み込み前にテスト用の接続先・シークレットを設定
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CRON_SECRET"] = "test-cron-secret"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# ロガーの設定 - テスト実行時のログ出力を抑制
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.WARNING)  # WARNING以上のみ表示

# SQLAlchemyのエンジンログを無効化
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

from carealert.main import app
from carealert.api.deps import get_db
from carealert.db.base import Base
from carealert.models import (
    CsKaipokeInfo,
    EventTask,
    EventTemplate,
    Fax,
    FormEntry,
    LwGroupChannel,
    Shift,
    ShiftRecord,
    ShiftServiceCode,
    UserDocMaster,
    Worker,
)

CRON_SECRET = "test-cron-secret"
TEST_DATABASE_URL = "sqlite+aiosqlite://"


# --- データベース ---

@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    テストごとに新しいインメモリSQLiteを作成する。

    pysqlite系ドライバはSAVEPOINTを正しく扱えないため、ドライバ側の
    トランザクション制御を無効にして BEGIN を自前で発行する。
    """
    async_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    @event.listens_for(async_engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_engine
    await async_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    テスト用のDBセッションフィクスチャ。

    チェックは commit() するため、データベース自体をテストごとに作り直して分離する。
    """
    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False
    )
    async with async_session_factory() as session:
        yield session


# --- APIクライアント ---

@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as client:
        try:
            yield client
        finally:
            app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def cron_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {CRON_SECRET}"}


# --- ファクトリ ---

@pytest_asyncio.fixture
async def client_factory(db_session: AsyncSession):
    """利用者（cs_kaipoke_info）を作成するFactory"""
    counter = {"count": 0}

    async def _create_client(
        kaipoke_cs_id: Optional[str] = None,
        name: Optional[str] = None,
        postal_code: Optional[str] = "100-0001",
        is_active: Optional[bool] = True,
        kodoengo_plan_link: Optional[str] = None,
        documents: Any = None,
        standard_trans_ways: Optional[str] = None,
        standard_purpose: Optional[str] = None,
        service_kind: Optional[str] = None,
        care_consultant: Optional[str] = None,
    ) -> CsKaipokeInfo:
        counter["count"] += 1
        client = CsKaipokeInfo(
            kaipoke_cs_id=kaipoke_cs_id or f"1000{counter['count']:04d}",
            name=name or f"テスト利用者{counter['count']}",
            postal_code=postal_code,
            is_active=is_active,
            kodoengo_plan_link=kodoengo_plan_link,
            documents=documents,
            standard_trans_ways=standard_trans_ways,
            standard_purpose=standard_purpose,
            service_kind=service_kind,
            care_consultant=care_consultant,
        )
        db_session.add(client)
        await db_session.flush()
        return client
    yield _create_client


@pytest_asyncio.fixture
async def worker_factory(db_session: AsyncSession):
    """スタッフ（users）を作成するFactory。certificates を渡すと資格の添付も作る"""
    counter = {"count": 0}

    async def _create_worker(
        user_id: Optional[str] = None,
        status: Optional[str] = "active",
        certificates: Optional[list[str]] = None,
        last_name: str = "テスト",
        first_name: Optional[str] = None,
    ) -> Worker:
        counter["count"] += 1
        worker_id = user_id or f"staff{counter['count']:03d}"
        auth_user_id = f"auth-{worker_id}"
        worker = Worker(
            user_id=worker_id,
            auth_user_id=auth_user_id,
            last_name_kanji=last_name,
            first_name_kanji=first_name or f"スタッフ{counter['count']}",
            status=status,
        )
        db_session.add(worker)
        if certificates is not None:
            db_session.add(
                FormEntry(
                    auth_uid=auth_user_id,
                    attachments=[
                        {"id": f"att-{i}", "url": "https://example.com/cert.pdf",
                         "type": "資格証明書", "label": label}
                        for i, label in enumerate(certificates)
                    ],
                )
            )
        await db_session.flush()
        return worker
    yield _create_worker


@pytest_asyncio.fixture
async def shift_factory(db_session: AsyncSession):
    """シフトを作成するFactory。record_status を渡すと実施記録も作る"""

    async def _create_shift(
        kaipoke_cs_id: Optional[str],
        shift_start_date: date,
        service_code: Optional[str] = "身体介護",
        staff_01_user_id: Optional[str] = None,
        staff_02_user_id: Optional[str] = None,
        staff_03_user_id: Optional[str] = None,
        staff_02_attend_flg: Optional[bool] = None,
        staff_03_attend_flg: Optional[bool] = None,
        two_person_work_flg: bool = False,
        required_staff_count: int = 1,
        shift_start_time: Optional[time] = time(9, 0),
        record_status: Optional[str] = None,
    ) -> Shift:
        shift = Shift(
            kaipoke_cs_id=kaipoke_cs_id,
            shift_start_date=shift_start_date,
            shift_start_time=shift_start_time,
            service_code=service_code,
            staff_01_user_id=staff_01_user_id,
            staff_02_user_id=staff_02_user_id,
            staff_03_user_id=staff_03_user_id,
            staff_02_attend_flg=staff_02_attend_flg,
            staff_03_attend_flg=staff_03_attend_flg,
            two_person_work_flg=two_person_work_flg,
            required_staff_count=required_staff_count,
        )
        db_session.add(shift)
        await db_session.flush()
        if record_status is not None:
            db_session.add(ShiftRecord(shift_id=shift.shift_id, status=record_status))
            await db_session.flush()
        return shift
    yield _create_shift


@pytest_asyncio.fixture
async def certificate_master(db_session: AsyncSession) -> list[UserDocMaster]:
    """資格マスタ（ラベル → サービスキー）"""
    rows = [
        UserDocMaster(id="cert-shoninsha", category="certificate", label="介護職員初任者研修",
                      doc_group="home_help", is_active=True, sort_order=1),
        UserDocMaster(id="cert-kaigofukushishi", category="certificate", label="介護福祉士",
                      doc_group="home_help", is_active=True, sort_order=2),
        UserDocMaster(id="cert-kodoengo", category="certificate", label="行動援護従業者養成研修",
                      doc_group="mobility", is_active=True, sort_order=3),
        UserDocMaster(id="cert-old", category="certificate", label="ホームヘルパー3級",
                      doc_group="home_help", is_active=False, sort_order=4),
    ]
    db_session.add_all(rows)
    await db_session.flush()
    return rows


@pytest_asyncio.fixture
async def contract_plan_master(db_session: AsyncSession) -> list[ShiftServiceCode]:
    """契約書・計画書が必要なサービスコードと書類マスタ"""
    db_session.add_all([
        UserDocMaster(id="doc-kyotaku-contract", category="cs_doc", label="居宅介護契約書", is_active=True),
        UserDocMaster(id="doc-kyotaku-plan", category="cs_doc", label="居宅介護計画書", is_active=True),
    ])
    codes = [
        ShiftServiceCode(service_code="身体介護",
                         contract_required="doc-kyotaku-contract", plan_required="doc-kyotaku-plan"),
        ShiftServiceCode(service_code="家事援助",
                         contract_required="doc-kyotaku-contract", plan_required="doc-kyotaku-plan"),
        ShiftServiceCode(service_code="移動支援", contract_required=None, plan_required=None),
    ]
    db_session.add_all(codes)
    await db_session.flush()
    return codes


@pytest_asyncio.fixture
async def lw_group_factory(db_session: AsyncSession):
    """LINE WORKS グループを作成するFactory"""
    counter = {"count": 0}

    async def _create_group(
        group_account: str,
        group_type: str = "利用者様情報連携グループ",
    ) -> LwGroupChannel:
        counter["count"] += 1
        group = LwGroupChannel(
            group_id=f"group-{counter['count']}",
            group_account=group_account,
            group_type=group_type,
            channel_id=f"channel-{counter['count']}",
        )
        db_session.add(group)
        await db_session.flush()
        return group
    yield _create_group


@pytest_asyncio.fixture
async def event_task_factory(db_session: AsyncSession):
    """イベントタスクを作成するFactory。template_name を渡すとテンプレートも作る"""

    async def _create_task(
        kaipoke_cs_id: Optional[str],
        due_date: date,
        status: str = "open",
        user_id: Optional[str] = None,
        template_name: Optional[str] = None,
    ) -> EventTask:
        template_id = None
        if template_name is not None:
            template = EventTemplate(template_name=template_name)
            db_session.add(template)
            await db_session.flush()
            template_id = template.id
        task = EventTask(
            template_id=template_id,
            kaipoke_cs_id=kaipoke_cs_id,
            user_id=user_id,
            due_date=due_date,
            status=status,
        )
        db_session.add(task)
        await db_session.flush()
        return task
    yield _create_task


@pytest_asyncio.fixture
async def fax_factory(db_session: AsyncSession):
    """連携先事業所の連絡先（fax）を作成するFactory"""
    counter = {"count": 0}

    async def _create_fax(
        fax: str = "03-0000-0000",
        email: Optional[str] = "soudan@example.com",
        office_name: Optional[str] = None,
    ) -> Fax:
        counter["count"] += 1
        row = Fax(
            fax=fax,
            email=email,
            office_name=office_name or f"相談支援事業所{counter['count']}",
            service_kind="相談支援",
        )
        db_session.add(row)
        await db_session.flush()
        return row
    yield _create_fax
