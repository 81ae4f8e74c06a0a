"""
Pytest 配置和共享 fixtures
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from usage_analytics.api.dependencies import get_database, get_query_executor
from usage_analytics.core.database import Base
from usage_analytics.main import app
import usage_analytics.models  # noqa: F401

from tests.helpers import RecordingExecutor


@pytest_asyncio.fixture
async def test_engine():
    """创建测试数据库引擎"""
    # 内存数据库需要 StaticPool, 否则每个连接都是一个新的空库
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """创建测试数据库会话"""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_session):
    """创建使用测试数据库的客户端"""
    async def override_get_database():
        yield test_session

    app.dependency_overrides[get_database] = override_get_database

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def fake_executor():
    """默认返回空结果的假执行器"""
    return RecordingExecutor()


@pytest_asyncio.fixture
async def fake_client(fake_executor):
    """创建使用假查询执行器的客户端"""
    app.dependency_overrides[get_query_executor] = lambda: fake_executor

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
