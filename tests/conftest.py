# tests/conftest.py

from typing import AsyncGenerator, Dict, Any
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.pool import NullPool

from adminkit.db.base import Base
from adminkit.db.session import get_db
from adminkit.dao.record_dao import RecordDao
from adminkit.entities import AdminRegistry
from adminkit.main import create_app
from tests.admin import PostEntity, AuthorEntity, TagEntity
from tests.models import Author, Post, Tag

# ==============================================================================
# 1. 数据库 Fixtures
# ==============================================================================

@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """每个测试使用一个独立的 sqlite 文件数据库。"""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'adminkit.db'}", poolclass=NullPool)

    # pysqlite 自己管理事务会破坏 SAVEPOINT, 交给 SQLAlchemy 发出 BEGIN
    @event.listens_for(test_engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()

@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine, class_=AsyncSession
    )

@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session

@pytest.fixture
async def seeded(db_session: AsyncSession) -> Dict[str, Any]:
    """
    authors: 1 Ann, 2 Bob
    tags:    1 python, 2 sqlalchemy, 3 fastapi, 4 jinja
    post 1:  "Hello", author Ann, tags {1, 2, 3}
    """
    ann, bob = Author(id=1, name="Ann"), Author(id=2, name="Bob")
    tags = [Tag(id=i, name=name) for i, name in enumerate(["python", "sqlalchemy", "fastapi", "jinja"], start=1)]
    post = Post(id=1, title="Hello", body="<p>First</p>", views=3, author=ann, tags=tags[:3])
    db_session.add_all([ann, bob, *tags, post])
    await db_session.commit()
    return {"post": post, "ann": ann, "bob": bob, "tags": tags}

@pytest.fixture
def post_dao(db_session: AsyncSession) -> RecordDao:
    return RecordDao(Post, db_session)

# ==============================================================================
# 2. API Fixtures
# ==============================================================================

@pytest.fixture
def registry() -> AdminRegistry:
    admin_registry = AdminRegistry()
    admin_registry.register(PostEntity)
    admin_registry.register(AuthorEntity)
    admin_registry.register(TagEntity)
    return admin_registry

@pytest.fixture
async def client(session_factory, registry) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(registry)

    async def override_get_db():
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
