# adminkit/db/session.py

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from adminkit.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
)

# expire_on_commit=False: 表单在提交后重新渲染时仍然需要读取模型属性
SessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    class_=AsyncSession
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a transactional scope around a request.
    Commits when the request handler returns, rolls back on any exception.
    Form.save_model() opens a SAVEPOINT inside this transaction.
    """
    async with SessionLocal() as session:
        async with session.begin():
            yield session
