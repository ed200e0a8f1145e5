"""
資料庫連線與 Session（Async SQLAlchemy）
- 本機單一操作者使用，預設 SQLite（sqlite+aiosqlite://）
- 三個集合（員工/產值/預支）各存一列，整包讀取、整包覆寫
"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from construlog.config import settings

db_url = str(settings.database_url or "").strip()

engine = create_async_engine(
    db_url,
    echo=settings.debug,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    # 只有一張 key-value 表，不走 migration；啟動時補建即可
    import construlog.models  # noqa: F401  註冊 metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
