from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from soulmate.core.config import settings
import os

# Security: SQL echo only in development mode
is_dev_mode = os.getenv("ENV", "production").lower() in ["dev", "development", "local"]
engine = create_async_engine(
    str(settings.DATABASE_URL),
    echo=is_dev_mode,
    pool_pre_ping=True,  # Verify connections before using
    pool_size=10,
    max_overflow=20
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
