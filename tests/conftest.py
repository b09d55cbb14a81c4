import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from garage.config import get_settings
from garage.models import Base
from tests.factories import make_branch, make_ctx


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Keep stored uploads inside the test's temp directory, unencrypted."""
    base = tmp_path / "uploads"
    monkeypatch.setattr(get_settings().uploads, "base_dir", str(base))
    monkeypatch.delenv("FERNET_KEY", raising=False)
    return base


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """File-backed database so two sessions hold independent connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'garage.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def branch(db):
    return await make_branch(db)


@pytest_asyncio.fixture
async def admin(branch):
    return make_ctx("admin", branch_id=branch.id)
