import logging
import os
from collections.abc import AsyncGenerator

# The app builds its engine at import time; point it somewhere harmless
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_catalog.db")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.catalog.entities.category import Category  # noqa: E402
from app.catalog.entities.product import Product  # noqa: E402, F401
from app.config import Settings  # noqa: E402
from app.lib.db.base import Base  # noqa: E402
from app.lib.db.session import get_session  # noqa: E402
from app.main import app  # noqa: E402

from factories.category import CategoryFactory, ProductFactory  # noqa: E402

# Reduce logging noise during tests
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("faker.factory").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


@pytest.fixture(scope="function")
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    # One throwaway database per test; TEST_DATABASE_URL may point at PostgreSQL instead
    database_url = os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    test_engine = create_async_engine(database_url, poolclass=NullPool)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSession(test_engine, expire_on_commit=False) as session:
        yield session
        await session.rollback()
        await session.close()

    await test_engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        max_tree_depth=10,
        reparent_batch_size=100,
        large_child_count_threshold=100,
        large_descendant_count_threshold=1000,
    )


@pytest.fixture
async def catalog(db_session: AsyncSession) -> dict[str, Category]:
    """
    Seed a small catalog and commit it.

    electronics            home              garden
      ├── phones (3 prod)    └── kitchen
      │     └── android            └── cookware
      └── laptops
    """
    electronics = await CategoryFactory.create_root(db_session, "electronics")
    phones = await CategoryFactory.create_child(db_session, electronics, "phones")
    android = await CategoryFactory.create_child(db_session, phones, "android")
    laptops = await CategoryFactory.create_child(db_session, electronics, "laptops")
    home = await CategoryFactory.create_root(db_session, "home")
    kitchen = await CategoryFactory.create_child(db_session, home, "kitchen")
    cookware = await CategoryFactory.create_child(db_session, kitchen, "cookware")
    garden = await CategoryFactory.create_root(db_session, "garden")

    await ProductFactory.create_batch_async(db_session, 3, category_id=phones.id)
    await ProductFactory.create_async(db_session, category_id=android.id)
    await db_session.commit()

    return {
        category.id: category
        for category in (electronics, phones, android, laptops, home, kitchen, cookware, garden)
    }
