import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.entities.category import Category
from app.catalog.entities.product import Product
from app.lib.db.types import path_contains

logger = logging.getLogger(__name__)


@dataclass
class CategoryStatistics:
    child_count: int
    descendant_count: int
    product_count: int


async def count_children(session: AsyncSession, category_id: str) -> int:
    result = await session.execute(select(func.count()).select_from(Category).where(Category.parent_id == category_id))
    return result.scalar_one()


async def count_descendants(session: AsyncSession, category_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Category).where(path_contains(Category.path_ids, category_id))
    )
    return result.scalar_one()


async def count_products(session: AsyncSession, category_id: str) -> int:
    result = await session.execute(select(func.count()).select_from(Product).where(Product.category_id == category_id))
    return result.scalar_one()


class StatisticsRecalculator:
    """Recomputes the derived counters stored on a category row."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def update(self, category_id: str) -> CategoryStatistics:
        """
        Recount children, descendants and products for one category and persist them.

        Runs inside the caller's transaction, so the counts observe the
        caller's uncommitted tree writes.
        """
        stats = CategoryStatistics(
            child_count=await count_children(self.session, category_id),
            descendant_count=await count_descendants(self.session, category_id),
            product_count=await count_products(self.session, category_id),
        )

        await self.session.execute(
            update(Category)
            .where(Category.id == category_id)
            .values(
                child_count=stats.child_count,
                descendant_count=stats.descendant_count,
                product_count=stats.product_count,
            )
            .execution_options(synchronize_session=False)
        )

        logger.debug(f"Refreshed statistics for category {category_id}: {stats}")
        return stats
