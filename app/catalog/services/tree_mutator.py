import logging
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.entities.category import Category
from app.catalog.schemas import ReparentingOptions
from app.catalog.services.path_calculator import CategorySnapshot, PathInfo, rebase_descendant
from app.catalog.services.statistics import StatisticsRecalculator, count_products
from app.config import Settings, get_settings
from app.lib.db.types import path_contains

logger = logging.getLogger(__name__)


@dataclass
class MutationResult:
    success: bool
    affected_categories: int = 0
    affected_products: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class TreeMutator:
    """Applies a validated move to the store inside a single transaction."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.statistics = StatisticsRecalculator(session)

    async def execute(
        self,
        category: CategorySnapshot,
        new_parent_id: str | None,
        new_info: PathInfo,
        options: ReparentingOptions,
    ) -> MutationResult:
        """
        Move ``category`` (and its subtree) under ``new_parent_id``.

        All writes share one transaction: the moved row, every descendant batch
        and the parent statistics are committed together or not at all.

        Args:
            category: Tree fields of the category as read during validation
            new_parent_id: ID of the new parent (None for root level)
            new_info: Path fields computed for the category under its new parent
            options: batchSize and updateProducts are honored here

        Returns:
            MutationResult; on failure the store is left untouched
        """
        batch_size = options.batchSize or self.settings.reparent_batch_size

        try:
            async with self.session.begin():
                affected_categories, affected_products = await self._apply(
                    category, new_parent_id, new_info, batch_size, options.updateProducts
                )
        except Exception as e:
            logger.exception(f"Reparenting transaction for category {category.id} rolled back")
            return MutationResult(success=False, errors=[f"Transaction failed: {e}"])

        return MutationResult(
            success=True, affected_categories=affected_categories, affected_products=affected_products
        )

    async def _apply(
        self,
        category: CategorySnapshot,
        new_parent_id: str | None,
        new_info: PathInfo,
        batch_size: int,
        update_products: bool,
    ) -> tuple[int, int]:
        # Update the moved category itself
        await self.session.execute(
            update(Category)
            .where(Category.id == category.id)
            .values(
                parent_id=new_parent_id,
                path=new_info.path,
                path_ids=list(new_info.path_ids),
                level=new_info.level,
            )
            .execution_options(synchronize_session=False)
        )
        affected_categories = 1

        # Read every descendant once, shallowest first, before writing any of them
        descendants_stmt = (
            select(Category.id, Category.path, Category.path_ids, Category.level)
            .where(path_contains(Category.path_ids, category.id))
            .order_by(Category.level, Category.id)
        )
        descendants = (await self.session.execute(descendants_stmt)).all()

        for start in range(0, len(descendants), batch_size):
            batch = descendants[start : start + batch_size]

            update_params = []
            for desc in batch:
                rebased = rebase_descendant(desc.path, list(desc.path_ids), desc.level, category, new_info)
                update_params.append(
                    {"id": desc.id, "path": rebased.path, "path_ids": rebased.path_ids, "level": rebased.level}
                )

            # ORM bulk UPDATE by primary key: one executemany per batch
            await self.session.execute(update(Category), update_params)
            affected_categories += len(update_params)

            logger.debug(
                f"Rewrote descendants {start + 1}-{start + len(batch)} of {len(descendants)} under {category.id}"
            )

        affected_products = 0
        if update_products:
            # Products do not carry path fields; report the attached count only
            affected_products = await count_products(self.session, category.id)

        # Only the edge old_parent -> category -> new_parent changed
        parents_to_update = []
        for parent_id in (category.parent_id, new_parent_id):
            if parent_id is not None and parent_id not in parents_to_update:
                parents_to_update.append(parent_id)

        for parent_id in parents_to_update:
            await self.statistics.update(parent_id)

        return affected_categories, affected_products
