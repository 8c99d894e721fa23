import logging
import time
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.schemas import ReparentingOptions, ReparentingResult, ReparentOperation
from app.catalog.services.batch_orchestrator import BatchOrchestrator
from app.catalog.services.path_calculator import calculate_path_info
from app.catalog.services.reparent_validator import BusinessRule, ReparentValidator
from app.catalog.services.statistics import count_descendants, count_products
from app.catalog.services.tree_mutator import TreeMutator
from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CategoryReparentingService:
    """
    Safe re-parenting of category subtrees.

    Every public method converts failures into ``ReparentingResult`` fields;
    nothing is raised to the caller. The session must not be inside a
    transaction when a method is called: validation and mutation each open
    their own.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        business_rules: Sequence[BusinessRule] = (),
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.validator = ReparentValidator(session, self.settings, business_rules)
        self.mutator = TreeMutator(session, self.settings)

    async def reparent_category(
        self,
        category_id: str,
        new_parent_id: str | None,
        user_id: str,
        options: ReparentingOptions | None = None,
    ) -> ReparentingResult:
        """
        Move a category (and its subtree) to a new parent.

        Args:
            category_id: ID of the category to move
            new_parent_id: ID of the new parent category (None for root level)
            user_id: ID of the requesting user, only carried into logs
            options: Reparenting options; defaults apply when omitted

        Returns:
            ReparentingResult with paths, affected counts, errors and warnings
        """
        options = options or ReparentingOptions()
        start_time = time.perf_counter()
        result = ReparentingResult(categoryId=category_id)

        logger.info(
            f"User {user_id} moving category {category_id} to {new_parent_id or 'root'}"
            f"{' (dry run)' if options.dryRun else ''}"
        )

        try:
            validation = await self.validator.validate(category_id, new_parent_id, options)
            result.warnings = list(validation.warnings)
            if not validation.is_valid:
                result.errors = list(validation.errors)
                return self._finish(result, start_time)

            category = validation.category
            assert category is not None  # For type checker

            result.oldPath = category.path
            new_info = calculate_path_info(validation.new_parent, category.slug)
            result.newPath = new_info.path

            if options.dryRun:
                async with self.session.begin():
                    descendant_count = await count_descendants(self.session, category_id)
                    product_count = await count_products(self.session, category_id)
                result.affectedCategories = descendant_count + 1
                result.affectedProducts = product_count
                result.success = True
                logger.info(
                    f"Dry run for category {category_id}: {result.affectedCategories} categories, "
                    f"{result.affectedProducts} products would be affected"
                )
                return self._finish(result, start_time, dry_run=True)

            mutation = await self.mutator.execute(category, new_parent_id, new_info, options)
            result.success = mutation.success
            result.affectedCategories = mutation.affected_categories
            result.affectedProducts = mutation.affected_products
            result.errors = list(mutation.errors)
            result.warnings.extend(mutation.warnings)
        except Exception as e:
            logger.exception(f"Reparenting category {category_id} failed")
            result.success = False
            result.affectedCategories = 0
            result.affectedProducts = 0
            result.errors.append(f"Reparenting failed: {e}")

        return self._finish(result, start_time)

    async def batch_reparent(
        self,
        operations: Sequence[ReparentOperation],
        user_id: str,
        options: ReparentingOptions | None = None,
    ) -> list[ReparentingResult]:
        """Apply several moves deepest-first; see ``BatchOrchestrator``."""
        orchestrator = BatchOrchestrator(self.session, self.reparent_category)
        return await orchestrator.batch_reparent(operations, user_id, options or ReparentingOptions())

    def _finish(self, result: ReparentingResult, start_time: float, dry_run: bool = False) -> ReparentingResult:
        result.executionTimeMs = int((time.perf_counter() - start_time) * 1000)
        if result.success and not dry_run:
            logger.info(
                f"Moved category {result.categoryId} from {result.oldPath} to {result.newPath} "
                f"({result.affectedCategories} categories) in {result.executionTimeMs}ms"
            )
        return result
