import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.entities.category import Category
from app.catalog.schemas import ReparentingOptions, ReparentingResult, ReparentOperation

logger = logging.getLogger(__name__)

ReparentFn = Callable[[str, str | None, str, ReparentingOptions], Awaitable[ReparentingResult]]


@dataclass
class RankedOperation:
    category_id: str
    new_parent_id: str | None
    depth: int
    path_ids: list[str]


class BatchOrchestrator:
    """
    Runs multi-move requests one operation at a time, deepest source first.

    Moving a deep node before a shallow ancestor keeps the paths computed for
    disjoint operations valid. Operations on overlapping subtrees (one source
    inside another source's subtree) are not reconciled; they are logged and
    executed as-is.
    """

    def __init__(self, session: AsyncSession, reparent: ReparentFn):
        self.session = session
        self.reparent = reparent

    async def batch_reparent(
        self, operations: Sequence[ReparentOperation], user_id: str, options: ReparentingOptions
    ) -> list[ReparentingResult]:
        """
        Apply ``operations`` sequentially, each in its own transaction.

        Stops after the first failed operation unless ``options.dryRun`` is set.
        Results are returned in execution order, not input order.
        """
        results: list[ReparentingResult] = []
        if not operations:
            return results

        try:
            ranked = await self._sort_operations_by_depth(operations)
        except Exception as e:
            logger.exception("Could not read source levels for batch reparent")
            return [
                ReparentingResult(categoryId=op.categoryId, errors=[f"Batch ordering failed: {e}"])
                for op in operations
            ]
        self._warn_on_overlap(ranked)

        for operation in ranked:
            result = await self.reparent(operation.category_id, operation.new_parent_id, user_id, options)
            results.append(result)

            if not result.success and not options.dryRun:
                logger.warning(
                    f"Batch stopped at category {operation.category_id} after "
                    f"{len(results)} of {len(ranked)} operations: {result.errors}"
                )
                break

        return results

    async def _sort_operations_by_depth(self, operations: Sequence[ReparentOperation]) -> list[RankedOperation]:
        category_ids = sorted({op.categoryId for op in operations})
        async with self.session.begin():
            rows = (
                await self.session.execute(
                    select(Category.id, Category.level, Category.path_ids).where(Category.id.in_(category_ids))
                )
            ).all()
        tree_info = {row.id: (row.level, list(row.path_ids)) for row in rows}

        ranked = [
            RankedOperation(
                category_id=op.categoryId,
                new_parent_id=op.newParentId,
                depth=tree_info.get(op.categoryId, (0, []))[0],
                path_ids=tree_info.get(op.categoryId, (0, []))[1],
            )
            for op in operations
        ]
        # Stable: equal depths keep the caller's order
        ranked.sort(key=lambda op: op.depth, reverse=True)

        logger.debug(f"Batch order: {[(op.category_id, op.depth) for op in ranked]}")
        return ranked

    def _warn_on_overlap(self, ranked: list[RankedOperation]) -> None:
        sources = {op.category_id for op in ranked}
        for op in ranked:
            overlapping = sources.intersection(op.path_ids)
            if overlapping:
                logger.warning(
                    f"Batch moves category {op.category_id} and its ancestor(s) {sorted(overlapping)}; "
                    f"results for overlapping subtrees are undefined"
                )
