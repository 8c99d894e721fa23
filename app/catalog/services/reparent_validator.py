import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.entities.category import Category
from app.catalog.schemas import ReparentingOptions
from app.catalog.services.path_calculator import CategorySnapshot, calculate_path_info, load_snapshot
from app.catalog.services.statistics import count_children, count_descendants
from app.config import Settings, get_settings
from app.lib.db.types import path_contains

logger = logging.getLogger(__name__)


@dataclass
class ConstraintCheck:
    """Output of one business-rule hook."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# Collaborator-supplied rule (brand, tenant, marketplace constraints...).
# Receives the category being moved and the new parent (None for root).
BusinessRule = Callable[[CategorySnapshot, CategorySnapshot | None], Awaitable[ConstraintCheck]]


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    category: CategorySnapshot | None = None
    new_parent: CategorySnapshot | None = None


class ReparentValidator:
    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        business_rules: Sequence[BusinessRule] = (),
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.business_rules = list(business_rules)

    async def validate(
        self, category_id: str, new_parent_id: str | None, options: ReparentingOptions
    ) -> ValidationResult:
        """
        Check whether ``category_id`` may move under ``new_parent_id``.

        Structural failures (self move, missing category, missing parent,
        descendant cycle) skip the checks that depend on them; independent
        problems are all reported. Warnings never affect validity.

        Must be called outside a transaction; the reads run in their own
        read-only transaction.
        """
        async with self.session.begin():
            return await self._validate(category_id, new_parent_id, options)

    async def _validate(
        self, category_id: str, new_parent_id: str | None, options: ReparentingOptions
    ) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if category_id == new_parent_id:
            return ValidationResult(is_valid=False, errors=["Cannot move category to itself"])

        category = await load_snapshot(self.session, category_id)
        if category is None:
            return ValidationResult(is_valid=False, errors=["Category not found"])

        if not category.is_active:
            errors.append("Cannot move inactive/archived categories")

        new_parent = None
        if new_parent_id is not None:
            new_parent = await load_snapshot(self.session, new_parent_id)

            if new_parent is None:
                errors.append("New parent category not found")
            elif category_id in new_parent.path_ids:
                # O(1) containment on the ancestor list, no tree walk
                errors.append("Cannot move category to its own descendant")
            else:
                errors.extend(await self._structural_errors(category, new_parent))

            if new_parent is not None:
                warnings.extend(await self._parent_warnings(new_parent))
        else:
            errors.extend(await self._structural_errors(category, None))

        if options.validateConstraints:
            for rule in self.business_rules:
                check = await rule(category, new_parent)
                errors.extend(check.errors)
                warnings.extend(check.warnings)

        warnings.extend(await self._scale_warnings(category_id))

        if errors:
            logger.info(f"Rejected move of category {category_id} to {new_parent_id or 'root'}: {errors}")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            category=category,
            new_parent=new_parent,
        )

    async def _structural_errors(self, category: CategorySnapshot, new_parent: CategorySnapshot | None) -> list[str]:
        errors = []
        error = await self._check_depth(category, new_parent)
        if error:
            errors.append(error)
        error = await self._check_slug_collision(category, new_parent)
        if error:
            errors.append(error)
        return errors

    async def _max_subtree_level(self, category: CategorySnapshot) -> int:
        """Deepest level in the subtree rooted at ``category`` (the category itself if it is a leaf)."""
        result = await self.session.execute(
            select(func.max(Category.level)).where(path_contains(Category.path_ids, category.id))
        )
        deepest = result.scalar_one_or_none()
        return max(category.level, deepest if deepest is not None else category.level)

    async def _check_depth(self, category: CategorySnapshot, new_parent: CategorySnapshot | None) -> str | None:
        max_depth = self.settings.max_tree_depth
        new_level = new_parent.level + 1 if new_parent is not None else 0
        subtree_height = await self._max_subtree_level(category) - category.level
        final_depth = new_level + subtree_height

        if final_depth > max_depth:
            return f"Move would exceed maximum tree depth ({max_depth})"
        return None

    async def _check_slug_collision(
        self, category: CategorySnapshot, new_parent: CategorySnapshot | None
    ) -> str | None:
        """Paths are unique, so a sibling with the same slug would make the move fail on write."""
        new_path = calculate_path_info(new_parent, category.slug).path
        if new_path == category.path:
            return None

        result = await self.session.execute(select(Category.id).where(Category.path == new_path))
        if result.first() is None:
            return None

        where = "under the new parent" if new_parent is not None else "at root level"
        return f"A category with slug '{category.slug}' already exists {where}"

    async def _parent_warnings(self, new_parent: CategorySnapshot) -> list[str]:
        warnings = []
        if new_parent.is_active and await count_children(self.session, new_parent.id) == 0:
            warnings.append("Moving to a leaf category - parent will no longer be able to contain products")
        if not new_parent.is_active:
            warnings.append("Moving to an inactive parent category")
        return warnings

    async def _scale_warnings(self, category_id: str) -> list[str]:
        warnings = []

        child_count = await count_children(self.session, category_id)
        if child_count > self.settings.large_child_count_threshold:
            warnings.append(f"Category has {child_count} children - operation may take longer")

        descendant_count = await count_descendants(self.session, category_id)
        if descendant_count > self.settings.large_descendant_count_threshold:
            warnings.append(
                f"Category has {descendant_count} descendants - consider running during maintenance window"
            )

        return warnings
