from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.entities.category import Category


@dataclass(frozen=True)
class PathInfo:
    """Materialized path fields for a single category."""

    path: str
    path_ids: list[str] = field(default_factory=list)
    level: int = 0


@dataclass(frozen=True)
class CategorySnapshot:
    """Tree fields of a category row, read once and detached from the session."""

    id: str
    slug: str
    path: str
    path_ids: list[str]
    level: int
    parent_id: str | None = None
    is_active: bool = True

    @property
    def path_info(self) -> PathInfo:
        return PathInfo(path=self.path, path_ids=list(self.path_ids), level=self.level)


SNAPSHOT_COLUMNS = (
    Category.id,
    Category.slug,
    Category.path,
    Category.path_ids,
    Category.level,
    Category.parent_id,
    Category.is_active,
)


async def load_snapshot(session: AsyncSession, category_id: str) -> CategorySnapshot | None:
    """Fetch the tree fields of one category, or None if it does not exist."""
    result = await session.execute(select(*SNAPSHOT_COLUMNS).where(Category.id == category_id))
    row = result.first()
    if row is None:
        return None
    return CategorySnapshot(
        id=row.id,
        slug=row.slug,
        path=row.path,
        path_ids=list(row.path_ids),
        level=row.level,
        parent_id=row.parent_id,
        is_active=row.is_active,
    )


def calculate_path_info(parent: CategorySnapshot | None, slug: str) -> PathInfo:
    """
    Compute the path fields a category with ``slug`` gets under ``parent``.

    Example for parent /electronics (path_ids=[], level=0) and slug "phones":
    - path: /electronics/phones
    - path_ids: [electronics]
    - level: 1

    A ``None`` parent means the category becomes a root.
    """
    if parent is None:
        return PathInfo(path=f"/{slug}", path_ids=[], level=0)

    return PathInfo(
        path=f"{parent.path}/{slug}",
        path_ids=list(parent.path_ids) + [parent.id],
        level=parent.level + 1,
    )


def rebase_descendant(
    descendant_path: str,
    descendant_path_ids: list[str],
    descendant_level: int,
    moved: CategorySnapshot,
    new_info: PathInfo,
) -> PathInfo:
    """
    Rewrite a descendant's path fields after ``moved`` relocates to ``new_info``.

    The part of the descendant's path below the moved category is preserved:
    - path: new_info.path + suffix after the moved category's old path
    - path_ids: new_info.path_ids + [moved.id] + ids after moved.id
    - level: shifted by the same amount as the moved category
    """
    relative_path = descendant_path[len(moved.path) :]

    # Raises ValueError if the row is not actually below the moved category
    moved_idx = descendant_path_ids.index(moved.id)
    relative_path_ids = list(descendant_path_ids[moved_idx + 1 :])

    return PathInfo(
        path=new_info.path + relative_path,
        path_ids=list(new_info.path_ids) + [moved.id] + relative_path_ids,
        level=descendant_level + (new_info.level - moved.level),
    )
