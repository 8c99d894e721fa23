from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, SmallInteger, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.lib.db.base import Base
from app.lib.db.types import AncestorIds


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("level >= 0", name="level_non_negative"),
        CheckConstraint("level = cardinality(path_ids)", name="level_matches_path_ids").ddl_if(dialect="postgresql"),
        Index("ix_categories_path_ids", "path_ids", postgresql_using="gin"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    # Materialized path: "/electronics/phones", ancestor ids root..parent, and len(path_ids)
    path: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True, index=True)
    path_ids: Mapped[list[str]] = mapped_column(AncestorIds, nullable=False, default=list)
    level: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Derived statistics, refreshed after reparenting
    child_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    descendant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, path={self.path}, level={self.level})>"
