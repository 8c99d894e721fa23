from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.lib.db.base import Base


class Product(Base):
    """Catalog product. Owned by the product domain; reparenting only counts these."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, category_id={self.category_id})>"
