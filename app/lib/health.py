from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.entities.category import Category


async def check_database_health(session: AsyncSession) -> dict:
    """Check database connectivity and that the category table is readable."""
    try:
        result = await session.execute(select(func.count()).select_from(Category))
        return {
            "database": "healthy",
            "connected": True,
            "dialect": session.bind.dialect.name,
            "categories": result.scalar_one(),
        }
    except Exception as e:
        return {"database": "unhealthy", "connected": False, "error": str(e)}
