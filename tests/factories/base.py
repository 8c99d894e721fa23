"""Base factory configuration for async SQLAlchemy."""

import factory
from sqlalchemy.ext.asyncio import AsyncSession


class AsyncSQLAlchemyModelFactory(factory.Factory):
    """Base factory for async SQLAlchemy models.

    Instances are flushed, not committed; tests commit once seeding is done so
    the code under test can open its own transactions.
    """

    class Meta:
        abstract = True

    @classmethod
    async def create_async(cls, session: AsyncSession, **kwargs):
        """Build, add and flush an instance."""
        instance = cls.build(**kwargs)
        session.add(instance)
        await session.flush()
        return instance

    @classmethod
    async def create_batch_async(cls, session: AsyncSession, size: int, **kwargs):
        """Create several instances sharing ``kwargs``."""
        return [await cls.create_async(session, **kwargs) for _ in range(size)]
