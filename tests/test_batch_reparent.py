import logging

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.schemas import ReparentingOptions, ReparentOperation
from app.catalog.services.reparenting_service import CategoryReparentingService
from app.config import Settings
from catalog_helpers import assert_tree_invariants, fetch_all, snapshot_categories


def ops(*pairs: tuple[str, str | None]) -> list[ReparentOperation]:
    return [ReparentOperation(categoryId=category_id, newParentId=parent_id) for category_id, parent_id in pairs]


@pytest.mark.asyncio
async def test_batch_runs_deepest_first(db_session: AsyncSession, catalog, settings: Settings):
    service = CategoryReparentingService(db_session, settings)

    results = await service.batch_reparent(ops(("kitchen", "garden"), ("android", "laptops")), "user-1")

    assert [r.categoryId for r in results] == ["android", "kitchen"]
    assert all(r.success for r in results)

    rows = await fetch_all(db_session)
    assert rows["android"].path == "/electronics/laptops/android"
    assert rows["kitchen"].path == "/garden/kitchen"
    assert rows["cookware"].path == "/garden/kitchen/cookware"
    assert_tree_invariants(rows)


@pytest.mark.asyncio
async def test_equal_depths_keep_input_order(db_session: AsyncSession, catalog, settings: Settings):
    service = CategoryReparentingService(db_session, settings)

    results = await service.batch_reparent(ops(("laptops", "garden"), ("kitchen", None)), "user-1")

    assert [r.categoryId for r in results] == ["laptops", "kitchen"]


@pytest.mark.asyncio
async def test_batch_stops_on_first_failure(db_session: AsyncSession, catalog, settings: Settings):
    service = CategoryReparentingService(db_session, settings)
    before = await snapshot_categories(db_session)

    results = await service.batch_reparent(ops(("kitchen", "garden"), ("android", "android")), "user-1")

    assert len(results) == 1
    assert results[0].categoryId == "android"
    assert results[0].success is False
    assert results[0].errors == ["Cannot move category to itself"]
    assert await snapshot_categories(db_session) == before


@pytest.mark.asyncio
async def test_dry_run_batch_collects_every_result(db_session: AsyncSession, catalog, settings: Settings):
    service = CategoryReparentingService(db_session, settings)
    before = await snapshot_categories(db_session)

    results = await service.batch_reparent(
        ops(("kitchen", "garden"), ("android", "android"), ("ghost", "home")),
        "user-1",
        ReparentingOptions(dryRun=True),
    )

    assert [(r.categoryId, r.success) for r in results] == [
        ("android", False),
        ("kitchen", True),
        ("ghost", False),
    ]
    assert results[1].affectedCategories == 2
    assert results[2].errors == ["Category not found"]
    assert await snapshot_categories(db_session) == before


@pytest.mark.asyncio
async def test_empty_batch(db_session: AsyncSession, settings: Settings):
    assert await CategoryReparentingService(db_session, settings).batch_reparent([], "user-1") == []


@pytest.mark.asyncio
async def test_overlapping_subtrees_are_flagged(db_session: AsyncSession, catalog, settings: Settings, caplog):
    """
    Moving a node and one of its descendants in the same batch has no defined
    outcome; callers must submit disjoint subtrees. The orchestrator only logs it.
    """
    service = CategoryReparentingService(db_session, settings)

    with caplog.at_level(logging.WARNING, logger="app.catalog.services.batch_orchestrator"):
        results = await service.batch_reparent(ops(("phones", "home"), ("android", "garden")), "user-1")

    assert [r.categoryId for r in results] == ["android", "phones"]
    assert any("overlapping subtrees" in record.getMessage() for record in caplog.records)
    # Whatever the outcome, each committed operation leaves a consistent tree
    assert_tree_invariants(await fetch_all(db_session))
