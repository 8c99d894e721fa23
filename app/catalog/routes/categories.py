from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.schemas import BatchReparentRequest, ReparentingResult, ReparentRequest
from app.catalog.services.reparenting_service import CategoryReparentingService
from app.lib.db.session import get_session

router = APIRouter()


@router.post("/reparent", response_model=ReparentingResult, status_code=status.HTTP_200_OK)
async def reparent_category(request: ReparentRequest, session: AsyncSession = Depends(get_session)):
    """
    Move a category (and its subtree) under a new parent, or to root level when newParentId is null.

    Validation and store failures are reported in the result body, not as HTTP errors.
    """
    service = CategoryReparentingService(session)
    try:
        return await service.reparent_category(
            request.categoryId, request.newParentId, request.userId, request.options
        )
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to move category: {e}")


@router.post("/reparent/batch", response_model=list[ReparentingResult], status_code=status.HTTP_200_OK)
async def batch_reparent(request: BatchReparentRequest, session: AsyncSession = Depends(get_session)):
    """
    Apply several moves, deepest source category first.

    Results are listed in execution order. Processing stops at the first
    failure unless options.dryRun is set.
    """
    service = CategoryReparentingService(session)
    try:
        return await service.batch_reparent(request.operations, request.userId, request.options)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to move categories: {e}")
