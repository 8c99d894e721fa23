from pydantic import BaseModel, Field


class ReparentingOptions(BaseModel):
    """Options accepted by single and batch reparent operations."""

    validateConstraints: bool = Field(True, description="Run registered business-rule hooks")
    updateProducts: bool = Field(False, description="Count products attached to the moved category")
    batchSize: int | None = Field(None, ge=1, description="Descendants rewritten per statement (default from settings)")
    dryRun: bool = Field(False, description="Validate and estimate impact without writing")


class ReparentingResult(BaseModel):
    """Outcome of one reparent operation."""

    success: bool = Field(False, description="Whether the move was committed (or would be, for a dry run)")
    categoryId: str = Field(..., description="ID of the category that was moved")
    oldPath: str = Field("", description="Materialized path before the move")
    newPath: str = Field("", description="Materialized path after the move")
    affectedCategories: int = Field(0, description="Moved category plus rewritten descendants")
    affectedProducts: int = Field(0, description="Products attached to the moved category")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    executionTimeMs: int = Field(0, description="Wall time spent on the operation")


class ReparentOperation(BaseModel):
    categoryId: str = Field(..., description="ID of the category to move")
    newParentId: str | None = Field(None, description="ID of the new parent (null for root level)")


class ReparentRequest(ReparentOperation):
    """Request model for moving one category under a new parent."""

    userId: str = Field(..., description="User requesting the move, carried into logs")
    options: ReparentingOptions = Field(default_factory=ReparentingOptions)


class BatchReparentRequest(BaseModel):
    """Request model for applying several moves in one call."""

    operations: list[ReparentOperation] = Field(...)
    userId: str = Field(..., description="User requesting the moves, carried into logs")
    options: ReparentingOptions = Field(default_factory=ReparentingOptions)
