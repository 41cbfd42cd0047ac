from pydantic import BaseModel, Field


class BlockHeightResponse(BaseModel):
    block_height: int


class AdvanceBlocksRequest(BaseModel):
    count: int = Field(1, ge=1, le=1_000_000, description="Number of blocks to advance")
