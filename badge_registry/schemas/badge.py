from pydantic import BaseModel, Field
from typing import List, Optional

from badge_registry.core.validation import PRINCIPAL_PATTERN


class MintRequest(BaseModel):
    # Length is enforced by the registry so callers get InvalidUri, not a 422
    uri: str = Field(..., description="Achievement metadata URI (1-256 bytes)")


class TimeLimitedMintRequest(MintRequest):
    expiry_block: int = Field(..., ge=0, description="Block height at which the badge expires")


class BatchMintRequest(BaseModel):
    uris: List[str] = Field(..., description="Up to 100 URIs, minted left to right")


class TransferRequest(BaseModel):
    recipient: str = Field(..., pattern=PRINCIPAL_PATTERN.pattern, description="Principal receiving the badge")


class UpdateUriRequest(BaseModel):
    uri: str = Field(..., description="Replacement metadata URI (1-256 bytes)")


class MintResponse(BaseModel):
    badge_id: int


class BatchMintFailure(BaseModel):
    """One rejected element of a batch, by position in the request."""
    index: int
    error: str
    detail: str


class BatchMintResult(BaseModel):
    badge_ids: List[int]
    failures: List[BatchMintFailure] = []


class BadgeMetadata(BaseModel):
    uri: str
    owner: str
    burned: bool


class BadgeVerification(BaseModel):
    """Non-failing diagnostic snapshot of a badge id."""
    exists: bool
    owner: Optional[str] = None
    has_uri: bool
    burned: bool


class BadgeDetail(BaseModel):
    id: int
    uri: Optional[str] = None
    owner: Optional[str] = None
    burned: bool
    expiry_block: Optional[int] = None
    expired: bool


class RegistryStats(BaseModel):
    total_mints: int
    total_burns: int
    total_transfers: int
    active_badges: int


class OwnedBadges(BaseModel):
    principal: str
    badge_ids: List[int]
