"""Branch schemas for translation lineage."""

from __future__ import annotations

from pydantic import Field

from locsync_schemas.base import BaseSchema
from locsync_schemas.primitives import BranchId


class Branch(BaseSchema):
    """Named translation lineage known to the remote service."""

    id: BranchId = Field(..., description="Remote branch identifier")
    name: str = Field(..., min_length=1, description="Branch name")


class BranchQueryResult(BaseSchema):
    """Remote branch registry lookup result."""

    branches: list[Branch] = Field(
        default_factory=list, description="Branches matching the queried names"
    )
    default_branch: Branch | None = Field(
        None, description="Project default branch if one exists"
    )


class BranchContext(BaseSchema):
    """Branch resolution result threaded through the sync stages.

    ``incoming_branch`` and ``checked_out_branch`` are advisory lineage hints;
    nothing downstream requires them.
    """

    current_branch: Branch = Field(..., description="Branch this run writes to")
    incoming_branch: Branch | None = Field(
        None, description="Branch most recently merged into the current one"
    )
    checked_out_branch: Branch | None = Field(
        None, description="Branch the current one was created from"
    )


class DetectedBranch(BaseSchema):
    """Current branch as reported by version control."""

    current_branch_name: str = Field(..., min_length=1, description="Branch name")
    default_branch: bool = Field(
        False, description="Whether the current branch is the remote default"
    )
    default_branch_name: str | None = Field(
        None, description="Remote default branch name when known"
    )
