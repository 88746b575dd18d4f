"""
Usage Models

AI features cost credits. Free accounts have a fixed allowance;
paid plans are unlimited. These models carry the account state that
the credit gate reads and updates.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Plan(str, Enum):
    """Subscription plans."""
    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"


class UsageAccount(BaseModel):
    """Credit usage for one user."""
    model_config = ConfigDict(frozen=True)

    plan: Plan = Field(
        default=Plan.FREE,
        description="Subscription plan"
    )
    credits_used: int = Field(
        default=0,
        ge=0,
        description="Credits consumed so far"
    )
    credits_limit: int = Field(
        default=50,
        ge=0,
        description="Credit allowance (ignored for paid plans)"
    )

    @property
    def is_unlimited(self) -> bool:
        return self.plan != Plan.FREE


class UsageSnapshot(BaseModel):
    """Display-ready view of an account's remaining allowance."""

    used: int
    limit: int
    remaining: int = Field(ge=0)
    percentage: float = Field(ge=0.0, le=100.0)
    is_low: bool = Field(description="More than 80% of the allowance used")
    is_out: bool = Field(description="Allowance exhausted")
