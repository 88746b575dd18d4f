"""AI Agents package."""

from burnrate.agents.ai_agents import (
    AdvisorError,
    BriefingResult,
    ChatReply,
    FinanceAdvisorAgent,
    PlanResult,
    ReceiptExtraction,
    ReceiptParseError,
    match_category,
)

__all__ = [
    "AdvisorError",
    "BriefingResult",
    "ChatReply",
    "FinanceAdvisorAgent",
    "PlanResult",
    "ReceiptExtraction",
    "ReceiptParseError",
    "match_category",
]
