"""
AI Advisor Agent for Burnrate

DESIGN DECISION: One agent wraps every Gemini call the app makes, and
every call returns an explicit Pydantic result type. Model output is
validated at this boundary; nothing downstream ever sees raw text that
claims to be structured data.

CRITICAL BOUNDARIES:

1. PLANNING / BRIEFING:
   - CAN: Turn the compact ledger summary into advice
   - CANNOT: See individual records beyond the summary it is given
   - CANNOT: Change the ledger

2. RECEIPT SCANNING:
   - CAN: Propose name, amount and category from a receipt image
   - CANNOT: Persist anything (the user confirms the draft first)
   - CANNOT: Invent a category outside the known list

The LLM is an ADVISOR, not a BOOKKEEPER.
Every number it talks about was computed by the finance core.
"""

import json
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field, ValidationError

from burnrate.config import GeminiSettings, get_settings
from burnrate.models.expense import CATEGORIES, FALLBACK_CATEGORY

logger = structlog.get_logger(__name__)

RECEIPT_PROMPT = (
    "Extract this receipt as JSON only, in this exact format: "
    '{"name": "merchant or item", "amount": 12.5, "category": "category", '
    '"confidence": 0.8}. '
    f"Category must be one of: {', '.join(CATEGORIES)}."
)


class AdvisorError(Exception):
    """The model call failed or returned nothing usable."""
    pass


class ReceiptParseError(AdvisorError):
    """The model's receipt output could not be turned into an expense."""
    pass


class PlanResult(BaseModel):
    """Markdown financial roadmap."""

    text: str = Field(min_length=1, description="Plan in Markdown")


class BriefingResult(BaseModel):
    """Two-sentence executive summary meant to be read aloud."""

    text: str = Field(min_length=1, description="Spoken summary")


class ChatReply(BaseModel):
    """Advisor answer to a free-form question."""

    text: str = Field(min_length=1, description="Reply text")


class ReceiptExtraction(BaseModel):
    """
    What the model read off a receipt.

    This is a suggestion for the user to confirm, never a saved expense.
    """

    name: str = Field(min_length=1, description="Merchant or item name")
    amount: float = Field(ge=0, allow_inf_nan=False, description="Amount paid")
    category: str = Field(description="One of CATEGORIES")
    confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Model's own confidence in the extraction"
    )


def match_category(raw: Any) -> str:
    """Map free text onto a known category, case-insensitively."""
    if isinstance(raw, str):
        wanted = raw.strip().casefold()
        for category in CATEGORIES:
            if category.casefold() == wanted:
                return category
    return FALLBACK_CATEGORY


def _extract_json(text: str) -> dict:
    """Find and parse the JSON object in a model response."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ReceiptParseError("No JSON object in receipt response")
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ReceiptParseError(f"Invalid JSON in receipt response: {e}") from e
    if not isinstance(data, dict):
        raise ReceiptParseError("Receipt response is not a JSON object")
    return data


class FinanceAdvisorAgent:
    """
    Gemini-backed advisor.

    RESPONSIBILITIES:
    - Generate plans and spoken briefings from prompts built by the
      context builders
    - Answer questions against the advisor briefing
    - Read receipts into a draft

    `model` / `vision_model` can be injected (tests use fakes); otherwise
    they are built from GeminiSettings.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
        vision_model: Any = None,
    ):
        self._settings = settings
        self._model = model
        self._vision_model = vision_model
        if self._model is None or self._vision_model is None:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        if self._settings is None:
            self._settings = get_settings().gemini
        genai.configure(api_key=self._settings.api_key)
        if self._model is None:
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                }
            )
        if self._vision_model is None:
            self._vision_model = genai.GenerativeModel(
                model_name=self._settings.vision_model_name,
                generation_config={
                    "temperature": 0.1,  # Low temperature for consistency
                    "response_mime_type": "application/json",
                }
            )

    async def _generate(self, model: Any, contents: Any, operation: str) -> str:
        try:
            response = await model.generate_content_async(contents)
            text = (response.text or "").strip()
        except Exception as e:
            logger.error("advisor_call_failed", operation=operation, error=str(e))
            raise AdvisorError(f"{operation} failed: {e}") from e

        if not text:
            logger.warning("advisor_empty_response", operation=operation)
            raise AdvisorError(f"{operation} returned an empty response")
        return text

    async def generate_plan(self, prompt: str) -> PlanResult:
        """Strict Markdown roadmap for the prompt built by build_planner_prompt."""
        text = await self._generate(self._model, prompt, "planning")
        logger.info("plan_generated", length=len(text))
        return PlanResult(text=text)

    async def generate_briefing(self, prompt: str) -> BriefingResult:
        """Two-sentence summary for the prompt built by build_briefing_prompt."""
        text = await self._generate(self._model, prompt, "briefing")
        return BriefingResult(text=text)

    async def chat(self, message: str, context: str = "") -> ChatReply:
        """
        Answer `message` using only the advisor briefing in `context`.
        """
        prompt = f"{context}\n\nUSER: {message.strip()}" if context else message.strip()
        text = await self._generate(self._model, prompt, "chat")
        return ChatReply(text=text)

    async def parse_receipt(self, image_bytes: bytes, mime_type: str) -> ReceiptExtraction:
        """
        Read name, amount and category off a receipt image.

        Raises:
            AdvisorError: If the model call fails
            ReceiptParseError: If the output is not a usable extraction
        """
        contents = [
            {"mime_type": mime_type, "data": image_bytes},
            RECEIPT_PROMPT,
        ]
        text = await self._generate(self._vision_model, contents, "receipt_scan")
        data = _extract_json(text)

        raw_category = data.get("category")
        data["category"] = match_category(raw_category)
        if data["category"] != raw_category:
            logger.info("receipt_category_mapped", raw=raw_category, mapped=data["category"])
        if data.get("confidence") is None:
            data.pop("confidence", None)

        try:
            extraction = ReceiptExtraction.model_validate(data)
        except ValidationError as e:
            logger.warning("receipt_parse_failed", error_count=e.error_count())
            raise ReceiptParseError(f"Receipt response failed validation: {e}") from e

        return extraction
