"""
AI Agents for SnapSpend

DESIGN DECISION: Gemini does the hard part of capture. It turns a voice
note, a receipt photo or a typed sentence into a list of expense
candidates.

CRITICAL BOUNDARIES:

1. EXTRACTION AGENT:
   - CAN: Propose expenses (amount, category, description, date, wallet)
   - CAN: Split one utterance into several items
   - CANNOT: Persist anything (the screener and the store decide)
   - MUST: Use amount 0 when nothing was detected

2. INSIGHTS (ask):
   - CAN: Answer questions FROM the expense lines it is given
   - CANNOT: Invent data that is not in those lines

The LLM is a TRANSLATOR, not an ORACLE.
Its output is PROPOSED data until screened.
"""

import json
from datetime import date
from typing import Any, Iterable, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from snapspend.config import GeminiSettings, get_settings
from snapspend.models.expense import Expense, ExpenseCategory, ParsedExpense


logger = structlog.get_logger(__name__)

JSON_RESPONSE = {"response_mime_type": "application/json"}

SUGGESTED_CATEGORIES = [
    ExpenseCategory.FOOD,
    ExpenseCategory.TRANSPORT,
    ExpenseCategory.SHOPPING,
    ExpenseCategory.BILLS,
    ExpenseCategory.ENTERTAINMENT,
    ExpenseCategory.HEALTH,
    ExpenseCategory.OTHER,
]

INSIGHTS_FALLBACK = "I couldn't analyze the data at this moment."

OUTPUT_FORMAT = """Respond with ONLY a JSON array. Each element is one expense:
{{"amount": 12.5, "category": "Food", "description": "what was bought", "date": "YYYY-MM-DD", "wallet": "payment method"}}

- amount: cost of this item. Use 0 if no valid expense is detected.
- category: one of {categories}.
- description: brief description of what was purchased, in {language}.
- date: ISO 8601 date. Use {today} if not specified.
- wallet: leave empty unless a payment method is mentioned."""


class ExtractionError(Exception):
    """The extraction service could not be reached or refused the request."""
    pass


def parse_candidates(text: Optional[str]) -> list[ParsedExpense]:
    """
    Parse the model's JSON output into candidates.

    A single object is treated as a one-element list. Invalid JSON yields
    an empty list; elements that are not valid candidates are skipped.
    """
    try:
        data = json.loads(text or "[]")
    except json.JSONDecodeError as e:
        logger.warning("extraction_json_invalid", error=str(e))
        return []

    if not isinstance(data, list):
        data = [data]

    candidates = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            candidates.append(ParsedExpense.model_validate(item))
        except ValidationError as e:
            logger.warning("extraction_item_skipped", error=str(e))
    return candidates


def expense_lines(expenses: Iterable[Expense], limit: int) -> str:
    """Render records as Date|Category|Description|Amount lines."""
    lines = []
    for index, expense in enumerate(expenses):
        if index >= limit:
            break
        lines.append(
            f"{expense.date}|{expense.category}|{expense.description}|{expense.amount}"
        )
    return "\n".join(lines)


class ExpenseExtractionAgent:
    """
    Gemini agent behind every capture pathway.

    RESPONSIBILITIES:
    - Extract expense candidates from audio, images and text
    - Transcribe audio
    - Answer questions about the user's expenses

    BOUNDARIES:
    - NEVER persists data
    - Raises ExtractionError when the service call fails
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Any = None,
        insights_max_records: Optional[int] = None,
    ):
        self._settings = settings
        self._insights_max_records = insights_max_records
        self._model = model

    def _get_model(self):
        """Configure Google Generative AI on first use."""
        if self._model is None:
            settings = self._settings or get_settings().gemini
            genai.configure(api_key=settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_tokens,
                }
            )
        return self._model

    async def _generate(self, contents, generation_config: Optional[dict] = None) -> str:
        try:
            if generation_config:
                response = await self._get_model().generate_content_async(
                    contents,
                    generation_config=generation_config,
                )
            else:
                response = await self._get_model().generate_content_async(contents)
            return response.text or ""
        except Exception as e:
            logger.error("gemini_request_failed", error=str(e))
            raise ExtractionError(f"Gemini request failed: {e}") from e

    def _format_instructions(self, language: str) -> str:
        return OUTPUT_FORMAT.format(
            categories=", ".join(category.value for category in SUGGESTED_CATEGORIES),
            language=language,
            today=date.today().isoformat(),
        )

    async def parse_audio(
        self,
        audio: bytes,
        mime_type: str,
        currency: str,
        wallet_names: list[str],
        language: str,
    ) -> list[ParsedExpense]:
        """Extract every expense mentioned in a voice note."""
        prompt = f"""Listen to this audio log. Extract all expenses mentioned.
If multiple items are listed, split them.
User's preferred currency: {currency}. If no currency is spoken, assume {currency}.
Available Wallets/Payment Methods: [{', '.join(wallet_names)}].
If the user mentions a payment method (e.g. "paid by card", "from bKash"), map it to the closest name in the available list.

{self._format_instructions(language)}"""

        text = await self._generate(
            [{"mime_type": mime_type, "data": audio}, prompt],
            JSON_RESPONSE,
        )
        return parse_candidates(text)

    async def parse_image(
        self,
        image: bytes,
        mime_type: str,
        currency: str,
        wallet_names: list[str],
        language: str,
    ) -> list[ParsedExpense]:
        """Extract expenses from a receipt photo."""
        prompt = f"""Analyze this image (receipt). Extract expenses.
User's preferred currency: {currency}.
Available Wallets: [{', '.join(wallet_names)}].
Try to identify the payment method from the receipt text (e.g. Cash, Card ****1234) and map it to the available list.

{self._format_instructions(language)}"""

        text = await self._generate(
            [{"mime_type": mime_type, "data": image}, prompt],
            JSON_RESPONSE,
        )
        return parse_candidates(text)

    async def parse_text(
        self,
        text: str,
        currency: str,
        language: str,
    ) -> list[ParsedExpense]:
        """Extract expenses from a typed or transcribed sentence."""
        prompt = f"""Extract expenses from: "{text}".
User currency: {currency}.

{self._format_instructions(language)}"""

        output = await self._generate(prompt, JSON_RESPONSE)
        return parse_candidates(output)

    async def transcribe_audio(
        self,
        audio: bytes,
        mime_type: str,
        language: str,
    ) -> str:
        """Transcribe a voice note. Silence gives an empty string."""
        prompt = (
            "Transcribe the spoken language in this audio exactly. Return only the text. "
            "If silence, return an empty string. "
            f"The user is likely speaking in {language} or English."
        )
        text = await self._generate([{"mime_type": mime_type, "data": audio}, prompt])
        return text.strip()

    async def ask(
        self,
        question: str,
        expenses: Iterable[Expense],
        currency: str,
        language: str,
    ) -> str:
        """
        Answer a question about the most recent expenses.

        Only the latest records (insights_max_records) are sent.
        """
        limit = self._insights_max_records or get_settings().app.insights_max_records

        prompt = f"""You are a helpful financial assistant for 'xPense'.
You have access to the user's expense history (Date|Category|Description|Amount).
Currency: {currency}.
Today: {date.today().isoformat()}.
Reply in the {language} language.
Answer concisely, using ONLY the data below.

Expense Data:
{expense_lines(expenses, limit)}

User Question: {question}"""

        text = await self._generate(prompt)
        return text.strip() or INSIGHTS_FALLBACK
