"""
Tests for the capture pipeline pieces: JSON parsing of model output,
the Gemini agent (with a fake model) and candidate screening.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from snapspend.agents import (
    ExpenseExtractionAgent,
    ExtractionError,
    expense_lines,
    parse_candidates,
)
from snapspend.models import CaptureSource, ParsedExpense, Wallet
from snapspend.validation import CandidateScreener

from conftest import make_expense


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Records prompts and returns a canned response."""

    def __init__(self, text="[]", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content_async(self, contents, generation_config=None):
        self.calls.append((contents, generation_config))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text)


class TestParseCandidates:
    """Tests for parse_candidates."""

    def test_list_of_items(self):
        candidates = parse_candidates(
            '[{"amount": 12.5, "category": "Food", "description": "Coffee"},'
            ' {"amount": 3, "category": "Transport", "description": "Bus", "wallet": "Card"}]'
        )
        assert [candidate.amount for candidate in candidates] == [Decimal("12.5"), Decimal("3")]
        assert candidates[1].wallet == "Card"

    def test_single_object_is_wrapped(self):
        candidates = parse_candidates('{"amount": 5, "description": "Tea"}')
        assert len(candidates) == 1
        assert candidates[0].description == "Tea"

    def test_invalid_json_yields_nothing(self):
        assert parse_candidates("Sorry, I could not hear that") == []
        assert parse_candidates(None) == []

    def test_invalid_items_are_skipped(self):
        candidates = parse_candidates('[{"description": "no amount"}, "text", {"amount": 2}]')
        assert [candidate.amount for candidate in candidates] == [Decimal("2")]


class TestExpenseLines:
    def test_lines_are_limited(self):
        expenses = [
            make_expense("a", "12.50", "2024-05-02", description="Coffee", category="Food"),
            make_expense("b", "3", "2024-05-01", description="Bus", category="Transport"),
        ]
        assert expense_lines(expenses, 1) == "2024-05-02|Food|Coffee|12.50"
        assert expense_lines(expenses, 500).count("\n") == 1


class TestExpenseExtractionAgent:
    """Tests for the agent with a fake Gemini model."""

    def test_parse_text_uses_json_mode(self):
        model = FakeModel('[{"amount": 40, "category": "Food", "description": "Lunch"}]')
        agent = ExpenseExtractionAgent(model=model)

        candidates = asyncio.run(agent.parse_text("lunch 40 taka", "BDT", "English"))

        assert candidates[0].description == "Lunch"
        prompt, config = model.calls[0]
        assert "lunch 40 taka" in prompt
        assert config == {"response_mime_type": "application/json"}

    def test_parse_audio_sends_inline_data(self):
        model = FakeModel("[]")
        agent = ExpenseExtractionAgent(model=model)

        asyncio.run(agent.parse_audio(b"voice", "audio/webm", "BDT", ["Cash", "Card"], "English"))

        contents, _ = model.calls[0]
        assert contents[0] == {"mime_type": "audio/webm", "data": b"voice"}
        assert "Cash, Card" in contents[1]

    def test_service_error_becomes_extraction_error(self):
        agent = ExpenseExtractionAgent(model=FakeModel(error=RuntimeError("503")))
        with pytest.raises(ExtractionError):
            asyncio.run(agent.parse_image(b"img", "image/jpeg", "BDT", ["Cash"], "English"))

    def test_transcribe_strips_text(self):
        agent = ExpenseExtractionAgent(model=FakeModel("  hello there \n"))
        assert asyncio.run(agent.transcribe_audio(b"a", "audio/webm", "English")) == "hello there"

    def test_ask_sends_latest_records_only(self):
        model = FakeModel("You spent 15.50.")
        agent = ExpenseExtractionAgent(model=model, insights_max_records=1)
        expenses = [
            make_expense("a", "12.50", "2024-05-02", description="Coffee"),
            make_expense("b", "3", "2024-05-01", description="Bus"),
        ]

        answer = asyncio.run(agent.ask("How much?", expenses, "BDT", "English"))

        assert answer == "You spent 15.50."
        prompt, config = model.calls[0]
        assert "Coffee" in prompt
        assert "Bus" not in prompt
        assert config is None

    def test_ask_empty_answer_falls_back(self):
        agent = ExpenseExtractionAgent(model=FakeModel(""), insights_max_records=10)
        answer = asyncio.run(agent.ask("?", [], "BDT", "English"))
        assert answer == "I couldn't analyze the data at this moment."


class TestCandidateScreener:
    """Tests for CandidateScreener."""

    def setup_method(self):
        self.screener = CandidateScreener()
        self.today = date(2024, 5, 15)

    def test_defaults_are_filled(self, wallets):
        result = self.screener.screen(
            [ParsedExpense(amount=Decimal("5"))],
            CaptureSource.VOICE,
            wallets,
            today=self.today,
        )
        item = result.accepted[0]
        assert item.category == "Other"
        assert item.description == "Voice Entry"
        assert item.date == "2024-05-15"
        assert item.wallet_id == "default-cash"

    def test_placeholder_follows_source(self, wallets):
        result = self.screener.screen(
            [ParsedExpense(amount=Decimal("5"))], CaptureSource.PHOTO, wallets, today=self.today
        )
        assert result.accepted[0].description == "Receipt"

    def test_non_positive_amounts_dropped(self, wallets):
        result = self.screener.screen(
            [
                ParsedExpense(amount=Decimal("0")),
                ParsedExpense(amount=Decimal("-2")),
                ParsedExpense(amount=Decimal("7"), description="Tea"),
            ],
            CaptureSource.TEXT,
            wallets,
            today=self.today,
        )
        assert [item.description for item in result.accepted] == ["Tea"]
        assert result.rejected_count == 2
        assert [issue.index for issue in result.issues] == [0, 1]

    def test_nothing_detected(self, wallets):
        result = self.screener.screen(
            [ParsedExpense(amount=Decimal("0"))], CaptureSource.VOICE, wallets, today=self.today
        )
        assert not result.has_expenses

    def test_wallet_resolved_by_name(self, wallets):
        wallets.add(Wallet(id="w1", name="bKash"))
        result = self.screener.screen(
            [ParsedExpense(amount=Decimal("5"), wallet="from bkash")],
            CaptureSource.VOICE,
            wallets,
            today=self.today,
        )
        assert result.accepted[0].wallet_id == "w1"

    def test_unparseable_date_kept_with_warning(self, wallets):
        result = self.screener.screen(
            [ParsedExpense(amount=Decimal("5"), date="last tuesday")],
            CaptureSource.TEXT,
            wallets,
            today=self.today,
        )
        assert result.accepted[0].date == "last tuesday"
        assert result.issues[0].severity == "warning"
        assert result.rejected_count == 0
