"""
Shared fixtures for bookfacts tests.
"""

import asyncio
from typing import Optional, Union

import pytest

from bookfacts.board import QueryBoard
from bookfacts.config import reset_settings
from bookfacts.models import BookInfo


class FakeExtractor:
    """In-memory stand-in for BookInfoExtractor that records every call."""

    def __init__(self, outcomes: Optional[dict[str, Union[BookInfo, Exception]]] = None) -> None:
        self.outcomes = outcomes or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, str]] = []

    def gate(self, question: str) -> asyncio.Event:
        """Make calls for `question` wait until the returned event is set."""
        self.gates[question] = asyncio.Event()
        return self.gates[question]

    async def invoke(self, credential: str, question: str) -> BookInfo:
        self.calls.append((credential, question))
        gate = self.gates.get(question)
        if gate is not None:
            await gate.wait()
        outcome = self.outcomes.get(question, BookInfo(title=question))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate every test from the caller's environment and cached settings."""
    for name in (
        "GEMINI_MODEL",
        "GEMINI_TEMPERATURE",
        "GEMINI_MAX_OUTPUT_TOKENS",
        "LOG_LEVEL",
        "LOG_FILE_PATH",
        "DEV_MODE",
        "GEMINI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def board(fake_extractor):
    return QueryBoard(fake_extractor)


@pytest.fixture
def harry_potter():
    return BookInfo(title="Harry Potter", author="J.K. Rowling")
