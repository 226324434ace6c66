"""
Tests for prompt building and response parsing.
"""

import pytest

from bookfacts.extraction.parser import parse_book_info, strip_code_fences
from bookfacts.extraction.prompts import PLACEHOLDER, PROMPT_TEMPLATE, build_prompt
from bookfacts.models import BookInfo
from bookfacts.utils.errors import ExtractionError, ParseError

HARRY_POTTER_JSON = (
    '{"title":"Harry Potter","author":"J.K. Rowling","publisher":"",'
    '"publicationYear":"","genre":"","language":""}'
)


class TestPrompt:
    def test_template_has_single_substitution_point(self):
        assert PROMPT_TEMPLATE.count(PLACEHOLDER) == 1

    def test_question_substituted_verbatim(self):
        prompt = build_prompt("J.K. 롤링의 해리포터 찾아줘.")

        assert "- user_prompt: J.K. 롤링의 해리포터 찾아줘." in prompt
        assert PLACEHOLDER not in prompt

    def test_json_braces_survive(self):
        prompt = build_prompt("anything")

        assert '"publicationYear": ""' in prompt
        assert "{\n" in prompt

    def test_braces_in_question_are_not_interpreted(self):
        prompt = build_prompt("a book called {user_prompt} {0}")

        assert "- user_prompt: a book called {user_prompt} {0}" in prompt

    def test_instructions_present(self):
        prompt = build_prompt("x")

        for key in ("title", "author", "publisher", "publicationYear", "genre", "language"):
            assert f"`{key}`" in prompt
        assert "Do not infer, guess" in prompt
        assert "Respond with ONLY the following JSON object" in prompt


class TestStripCodeFences:
    @pytest.mark.parametrize(
        "raw",
        [
            "```json\n{}\n```",
            "```JSON\n{}\n```",
            "```\n{}\n```",
            "  ```json\n{}\n```  \n",
            "```json {}```",
            "{}",
        ],
    )
    def test_fences_removed(self, raw):
        assert strip_code_fences(raw) == "{}"

    def test_inner_backticks_kept(self):
        raw = '```json\n{"title": "```odd```"}\n```'

        assert strip_code_fences(raw) == '{"title": "```odd```"}'


class TestParseBookInfo:
    def test_fenced_response(self):
        info = parse_book_info(f"```json\n{HARRY_POTTER_JSON}\n```")

        assert info == BookInfo(title="Harry Potter", author="J.K. Rowling")
        assert info.publisher == ""
        assert info.publication_year == ""
        assert info.genre == ""
        assert info.language == ""

    def test_bare_response(self):
        assert parse_book_info(HARRY_POTTER_JSON).title == "Harry Potter"

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "```json\n```",
            "Sure! Here is the JSON you asked for.",
            '{"title": "Harry Potter",',
        ],
    )
    def test_malformed_response_raises(self, raw):
        with pytest.raises(ParseError):
            parse_book_info(raw)

    def test_non_object_raises(self):
        with pytest.raises(ParseError, match="JSON 객체가 아닙니다"):
            parse_book_info(f"[{HARRY_POTTER_JSON}]")

    def test_missing_keys_raise(self):
        with pytest.raises(ParseError, match="genre, language"):
            parse_book_info('{"title":"Dune","author":"","publisher":"","publicationYear":""}')

    def test_wrong_value_type_raises(self):
        raw = HARRY_POTTER_JSON.replace('"genre":""', '"genre":null')

        with pytest.raises(ParseError, match="genre"):
            parse_book_info(raw)

    def test_parse_error_is_an_extraction_error_and_keeps_text(self):
        with pytest.raises(ExtractionError) as exc_info:
            parse_book_info("not json")

        assert isinstance(exc_info.value, ParseError)
        assert exc_info.value.raw_text == "not json"
