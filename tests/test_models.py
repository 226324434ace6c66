"""
Tests for the BookInfo and QuerySlot models.
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from bookfacts.models import BOOK_INFO_KEYS, BookInfo, QuerySlot, SlotStatus


class TestBookInfo:
    def test_defaults_are_empty_strings(self):
        info = BookInfo()

        assert info.to_wire() == {key: "" for key in BOOK_INFO_KEYS}
        assert info.is_empty()

    def test_accepts_wire_and_python_names(self):
        by_alias = BookInfo.model_validate({"publicationYear": "1997"})
        by_name = BookInfo(publication_year="1997")

        assert by_alias == by_name
        assert by_alias.publication_year == "1997"

    def test_integer_year_kept_as_text(self):
        info = BookInfo.model_validate({"publicationYear": 1997})

        assert info.publication_year == "1997"

    def test_partial_year_expression_untouched(self):
        info = BookInfo(publication_year="1990년대 초")

        assert info.publication_year == "1990년대 초"

    def test_null_field_rejected(self):
        with pytest.raises(PydanticValidationError):
            BookInfo.model_validate({"title": None})

    def test_extra_keys_ignored(self):
        info = BookInfo.model_validate({"title": "Dune", "isbn": "9780441013593"})

        assert info.title == "Dune"
        assert "isbn" not in info.to_wire()

    def test_display_json_uses_wire_keys_in_order(self):
        info = BookInfo(title="해리 포터", author="J.K. 롤링", publication_year="1997")

        rendered = info.to_display_json()

        assert list(json.loads(rendered)) == list(BOOK_INFO_KEYS)
        assert '  "publicationYear": "1997"' in rendered

    def test_frozen(self):
        info = BookInfo(title="Dune")

        with pytest.raises(PydanticValidationError):
            info.title = "Emma"


class TestQuerySlot:
    def test_initial_state(self):
        slot = QuerySlot(index=3)

        assert slot.question == ""
        assert slot.result is None
        assert slot.error is None
        assert slot.is_loading is False
        assert slot.generation == 0
        assert slot.status == SlotStatus.IDLE
        assert not slot.has_question

    def test_whitespace_question_is_not_a_question(self):
        assert not QuerySlot(index=0, question="   \n").has_question
        assert QuerySlot(index=0, question=" Dune ").has_question

    def test_start_clears_previous_outcome(self):
        slot = QuerySlot(index=0, question="Dune")
        slot.fail("boom")

        generation = slot.start()

        assert generation == 1
        assert slot.is_loading
        assert slot.error is None
        assert slot.result is None
        assert slot.status == SlotStatus.LOADING

    def test_succeed_then_fail_keep_outcomes_exclusive(self):
        slot = QuerySlot(index=0)

        slot.succeed(BookInfo(title="Dune"))
        assert slot.error is None
        assert slot.status == SlotStatus.SUCCEEDED

        slot.fail("boom")
        assert slot.result is None
        assert slot.status == SlotStatus.FAILED

    def test_reject_clears_result(self):
        slot = QuerySlot(index=0)
        slot.succeed(BookInfo(title="Dune"))

        slot.reject("missing input")

        assert slot.result is None
        assert slot.error == "missing input"
        assert slot.is_loading is False

    def test_negative_index_rejected(self):
        with pytest.raises(PydanticValidationError):
            QuerySlot(index=-1)
