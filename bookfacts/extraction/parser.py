"""
Decoding of model responses into BookInfo records.

The prompt asks for bare JSON, but models still wrap answers in markdown
fences now and then, so fences are removed before decoding.
"""

import json
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from bookfacts.models import BOOK_INFO_KEYS, BookInfo
from bookfacts.utils.errors import ParseError
from bookfacts.utils.logging import get_logger

logger = get_logger(__name__)

# ```json, ```JSON, ``` and friends at the very start; ``` at the very end
_LEADING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_book_info(response_text: str) -> BookInfo:
    """
    Decode a model response into a BookInfo.

    Args:
        response_text: Raw text returned by the model

    Returns:
        The six-field record

    Raises:
        ParseError: If the text is not a JSON object with all six string keys
    """
    cleaned = strip_code_fences(response_text or "")
    if not cleaned:
        raise ParseError("모델 응답이 비어 있습니다.", raw_text=response_text)

    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Response is not valid JSON: {e}")
        raise ParseError(f"모델 응답을 JSON으로 해석할 수 없습니다: {e.msg}", raw_text=response_text) from e

    if not isinstance(data, dict):
        raise ParseError(
            f"모델 응답이 JSON 객체가 아닙니다 ({type(data).__name__}).", raw_text=response_text
        )

    missing = [key for key in BOOK_INFO_KEYS if key not in data]
    if missing:
        raise ParseError(f"모델 응답에 필드가 없습니다: {', '.join(missing)}", raw_text=response_text)

    try:
        return BookInfo.model_validate(data)
    except PydanticValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ParseError(
            f"모델 응답의 필드 형식이 잘못되었습니다: {', '.join(fields)}", raw_text=response_text
        ) from e
