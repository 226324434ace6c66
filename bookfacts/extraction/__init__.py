"""
Book fact extraction: prompt building, the Gemini call and response parsing.
"""

from bookfacts.extraction.extractor import BookInfoExtractor
from bookfacts.extraction.parser import parse_book_info, strip_code_fences
from bookfacts.extraction.prompts import PROMPT_TEMPLATE, build_prompt

__all__ = [
    "BookInfoExtractor",
    "PROMPT_TEMPLATE",
    "build_prompt",
    "parse_book_info",
    "strip_code_fences",
]
