"""
Gemini-backed book fact extractor.

One call per question: build the prompt, send it to the configured Gemini
model with the caller's credential, decode the JSON answer. There is no retry;
failures are raised as ExtractionError subclasses for the caller to show.
"""

import asyncio
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import generation_types
from google.rpc import error_details_pb2

from bookfacts.config import get_settings
from bookfacts.extraction.parser import parse_book_info
from bookfacts.extraction.prompts import build_prompt
from bookfacts.models import BookInfo
from bookfacts.utils.errors import (
    AuthError,
    NetworkError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from bookfacts.utils.logging import get_logger, log_performance, mask_credential

logger = get_logger(__name__)

_AUTH_ERRORS = (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)
_NETWORK_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.RetryError,
    ConnectionError,
    asyncio.TimeoutError,
)
_RATE_LIMIT_ERRORS = (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)


class BookInfoExtractor:
    """
    Extract the six book fields from a free-text question.

    The credential is supplied per call, not stored, so one extractor can
    serve every credential on the board.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> None:
        """
        Initialize the extractor.

        Args:
            model_name: Gemini model id (defaults to settings)
            temperature: Sampling temperature (defaults to settings)
            max_output_tokens: Output token cap (defaults to settings)
        """
        self.settings = get_settings()
        self.model_name = model_name or self.settings.gemini_model
        self.temperature = self.settings.temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or self.settings.max_output_tokens

        logger.debug(f"Initialized book info extractor with model: {self.model_name}")

    @log_performance
    async def invoke(self, credential: str, question: str) -> BookInfo:
        """
        Extract book facts from one question.

        Args:
            credential: Gemini API key
            question: Free-text query describing a book

        Returns:
            Parsed BookInfo

        Raises:
            ValidationError: Credential or question is empty
            AuthError: The credential was rejected
            NetworkError: The call could not complete
            RateLimitError: Quota or rate limit hit
            UpstreamError: Any other failure of the model call
            ParseError: The answer was not the expected JSON object
        """
        if not credential.strip() or not question.strip():
            raise ValidationError("API 키와 질문을 모두 입력해주세요.")

        prompt = build_prompt(question)
        response_text = await self._generate(credential, prompt)
        return parse_book_info(response_text)

    async def _generate(self, credential: str, prompt: str) -> str:
        """Send the prompt to Gemini and return the response text."""
        logger.debug(f"Calling {self.model_name} with key {mask_credential(credential)}")

        try:
            # configure() swaps the module-level client; the async call binds
            # it before its first await, so nothing can interleave here
            genai.configure(api_key=credential)
            model = genai.GenerativeModel(self.model_name)
            response = await model.generate_content_async(
                prompt,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_output_tokens,
                },
            )
        except Exception as e:
            raise self._translate_error(e) from e

        try:
            return response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty
            raise UpstreamError(f"모델이 응답을 생성하지 못했습니다: {e}") from e

    @staticmethod
    def _translate_error(error: Exception) -> Exception:
        """Map SDK and transport errors onto the bookfacts taxonomy."""
        message = str(error) or error.__class__.__name__

        if isinstance(error, _AUTH_ERRORS):
            return AuthError(f"API 키가 거부되었습니다: {message}")
        if isinstance(error, google_exceptions.InvalidArgument) and "api key" in message.lower():
            return AuthError(f"API 키가 유효하지 않습니다: {message}")
        if isinstance(error, _RATE_LIMIT_ERRORS):
            return RateLimitError(f"요청 한도를 초과했습니다: {message}", retry_after=_retry_after(error))
        if isinstance(error, _NETWORK_ERRORS):
            return NetworkError(f"서비스에 연결할 수 없습니다: {message}")
        if isinstance(error, generation_types.BlockedPromptException):
            return UpstreamError(f"프롬프트가 차단되었습니다: {message}")
        return UpstreamError(message)


def _retry_after(error: Exception) -> Optional[int]:
    """Seconds to wait, from the RetryInfo detail Gemini attaches to quota errors."""
    for detail in getattr(error, "details", None) or ():
        if isinstance(detail, error_details_pb2.RetryInfo):
            delay = detail.retry_delay
            return delay.seconds + (1 if delay.nanos else 0) or None
    return None
