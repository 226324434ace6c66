"""
Query board: the session state behind the five question panels.

The board owns the credential list, the active credential and five fixed
query slots. Runs are asyncio coroutines; "run all" fans out with
asyncio.gather and joins on every started run. Each slot is only ever
mutated by its own runs, and a run only writes back if no newer run of the
same slot was dispatched in the meantime.
"""

import asyncio
from typing import Optional, Protocol

from bookfacts.config import get_settings
from bookfacts.models import BookInfo, QuerySlot
from bookfacts.utils.errors import BoardBusyError, ValidationError
from bookfacts.utils.logging import LogContext, get_logger, mask_credential

logger = get_logger(__name__)

MISSING_INPUT_MESSAGE = "API 키와 질문을 모두 입력해주세요."
NO_CREDENTIAL_MESSAGE = "API 키를 선택해주세요."
NO_QUESTION_MESSAGE = "최소 하나의 질문을 입력해주세요."
UNKNOWN_ERROR_MESSAGE = "알 수 없는 오류가 발생했습니다."
UNKNOWN_CREDENTIAL_MESSAGE = "등록되지 않은 API 키입니다."


class Extractor(Protocol):
    """Anything that turns (credential, question) into a BookInfo."""

    async def invoke(self, credential: str, question: str) -> BookInfo: ...


class QueryBoard:
    """
    Credentials plus five independently runnable query slots.

    Args:
        extractor: Collaborator performing the actual extraction
        questions: Optional initial questions, one per slot
    """

    def __init__(self, extractor: Extractor, questions: Optional[list[str]] = None) -> None:
        self.extractor = extractor
        self.slot_count = get_settings().slot_count

        self.credentials: list[str] = []
        self.active_credential: str = ""
        self.pending_credential: str = ""
        self.adding_credential: bool = False

        self.slots: list[QuerySlot] = [QuerySlot(index=i) for i in range(self.slot_count)]
        for index, text in enumerate(questions or []):
            self.set_question(index, text)

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def begin_add_credential(self) -> None:
        self.adding_credential = True

    def cancel_add_credential(self) -> None:
        self.adding_credential = False
        self.pending_credential = ""

    def add_credential(self, raw: Optional[str] = None) -> bool:
        """
        Register a credential and make it active.

        Args:
            raw: Credential text; defaults to the pending input buffer

        Returns:
            True if the credential was added, False for blank or duplicate input
        """
        key = (self.pending_credential if raw is None else raw).strip()
        if not key or key in self.credentials:
            return False

        self.credentials.append(key)
        self.active_credential = key
        self.pending_credential = ""
        self.adding_credential = False
        logger.info(f"Added API key #{len(self.credentials)} ({mask_credential(key)})")
        return True

    def delete_credential(self, target: str) -> None:
        """Remove a credential; deleting the active one falls back to the first left."""
        self.credentials = [key for key in self.credentials if key != target]
        if self.active_credential == target:
            self.active_credential = self.credentials[0] if self.credentials else ""
        logger.info(f"Deleted API key {mask_credential(target)}")

    def select_credential(self, key: str) -> None:
        """Make `key` active; "" clears the selection."""
        if key and key not in self.credentials:
            raise ValidationError(UNKNOWN_CREDENTIAL_MESSAGE, {"credential": mask_credential(key)})
        self.active_credential = key

    def masked_credentials(self) -> list[str]:
        return [mask_credential(key) for key in self.credentials]

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    def slot(self, index: int) -> QuerySlot:
        if not 0 <= index < self.slot_count:
            raise IndexError(f"slot index {index} out of range [0, {self.slot_count})")
        return self.slots[index]

    def set_question(self, index: int, text: str) -> None:
        self.slot(index).question = text

    def runnable_indices(self) -> list[int]:
        return [slot.index for slot in self.slots if slot.has_question]

    @property
    def is_busy(self) -> bool:
        return any(slot.is_loading for slot in self.slots)

    @property
    def can_run_all(self) -> bool:
        """Whether the run-all trigger is enabled."""
        return not self.is_busy

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def run_one(self, index: int) -> None:
        """
        Run the extraction for one slot.

        Never raises for extraction problems: every failure ends up in the
        slot's `error`.
        """
        slot = self.slot(index)
        credential = self.active_credential
        question = slot.question

        if not credential.strip() or not question.strip():
            slot.reject(MISSING_INPUT_MESSAGE)
            return

        generation = slot.start()
        with LogContext(slot=index, generation=generation):
            logger.info(f"Slot #{index + 1}: extracting")
            try:
                result = await self.extractor.invoke(credential, question)
            except Exception as e:
                if self._is_current(slot, generation):
                    slot.fail(str(e) or UNKNOWN_ERROR_MESSAGE)
                logger.warning(f"Slot #{index + 1} failed: {e!r}")
            else:
                if self._is_current(slot, generation):
                    slot.succeed(result)
                logger.info(f"Slot #{index + 1}: done")
            finally:
                if self._is_current(slot, generation):
                    slot.finish()
                else:
                    logger.info(f"Slot #{index + 1}: discarded stale run {generation}")

    async def run_all(self) -> list[int]:
        """
        Run every slot that has a question, concurrently.

        Returns:
            Indices of the slots that were run

        Raises:
            ValidationError: No active credential, or no question at all
            BoardBusyError: A slot is still loading
        """
        if not self.active_credential.strip():
            raise ValidationError(NO_CREDENTIAL_MESSAGE)

        indices = self.runnable_indices()
        if not indices:
            raise ValidationError(NO_QUESTION_MESSAGE)

        if self.is_busy:
            raise BoardBusyError([slot.index for slot in self.slots if slot.is_loading])

        logger.info(f"Running {len(indices)} question(s) concurrently")
        await asyncio.gather(*(self.run_one(index) for index in indices))
        return indices

    @staticmethod
    def _is_current(slot: QuerySlot, generation: int) -> bool:
        return slot.generation == generation
