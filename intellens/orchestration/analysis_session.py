import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from intellens.core.config import AnalysisConfig
from intellens.core.errors import BackendError
from intellens.core.types import AnalysisResponse, AnalysisStatus, DocumentInput, TextInput
from intellens.prompts.analysis_prompts import get_locale
from intellens.services.analysis_client import AnalysisClient
from intellens.services.file_loader import load_document

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    Session state machine driving one front-end through input collection and analysis.

    States: IDLE -> UPLOADING -> IDLE (file held), IDLE/ERROR -> ANALYZING ->
    COMPLETED | ERROR, and any state -> IDLE on reset(). Text and file payload
    are mutually exclusive; once a file is held the text is ignored.

    Every async operation captures a generation number when it starts. Its
    completion is applied only if no newer operation or reset() happened in
    the meantime, so a late answer can never overwrite the current session.
    """

    def __init__(self, client: Optional[AnalysisClient] = None, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.client = client or AnalysisClient(config=self.config)
        self.use_web_search: bool = True
        self._generation = 0
        self._clear()

    def _clear(self) -> None:
        self.status: AnalysisStatus = AnalysisStatus.IDLE
        self.text: str = ""
        self.file_payload: Optional[DocumentInput] = None
        self.result: Optional[AnalysisResponse] = None
        self.error: Optional[str] = None

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _error_message(self, exc: BaseException) -> str:
        return str(exc) or get_locale(self.config.language)["generic_error"]

    @property
    def accepts_input(self) -> bool:
        return self.status in (AnalysisStatus.IDLE, AnalysisStatus.ERROR)

    @property
    def can_run(self) -> bool:
        """True when run() would start an analysis."""
        if not self.accepts_input:
            return False
        return self.file_payload is not None or bool(self.text.strip())

    def set_text(self, text: str) -> bool:
        """Update the text input; ignored while a file payload is held."""
        if self.file_payload is not None:
            logger.debug("Ignoring text input while a file payload is held")
            return False
        if self.status in (AnalysisStatus.ANALYZING, AnalysisStatus.COMPLETED):
            return False
        self.text = text or ""
        return True

    def set_use_web_search(self, enabled: bool) -> None:
        self.use_web_search = bool(enabled)

    def clear_file(self) -> bool:
        """Drop the held file payload so text input becomes active again."""
        if self.file_payload is None or not self.accepts_input:
            return False
        self.file_payload = None
        return True

    async def select_file(self, path: Union[str, Path]) -> bool:
        """Read and encode a file: IDLE/ERROR -> UPLOADING -> IDLE, or ERROR on read failure.

        Returns:
            True if the payload is now held by the session
        """
        if not self.accepts_input:
            logger.debug("select_file ignored in state %s", self.status.value)
            return False

        generation = self._next_generation()
        self.status = AnalysisStatus.UPLOADING
        try:
            document = await asyncio.to_thread(load_document, path, self.config.max_upload_bytes)
        except Exception as e:
            if self._is_current(generation):
                logger.warning("File read failed: %s", e)
                self.error = self._error_message(e)
                self.status = AnalysisStatus.ERROR
            return False

        if not self._is_current(generation):
            logger.debug("Discarding stale file read", extra={"generation": generation})
            return False
        self.file_payload = document
        self.error = None
        self.status = AnalysisStatus.IDLE
        return True

    async def run(self) -> bool:
        """Run one analysis: IDLE/ERROR -> ANALYZING -> COMPLETED | ERROR.

        A no-op returning False when there is nothing to analyze or a run is
        already in flight.

        Returns:
            True if an analysis was started
        """
        if not self.can_run:
            logger.debug("run() ignored", extra={"status": self.status.value})
            return False

        analysis_input = self.file_payload if self.file_payload is not None else TextInput(self.text)
        use_web_search = self.use_web_search
        generation = self._next_generation()
        self.error = None
        self.status = AnalysisStatus.ANALYZING
        logger.info("Analysis started", extra={"generation": generation, "web_search": use_web_search})

        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(self.client.analyze, analysis_input, use_web_search),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._fail(generation, BackendError.timeout(self.config.timeout_seconds))
            return True
        except Exception as e:
            self._fail(generation, e)
            return True

        if not self._is_current(generation):
            logger.debug("Discarding stale analysis result", extra={"generation": generation})
            return True
        self.result = result
        self.status = AnalysisStatus.COMPLETED
        logger.info("Analysis completed", extra={"generation": generation})
        return True

    def _fail(self, generation: int, exc: BaseException) -> None:
        if not self._is_current(generation):
            logger.debug("Discarding stale analysis failure", extra={"generation": generation})
            return
        logger.warning("Analysis failed: %s", exc)
        self.result = None
        self.error = self._error_message(exc)
        self.status = AnalysisStatus.ERROR

    def reset(self) -> None:
        """Return to IDLE and clear text, file payload, result and error."""
        self._next_generation()
        self._clear()
