import json
import logging
from typing import Any, Dict, List, Optional, Protocol

from intellens.core.config import SUPPORTED_MIME_TYPES, AnalysisConfig
from intellens.core.errors import BackendError
from intellens.core.types import (
    AnalysisInput, AnalysisRequest, AnalysisResponse, AnalysisSource, BackendReply,
    DocumentInput, TextInput,
)
from intellens.prompts.analysis_prompts import (
    ANALYST_SYSTEM_PROMPT, DOCUMENT_ANALYSIS_PROMPT, TEXT_ANALYSIS_PROMPT, get_locale,
)
from intellens.prompts.analysis_schemas import ANALYSIS_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)


class AnalysisBackend(Protocol):
    def generate(self, request: AnalysisRequest) -> BackendReply:
        ...


def build_request(analysis_input: AnalysisInput, use_web_search: bool, language: str) -> AnalysisRequest:
    """Build the single backend request for ``analysis_input``.

    Raises:
        ValueError: If the input is blank, has an empty payload or an unsupported MIME type
    """
    language_name = get_locale(language)["language_name"]
    system_instruction = ANALYST_SYSTEM_PROMPT.format(language_name=language_name)

    if isinstance(analysis_input, TextInput):
        if not analysis_input.text or not analysis_input.text.strip():
            raise ValueError("text input must not be empty")
        instruction = TEXT_ANALYSIS_PROMPT.format(text=analysis_input.text, language_name=language_name)
        document = None
    elif isinstance(analysis_input, DocumentInput):
        if not analysis_input.data:
            raise ValueError("document payload must not be empty")
        if analysis_input.mime_type not in SUPPORTED_MIME_TYPES:
            raise ValueError(f"unsupported MIME type: {analysis_input.mime_type}")
        instruction = DOCUMENT_ANALYSIS_PROMPT.format(language_name=language_name)
        document = analysis_input
    else:
        raise ValueError(f"unsupported analysis input: {type(analysis_input).__name__}")

    return AnalysisRequest(
        instruction=instruction,
        system_instruction=system_instruction,
        response_schema=ANALYSIS_RESPONSE_SCHEMA,
        document=document,
        use_web_search=bool(use_web_search),
    )


def extract_sources(grounding_chunks: Optional[List[Dict[str, Any]]], fallback_title: str) -> Optional[List[AnalysisSource]]:
    """Project grounding chunks into sources, deduplicated by uri (first occurrence wins).

    Returns None when there is no grounding metadata at all.
    """
    if grounding_chunks is None:
        return None

    sources: Dict[str, AnalysisSource] = {}
    for chunk in grounding_chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not web:
            continue
        uri = web.get("uri")
        if not uri or uri in sources:
            continue
        sources[uri] = AnalysisSource(title=web.get("title") or fallback_title, uri=uri)
    return list(sources.values())


def parse_analysis_payload(text: Optional[str], sources: Optional[List[AnalysisSource]] = None) -> AnalysisResponse:
    """Parse the backend's textual payload, all or nothing.

    Raises:
        BackendError: EMPTY_RESPONSE for a blank payload, MALFORMED_RESPONSE otherwise
    """
    if text is None or not text.strip():
        raise BackendError.empty_response()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackendError.malformed_response(f"invalid JSON ({e.msg})") from e
    try:
        return AnalysisResponse.from_dict(payload, sources=sources)
    except ValueError as e:
        raise BackendError.malformed_response(str(e)) from e


class AnalysisClient:
    """Stateless client that turns one AnalysisInput into one AnalysisResponse.

    The backend is any object with ``generate(AnalysisRequest) -> BackendReply``;
    by default it is built from configuration (`INTELLENS_PROVIDER`).
    """

    def __init__(self, backend: Optional[AnalysisBackend] = None, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self._backend = backend

    @property
    def backend(self) -> AnalysisBackend:
        """Lazy-create the configured backend."""
        if self._backend is None:
            self._backend = create_backend(self.config)
        return self._backend

    @property
    def locale(self) -> dict:
        return get_locale(self.config.language)

    def analyze(self, analysis_input: AnalysisInput, use_web_search: bool = False) -> AnalysisResponse:
        """Run one analysis round trip.

        Args:
            analysis_input: TextInput or DocumentInput
            use_web_search: Attach the backend's web-search tool

        Returns:
            Fully populated AnalysisResponse

        Raises:
            ValueError: If the input is invalid (nothing is sent)
            BackendError: On empty, malformed, failed or timed-out backend calls
        """
        request = build_request(analysis_input, use_web_search, self.config.language)
        input_kind = "document" if request.document is not None else "text"
        logger.info("Requesting analysis", extra={"input_kind": input_kind, "web_search": request.use_web_search})

        try:
            reply: BackendReply = self.backend.generate(request)
        except BackendError:
            logger.exception("Analysis backend failed")
            raise
        except Exception as e:
            logger.exception("Analysis backend failed")
            raise BackendError.transport(str(e)) from e

        sources = extract_sources(reply.grounding_chunks, self.locale["fallback_source_title"])
        try:
            result = parse_analysis_payload(reply.text, sources=sources)
        except BackendError as e:
            logger.warning("Rejected backend payload: %s", e)
            raise
        logger.info(
            "Analysis complete",
            extra={"decision": result.decision.value, "sources": len(result.sources or [])},
        )
        return result


def create_backend(config: Optional[AnalysisConfig] = None) -> AnalysisBackend:
    """Instantiate the backend named by ``config.provider``.

    Raises:
        ValueError: If the provider is unknown or its API key is missing
    """
    config = config or AnalysisConfig()
    if config.provider == "gemini":
        from intellens.services.gemini_backend import GeminiBackend
        return GeminiBackend(analysis_config=config)
    if config.provider == "anthropic":
        from intellens.services.anthropic_backend import AnthropicBackend
        return AnthropicBackend(analysis_config=config)
    raise ValueError(f"Unknown provider: {config.provider}")
