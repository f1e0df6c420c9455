import base64
import logging
from typing import Any, Dict, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from intellens.core.config import AnalysisConfig, GeminiConfig
from intellens.core.errors import BackendError
from intellens.core.types import AnalysisRequest, BackendReply

logger = logging.getLogger(__name__)


class GeminiBackend:
    """Analysis backend backed by Google Gemini with optional Google Search grounding."""

    def __init__(self,
                 config: Optional[GeminiConfig] = None,
                 analysis_config: Optional[AnalysisConfig] = None,
                 client: Optional[Any] = None):
        """Initialize the Gemini backend.

        Args:
            config: Optional GeminiConfig instance
            analysis_config: Optional AnalysisConfig (request timeout)
            client: Optional pre-initialized genai client for testing

        Raises:
            ValueError: If no API key is configured and no client is injected
        """
        self.config = config or GeminiConfig()
        self.analysis_config = analysis_config or AnalysisConfig()
        if client is None:
            self.config.validate(required=True)
        self._client: Any = client

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def client(self) -> Any:
        """Lazy-load the genai client."""
        if self._client is None:
            timeout_ms = int(self.analysis_config.timeout_seconds * 1000)
            self._client = genai.Client(
                api_key=self.config.api_key,
                http_options=types.HttpOptions(timeout=timeout_ms),
            )
            logger.debug("Initialized Gemini client", extra={"model": self.model})
        return self._client

    def _build_contents(self, request: AnalysisRequest) -> types.Content:
        parts = [types.Part.from_text(text=request.instruction)]
        if request.document is not None:
            parts.append(types.Part.from_bytes(
                data=base64.b64decode(request.document.data),
                mime_type=request.document.mime_type,
            ))
        return types.Content(role="user", parts=parts)

    def _build_config(self, request: AnalysisRequest) -> types.GenerateContentConfig:
        tools = [types.Tool(google_search=types.GoogleSearch())] if request.use_web_search else None
        return types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            response_mime_type="application/json",
            response_schema=request.response_schema,
            temperature=self.config.temperature,
            tools=tools,
        )

    @staticmethod
    def _grounding_chunks(response: Any) -> Optional[List[Dict[str, Any]]]:
        """Project grounding chunks of the first candidate into plain dicts."""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return None
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) if metadata is not None else None
        if chunks is None:
            return None

        projected: List[Dict[str, Any]] = []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            if web is None:
                projected.append({})
                continue
            projected.append({"web": {"uri": getattr(web, "uri", None), "title": getattr(web, "title", None)}})
        return projected

    def generate(self, request: AnalysisRequest) -> BackendReply:
        """Submit one non-streamed generate_content call.

        Raises:
            BackendError: On API or transport failure
        """
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=self._build_contents(request),
                config=self._build_config(request),
            )
        except httpx.TimeoutException as e:
            logger.warning("Gemini request timed out: %s", e)
            raise BackendError.timeout(self.analysis_config.timeout_seconds) from e
        except genai_errors.APIError as e:
            logger.warning("Gemini API error: %s", e)
            raise BackendError.transport(str(e)) from e

        return BackendReply(text=response.text, grounding_chunks=self._grounding_chunks(response))
