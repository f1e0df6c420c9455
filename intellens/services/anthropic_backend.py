import json
import base64
import logging
from typing import Any, Dict, List, Optional

import anthropic
from anthropic import Anthropic

from intellens.core.config import AnalysisConfig, ClaudeConfig
from intellens.core.errors import BackendError
from intellens.core.types import AnalysisRequest, BackendReply
from intellens.prompts.analysis_prompts import SCHEMA_INSTRUCTION_PROMPT

logger = logging.getLogger(__name__)


def strip_code_fence(text: str) -> str:
    """Remove one Markdown code fence wrapping the whole payload, if present."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()
    if len(lines) < 2 or not lines[-1].strip().startswith("```"):
        return stripped
    return "\n".join(lines[1:-1]).strip()


class AnthropicBackend:
    """Analysis backend backed by Anthropic Claude with the web_search server tool.

    Claude has no response-schema parameter here, so the schema travels in the
    system prompt and the final text blocks carry the JSON answer.
    """

    WEB_SEARCH_TOOL_TYPE: str = "web_search_20250305"
    WEB_SEARCH_TOOL_NAME: str = "web_search"

    def __init__(self,
                 config: Optional[ClaudeConfig] = None,
                 analysis_config: Optional[AnalysisConfig] = None,
                 client: Optional[Anthropic] = None):
        self.config = config or ClaudeConfig()
        self.analysis_config = analysis_config or AnalysisConfig()
        if client is None:
            self.config.validate(required=True)
        self._client = client

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def client(self) -> Anthropic:
        """Get or initialize the Anthropic client."""
        if self._client is None:
            self._client = Anthropic(api_key=self.config.api_key, timeout=self.analysis_config.timeout_seconds)
        return self._client

    def _system_prompt(self, request: AnalysisRequest) -> str:
        schema_json = json.dumps(request.response_schema, indent=2)
        return f"{request.system_instruction}\n\n{SCHEMA_INSTRUCTION_PROMPT.format(schema_json=schema_json)}"

    @staticmethod
    def _document_block(request: AnalysisRequest) -> Dict[str, Any]:
        document = request.document
        if document.mime_type == "text/plain":
            try:
                text = base64.b64decode(document.data).decode("utf-8")
            except (ValueError, UnicodeDecodeError) as e:
                raise ValueError(f"text/plain payload is not valid UTF-8: {e}") from e
            source = {"type": "text", "media_type": "text/plain", "data": text}
        else:
            source = {"type": "base64", "media_type": document.mime_type, "data": document.data}
        return {"type": "document", "source": source}

    def _build_messages(self, request: AnalysisRequest) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        if request.document is not None:
            content.append(self._document_block(request))
        content.append({"type": "text", "text": request.instruction})
        return [{"role": "user", "content": content}]

    def _tools(self, request: AnalysisRequest) -> Optional[List[Dict[str, Any]]]:
        if not request.use_web_search:
            return None
        return [{
            "type": self.WEB_SEARCH_TOOL_TYPE,
            "name": self.WEB_SEARCH_TOOL_NAME,
            "max_uses": self.analysis_config.max_search_uses,
        }]

    @staticmethod
    def _final_text(blocks: List[Any]) -> Optional[str]:
        """Join the text blocks after the last search result; earlier text is narration."""
        last_result = -1
        for i, block in enumerate(blocks):
            if getattr(block, "type", None) == "web_search_tool_result":
                last_result = i
        texts = [
            block.text for block in blocks[last_result + 1:]
            if getattr(block, "type", None) == "text" and getattr(block, "text", None)
        ]
        if not texts:
            return None
        return strip_code_fence("".join(texts))

    @staticmethod
    def _grounding_chunks(blocks: List[Any]) -> Optional[List[Dict[str, Any]]]:
        """Project web_search results into ``{"web": {"uri", "title"}}`` chunks."""
        chunks: Optional[List[Dict[str, Any]]] = None
        for block in blocks:
            if getattr(block, "type", None) != "web_search_tool_result":
                continue
            chunks = chunks if chunks is not None else []
            results = getattr(block, "content", None)
            if not isinstance(results, list):
                # WebSearchToolResultError carries an error_code instead of results.
                logger.debug("Web search returned no results: %s", getattr(results, "error_code", results))
                continue
            for result in results:
                if getattr(result, "type", None) != "web_search_result":
                    chunks.append({})
                    continue
                chunks.append({"web": {"uri": getattr(result, "url", None), "title": getattr(result, "title", None)}})
        return chunks

    def generate(self, request: AnalysisRequest) -> BackendReply:
        """Submit one non-streamed messages.create call.

        Raises:
            BackendError: On timeout, API or transport failure
        """
        kwargs: Dict[str, Any] = dict(
            model=self.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            system=self._system_prompt(request),
            messages=self._build_messages(request),
        )
        tools = self._tools(request)
        if tools:
            kwargs["tools"] = tools

        try:
            response = self.client.messages.create(**kwargs)
        except anthropic.APITimeoutError as e:
            logger.warning("Anthropic request timed out")
            raise BackendError.timeout(self.analysis_config.timeout_seconds) from e
        except anthropic.APIError as e:
            logger.warning("Anthropic API error: %s", e)
            raise BackendError.transport(str(e)) from e

        blocks = list(getattr(response, "content", None) or [])
        return BackendReply(text=self._final_text(blocks), grounding_chunks=self._grounding_chunks(blocks))
