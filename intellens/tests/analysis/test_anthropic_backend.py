"""Tests for AnthropicBackend."""
import json
import base64
import httpx
import pytest
import anthropic
from types import SimpleNamespace
from unittest.mock import MagicMock

from intellens.core.config import ClaudeConfig
from intellens.core.errors import BackendError, BackendErrorKind
from intellens.core.types import DocumentInput, TextInput
from intellens.services.analysis_client import build_request
from intellens.services.anthropic_backend import AnthropicBackend, strip_code_fence


def _text(text):
    return SimpleNamespace(type='text', text=text)


def _search_result(results):
    return SimpleNamespace(type='web_search_tool_result', content=results)


def _hit(url, title):
    return SimpleNamespace(type='web_search_result', url=url, title=title)


@pytest.fixture
def mock_anthropic_client(sample_payload_json):
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(content=[_text(sample_payload_json)])
    return client


@pytest.fixture
def backend(mock_anthropic_client, analysis_config):
    return AnthropicBackend(config=ClaudeConfig(api_key='test-key'), analysis_config=analysis_config, client=mock_anthropic_client)


class TestStripCodeFence:
    """Test suite for strip_code_fence."""

    def test_plain_json_unchanged(self):
        assert strip_code_fence(' {"a": 1} ') == '{"a": 1}'

    def test_fenced_json(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_unterminated_fence_left_alone(self):
        assert strip_code_fence('```json\n{"a": 1}') == '```json\n{"a": 1}'


class TestAnthropicBackend:
    """Test suite for AnthropicBackend."""

    def test_initialization_requires_key(self, analysis_config):
        with pytest.raises(ValueError, match='ANTHROPIC_API_KEY'):
            AnthropicBackend(config=ClaudeConfig(), analysis_config=analysis_config)

    def test_text_request_without_search(self, backend, mock_anthropic_client, sample_payload):
        """Test that the schema rides in the system prompt and no tools are attached."""
        request = build_request(TextInput('ACME Corp'), use_web_search=False, language='en')

        reply = backend.generate(request)

        kwargs = mock_anthropic_client.messages.create.call_args.kwargs
        assert 'tools' not in kwargs
        assert kwargs['model'] == backend.model
        assert request.system_instruction in kwargs['system']
        assert '"executiveSummary"' in kwargs['system']
        content = kwargs['messages'][0]['content']
        assert content == [{'type': 'text', 'text': request.instruction}]
        assert json.loads(reply.text) == sample_payload
        assert reply.grounding_chunks is None

    def test_pdf_document_block(self, backend, mock_anthropic_client, pdf_input):
        request = build_request(pdf_input, use_web_search=False, language='en')

        backend.generate(request)

        content = mock_anthropic_client.messages.create.call_args.kwargs['messages'][0]['content']
        assert content[0] == {
            'type': 'document',
            'source': {'type': 'base64', 'media_type': 'application/pdf', 'data': pdf_input.data},
        }
        assert content[1]['type'] == 'text'

    def test_plain_text_document_block(self, backend, mock_anthropic_client):
        """Test that text/plain uploads are decoded into a text document source."""
        document = DocumentInput(data=base64.b64encode('营收增长'.encode('utf-8')).decode('ascii'), mime_type='text/plain')
        request = build_request(document, use_web_search=False, language='zh-CN')

        backend.generate(request)

        content = mock_anthropic_client.messages.create.call_args.kwargs['messages'][0]['content']
        assert content[0]['source'] == {'type': 'text', 'media_type': 'text/plain', 'data': '营收增长'}

    def test_web_search_tool_and_grounding(self, backend, mock_anthropic_client, sample_payload_json, analysis_config):
        """Test web search tool wiring and projection of search results into chunks."""
        mock_anthropic_client.messages.create.return_value = SimpleNamespace(content=[
            _text('Let me look that up.'),
            SimpleNamespace(type='server_tool_use', name='web_search'),
            _search_result([_hit('https://a.example', 'A'), _hit('https://b.example', None)]),
            _text('```json\n' + sample_payload_json + '\n```'),
        ])
        request = build_request(TextInput('ACME'), use_web_search=True, language='en')

        reply = backend.generate(request)

        tools = mock_anthropic_client.messages.create.call_args.kwargs['tools']
        assert tools == [{
            'type': 'web_search_20250305',
            'name': 'web_search',
            'max_uses': analysis_config.max_search_uses,
        }]
        assert reply.text == sample_payload_json
        assert reply.grounding_chunks == [
            {'web': {'uri': 'https://a.example', 'title': 'A'}},
            {'web': {'uri': 'https://b.example', 'title': None}},
        ]

    def test_search_error_yields_empty_grounding(self, backend, mock_anthropic_client, sample_payload_json):
        mock_anthropic_client.messages.create.return_value = SimpleNamespace(content=[
            _search_result(SimpleNamespace(type='web_search_tool_result_error', error_code='unavailable')),
            _text(sample_payload_json),
        ])
        request = build_request(TextInput('ACME'), use_web_search=True, language='en')

        assert backend.generate(request).grounding_chunks == []

    def test_no_text_blocks(self, backend, mock_anthropic_client):
        mock_anthropic_client.messages.create.return_value = SimpleNamespace(content=[])
        request = build_request(TextInput('ACME'), use_web_search=False, language='en')

        assert backend.generate(request).text is None

    def test_timeout_becomes_timeout_error(self, backend, mock_anthropic_client):
        http_request = httpx.Request('POST', 'https://api.anthropic.com/v1/messages')
        mock_anthropic_client.messages.create.side_effect = anthropic.APITimeoutError(request=http_request)
        request = build_request(TextInput('ACME'), use_web_search=False, language='en')

        with pytest.raises(BackendError) as exc_info:
            backend.generate(request)

        assert exc_info.value.kind is BackendErrorKind.TIMEOUT

    def test_connection_error_becomes_transport_error(self, backend, mock_anthropic_client):
        http_request = httpx.Request('POST', 'https://api.anthropic.com/v1/messages')
        mock_anthropic_client.messages.create.side_effect = anthropic.APIConnectionError(request=http_request)
        request = build_request(TextInput('ACME'), use_web_search=False, language='en')

        with pytest.raises(BackendError) as exc_info:
            backend.generate(request)

        assert exc_info.value.kind is BackendErrorKind.TRANSPORT
