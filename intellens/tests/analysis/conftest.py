"""Shared test fixtures for analysis tests."""
import json
import base64
import pytest
from unittest.mock import Mock

from intellens.core.config import AnalysisConfig
from intellens.core.types import BackendReply, DocumentInput, TextInput


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of config-driven tests."""
    for key in (
        'INTELLENS_PROVIDER', 'INTELLENS_LANGUAGE', 'INTELLENS_TIMEOUT_SECONDS',
        'INTELLENS_MAX_UPLOAD_MB', 'INTELLENS_MAX_SEARCH_USES',
        'GEMINI_API_KEY', 'GOOGLE_API_KEY', 'API_KEY', 'GEMINI_MODEL', 'GEMINI_TEMPERATURE',
        'ANTHROPIC_API_KEY', 'CLAUDE_API_KEY', 'CLAUDE_MODEL', 'CLAUDE_MAX_TOKENS', 'CLAUDE_TEMPERATURE',
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def analysis_config():
    """English-locale config with a short timeout."""
    return AnalysisConfig(provider='gemini', language='en', timeout_seconds=5.0)


@pytest.fixture
def sample_payload():
    """A valid backend payload in the camelCase wire shape."""
    return {
        'executiveSummary': 'XYZ Corp grew revenue 40% on data-center demand.',
        'decision': 'Buy',
        'decisionRationale': 'Growth is accelerating while margins expand.',
        'financialData': [
            {'label': 'Revenue', 'value': '$500M', 'trend': 'up'},
            {'label': 'Gross Margin', 'value': '75%', 'trend': 'stable'},
        ],
        'marketInsights': ['AI infrastructure', 'Enterprise adoption'],
        'managementSentiment': 'Confident but cautious on supply.',
        'swot': {
            'strengths': [{'point': 'Scale', 'description': 'Largest installed base'}],
            'weaknesses': [{'point': 'Customer concentration', 'description': 'Top client is 40% of revenue', 'isHighRisk': True}],
            'opportunities': [{'point': 'New markets', 'description': 'Expansion into Asia'}],
            'threats': [{'point': 'Export controls', 'description': 'Restrictions on shipments', 'isHighRisk': False}],
        },
        'hiddenRisks': ['Inventory build-up at distributors'],
    }


@pytest.fixture
def sample_payload_json(sample_payload):
    return json.dumps(sample_payload)


@pytest.fixture
def sample_grounding_chunks():
    """Grounding chunks with a duplicate uri and one chunk without a web entry."""
    return [
        {'web': {'uri': 'https://a.example', 'title': 'A first'}},
        {'web': {'uri': 'https://b.example', 'title': 'B'}},
        {'web': {'uri': 'https://a.example', 'title': 'A second'}},
        {},
        {'web': {'uri': 'https://c.example', 'title': None}},
    ]


@pytest.fixture
def text_input():
    return TextInput('XYZ Corp')


@pytest.fixture
def pdf_input():
    return DocumentInput(
        data=base64.b64encode(b'%PDF-1.4 sample').decode('ascii'),
        mime_type='application/pdf',
        file_name='report.pdf',
    )


@pytest.fixture
def mock_backend(sample_payload_json):
    """Create mock backend returning the sample payload without grounding."""
    mock = Mock()
    mock.generate.return_value = BackendReply(text=sample_payload_json, grounding_chunks=None)
    return mock
