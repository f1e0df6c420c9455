import os
from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable

from intellens.prompts.analysis_prompts import LOCALE_REGISTRY

load_dotenv()


class EnvConfig:
    """Small helper for reading and casting environment variables.

    Usage: EnvConfig.get('GEMINI_API_KEY', cast=str, aliases=['API_KEY'])
    """

    @staticmethod
    def get(name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        aliases = aliases or []
        for key in (name, *aliases):
            val = os.getenv(key)
            if val is not None:
                if cast is not None:
                    try:
                        return cast(val)
                    except Exception as exc:
                        raise ValueError(f"Invalid value for {key}: {exc}")
                return val
        return default


SUPPORTED_PROVIDERS = ('gemini', 'anthropic')

# Accepted upload types; the browser front-end offers only these two.
SUPPORTED_MIME_TYPES = ('application/pdf', 'text/plain')


@dataclass
class BaseConfig:
    """Mixin-like helper for dataclasses that load from envs and validate."""

    @classmethod
    def _env(cls, name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        return EnvConfig.get(name, default=default, cast=cast, aliases=aliases)

    def validate(self, required: bool = True):
        """Default no-op; override in subclasses with required flag."""
        return None


@dataclass
class GeminiConfig(BaseConfig):
    api_key: Optional[str] = None
    model: str = "gemini-3-flash-preview"
    temperature: Optional[float] = None

    def __post_init__(self):
        self.api_key = self.api_key or self._env('GEMINI_API_KEY', aliases=['GOOGLE_API_KEY', 'API_KEY'])
        if self.model == GeminiConfig.model:
            self.model = self._env('GEMINI_MODEL', default=self.model)
        if self.temperature is None:
            self.temperature = self._env('GEMINI_TEMPERATURE', default=None, cast=float)

    def validate(self, required: bool = True) -> None:
        if required and not self.api_key:
            raise ValueError('GEMINI_API_KEY not set. Set via environment or GeminiConfig.api_key')
        if self.temperature is not None and not 0 <= self.temperature <= 2:
            raise ValueError('temperature must be between 0 and 2')


@dataclass
class ClaudeConfig(BaseConfig):
    api_key: Optional[str] = None
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 8000
    temperature: float = 0.0

    def __post_init__(self):
        self.api_key = self.api_key or self._env('ANTHROPIC_API_KEY', aliases=['CLAUDE_API_KEY'])
        if self.model == ClaudeConfig.model:
            self.model = self._env('CLAUDE_MODEL', default=self.model)
        tokens = self._env('CLAUDE_MAX_TOKENS', default=None, cast=int)
        if tokens is not None:
            self.max_tokens = tokens
        temp = self._env('CLAUDE_TEMPERATURE', default=None, cast=float)
        if temp is not None:
            self.temperature = temp

    def validate(self, required: bool = True) -> None:
        if required and not self.api_key:
            raise ValueError('ANTHROPIC_API_KEY not set. Set via environment or ClaudeConfig.api_key')
        if self.max_tokens < 100:
            raise ValueError('max_tokens must be >= 100')
        if not 0 <= self.temperature <= 1:
            raise ValueError('temperature must be between 0 and 1')


@dataclass
class AnalysisConfig(BaseConfig):
    provider: str = 'gemini'
    language: str = 'zh-CN'
    timeout_seconds: float = 120.0
    max_upload_mb: int = 20
    max_search_uses: int = 5

    def __post_init__(self):
        if self.provider == AnalysisConfig.provider:
            self.provider = self._env('INTELLENS_PROVIDER', default=self.provider).lower()
        if self.language == AnalysisConfig.language:
            self.language = self._env('INTELLENS_LANGUAGE', default=self.language)
        timeout = self._env('INTELLENS_TIMEOUT_SECONDS', default=None, cast=float)
        if timeout is not None:
            self.timeout_seconds = timeout
        upload = self._env('INTELLENS_MAX_UPLOAD_MB', default=None, cast=int)
        if upload is not None:
            self.max_upload_mb = upload
        uses = self._env('INTELLENS_MAX_SEARCH_USES', default=None, cast=int)
        if uses is not None:
            self.max_search_uses = uses

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def validate(self, required: bool = True) -> None:
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f'provider must be one of {list(SUPPORTED_PROVIDERS)}')
        if self.language not in LOCALE_REGISTRY:
            raise ValueError(f'language must be one of {list(LOCALE_REGISTRY)}')
        if self.timeout_seconds <= 0:
            raise ValueError('timeout_seconds must be > 0')
        if self.max_upload_mb < 1:
            raise ValueError('max_upload_mb must be >= 1')
        if self.max_search_uses < 1:
            raise ValueError('max_search_uses must be >= 1')


class AppConfig:
    """Central application configuration container.

    Access sub-configs as attributes (e.g., `AppConfig.gemini`).
    Use `AppConfig.from_env()` for a validated instance reflecting the
    current environment.
    """

    gemini: GeminiConfig = GeminiConfig()
    claude: ClaudeConfig = ClaudeConfig()
    analysis: AnalysisConfig = AnalysisConfig()

    @staticmethod
    def validate_all(strict: bool = False) -> None:
        AppConfig.analysis.validate()
        AppConfig.gemini.validate(required=strict and AppConfig.analysis.provider == 'gemini')
        AppConfig.claude.validate(required=strict and AppConfig.analysis.provider == 'anthropic')

    @staticmethod
    def check_availability() -> Dict[str, Dict[str, Any]]:
        """Return availability map for each config.

        For each named sub-config return a dict with keys:
        - available: bool
        - reason: Optional[str] explaining failure when available is False
        """
        results: Dict[str, Dict[str, Any]] = {}
        configs = {
            'gemini': GeminiConfig(),
            'claude': ClaudeConfig(),
            'analysis': AnalysisConfig(),
        }
        for name, cfg in configs.items():
            try:
                cfg.validate(required=True)
                results[name] = {'available': True, 'reason': None}
            except ValueError as e:
                results[name] = {'available': False, 'reason': str(e)}
        return results

    @staticmethod
    def from_env(strict: bool = False) -> 'AppConfig':
        config = AppConfig()
        config.validate_all(strict=strict)
        return config
