"""Configuration loaded from environment variables (and an optional .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GITHUB_API_URL = "https://api.github.com"
MERMAID_JS_URL = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"


@dataclass(frozen=True)
class ModelProfile:
    model_name: str
    temperature: float
    max_tokens: int


@dataclass(frozen=True)
class Settings:
    github_token: Optional[str] = None
    github_api_url: str = GITHUB_API_URL
    openrouter_api_key: str = ""
    openrouter_base_url: str = OPENROUTER_BASE_URL
    default_model: ModelProfile = ModelProfile("openai/gpt-3.5-turbo", 0.2, 1500)
    advanced_model: ModelProfile = ModelProfile("anthropic/claude-3-sonnet", 0.1, 2500)
    code_model: ModelProfile = ModelProfile("openai/gpt-4", 0.1, 3000)
    mermaid_js_url: str = MERMAID_JS_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, reading .env first."""
        load_dotenv()
        defaults = cls()
        return cls(
            github_token=os.getenv("GITHUB_TOKEN") or None,
            github_api_url=os.getenv("GITHUB_API_URL", GITHUB_API_URL).rstrip("/"),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", OPENROUTER_BASE_URL),
            default_model=_profile("ARCHY_DEFAULT_MODEL", defaults.default_model),
            advanced_model=_profile("ARCHY_ADVANCED_MODEL", defaults.advanced_model),
            code_model=_profile("ARCHY_CODE_MODEL", defaults.code_model),
            mermaid_js_url=os.getenv("ARCHY_MERMAID_JS_URL", MERMAID_JS_URL),
            log_level=os.getenv("ARCHY_LOG_LEVEL", "INFO").upper(),
        )

    def is_ai_configured(self) -> bool:
        return bool(self.openrouter_api_key)


def _profile(env_name: str, default: ModelProfile) -> ModelProfile:
    model_name = os.getenv(env_name)
    if not model_name:
        return default
    return ModelProfile(model_name, default.temperature, default.max_tokens)
