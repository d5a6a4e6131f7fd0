from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Directory holding auth-profiles.json and usage-history.json.
    config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".llmfailover",
        alias="LLMFAILOVER_CONFIG_DIR",
        description="Directory for persisted auth profiles and usage history",
    )

    # Dynamic model discovery (Ollama / Venice).
    models_cache_ttl: int = Field(
        60,
        alias="MODELS_CACHE_TTL",
        description="Seconds a discovered model list is reused before refreshing",
    )
    discovery_timeout: float = Field(
        5.0,
        alias="DISCOVERY_TIMEOUT",
        description="Timeout in seconds for a single discovery HTTP call",
    )
    ollama_base_url: str = Field(
        "http://127.0.0.1:11434",
        alias="OLLAMA_BASE_URL",
        description="Root URL of the local Ollama server (without /v1)",
    )
    venice_base_url: str = Field(
        "https://api.venice.ai/api/v1",
        alias="VENICE_BASE_URL",
        description="Venice API base URL used for model listing",
    )

    # Usage reporting.
    usage_cost_mode: str = Field(
        "average",
        alias="USAGE_COST_MODE",
        description=(
            "How usage summaries price tokens: 'average' uses the provider-wide "
            "average rate, 'per_model' prices each tracked model at its own rate"
        ),
    )

    # Fallback chain overrides, e.g. "anthropic=openai,groq;openai=anthropic".
    fallback_overrides_raw: Optional[str] = Field(
        default=None,
        alias="LLM_FALLBACKS",
        description="Per-provider fallback chains overriding the built-in defaults",
    )

    # Application log level for our llmfailover logger.
    log_level: str = Field(
        "INFO",
        alias="LOG_LEVEL",
        description="Application log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_timezone: Optional[str] = Field(
        default=None,
        alias="LOG_TIMEZONE",
        description="Timezone name for log timestamps, e.g. 'Europe/Berlin'. Defaults to system local time.",
    )
    log_dir: Path = Field(
        Path("logs"),
        alias="LOG_DIR",
        description="Directory for the daily application log files",
    )

    def get_fallback_overrides(self) -> Dict[str, List[str]]:
        """
        Parse LLM_FALLBACKS into provider -> [fallback providers].
        Whitespace is stripped and malformed entries are ignored.
        """
        if not self.fallback_overrides_raw:
            return {}
        overrides: Dict[str, List[str]] = {}
        for entry in self.fallback_overrides_raw.split(";"):
            if "=" not in entry:
                continue
            provider, chain = entry.split("=", 1)
            provider = provider.strip()
            if not provider:
                continue
            overrides[provider] = [
                item.strip() for item in chain.split(",") if item.strip()
            ]
        return overrides


settings = Settings()  # Reads from environment if available
