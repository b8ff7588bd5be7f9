"""Configuration for chatbridge."""

import os
from functools import lru_cache
from dotenv import load_dotenv

load_dotenv()


@lru_cache
def get_settings() -> "Settings":
    """Get cached settings instance."""
    return Settings()


class Settings:
    """Runtime settings shared by every provider service."""

    def __init__(self):
        # Parameters used by send_message when the caller gives none
        self.default_temperature: float = float(
            os.getenv("CHATBRIDGE_DEFAULT_TEMPERATURE", "0.7")
        )
        self.default_max_tokens: int = int(
            os.getenv("CHATBRIDGE_DEFAULT_MAX_TOKENS", "4000")
        )

        # Anthropic rejects requests without max_tokens
        self.anthropic_default_max_tokens: int = int(
            os.getenv("ANTHROPIC_DEFAULT_MAX_TOKENS", "4096")
        )

        # HTTP
        self.request_timeout: float = float(os.getenv("CHATBRIDGE_REQUEST_TIMEOUT", "60"))

        # Backoff bounds for opt-in retry policies (seconds)
        self.retry_min_wait: float = float(os.getenv("CHATBRIDGE_RETRY_MIN_WAIT", "1"))
        self.retry_max_wait: float = float(os.getenv("CHATBRIDGE_RETRY_MAX_WAIT", "10"))

        # Webhook endpoint of the workflow automation provider
        self.n8n_webhook_url: str = os.getenv(
            "N8N_WEBHOOK_URL",
            "https://your-n8n-instance.com/webhook/blog-creation",
        )

    def default_parameters(self) -> "RequestParameters":
        """Build the parameters used for a plain single-turn message."""
        from .providers.base import RequestParameters

        return RequestParameters(
            temperature=self.default_temperature,
            max_tokens=self.default_max_tokens,
            stream=False,
        )


settings = get_settings()
