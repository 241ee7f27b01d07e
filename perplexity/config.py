"""Configuration for the Perplexity API."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class APIConfig:
    """API configuration constants."""
    BASE_URL: str = "https://api.perplexity.ai"
    COMPLETIONS_ENDPOINT: str = "/chat/completions"
    DEFAULT_TIMEOUT_SECONDS: float = 10.0
    API_KEY_ENV: str = "PERPLEXITY_API_KEY"

    @property
    def completions_url(self) -> str:
        return f"{self.BASE_URL}{self.COMPLETIONS_ENDPOINT}"


API_CONFIG = APIConfig()
