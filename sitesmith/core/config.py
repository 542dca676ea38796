"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values. The same settings object serves
both sides of the system: the generation client (endpoint URLs and transport
timeouts) and the FastAPI server (LLM provider access and request limits).
"""

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "https://localhost:3000",
    "https://localhost:8000",
    "http://0.0.0.0:8000",
]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        generate_endpoint_url: URL of the generation endpoint consumed by the coordinator.
        upload_endpoint_url: URL of the upload endpoint consumed by the upload client.
        CLIENT_CONNECT_TIMEOUT: Connect timeout in seconds for client-side HTTP calls.
        CLIENT_READ_TIMEOUT: Read timeout in seconds for client-side HTTP calls.
        openrouter_api_key: API key for OpenRouter services.
        openrouter_base_url: Base URL of the OpenAI-compatible provider.
        model_id: Identifier for the language model to be used.
        llm_max_tokens: Maximum completion tokens requested from the model.
        llm_temperature: Sampling temperature for the model.
        max_prompt_chars: Maximum characters accepted for prompt plus previous document.
        cors_allowed_origins: List of allowed origins for CORS.
        LLM_CONNECT_TIMEOUT: LLM client connect timeout in seconds.
        LLM_READ_TIMEOUT: LLM client read timeout in seconds.
        log_level: Level for the ``sitesmith`` loggers.
    """

    generate_endpoint_url: str = Field(default="http://localhost:8000/api/generate")
    upload_endpoint_url: str = Field(default="http://localhost:8000/api/upload-to-irys")

    CLIENT_CONNECT_TIMEOUT: float = Field(default=10.0, description="Client connect timeout in seconds.")
    CLIENT_READ_TIMEOUT: float = Field(default=180.0, description="Client read timeout in seconds.")

    openrouter_api_key: str | None = Field(default=None)
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1")
    model_id: str = Field(default="google/gemini-2.5-flash")
    llm_max_tokens: int = Field(default=16_000)
    llm_temperature: float = Field(default=0.7)
    max_prompt_chars: int = Field(default=200_000)

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),  # Use a copy of the default list
    )

    LLM_CONNECT_TIMEOUT: float = Field(default=10.0, description="LLM client connect timeout in seconds.")
    LLM_READ_TIMEOUT: float = Field(default=180.0, description="LLM client read timeout in seconds.")

    log_level: str = Field(default="INFO", description="Level for the sitesmith loggers.")

    model_config = {
        "env_file": ".env",
        "protected_namespaces": ("settings_",),
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.

        Args:
            v: The value from the environment or direct assignment.

        Returns:
            A list of strings representing allowed CORS origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        # Return the default if env var is empty or not a string/list
        return list(DEFAULT_CORS_ORIGINS)


settings = Settings()
