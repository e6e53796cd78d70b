"""Configuration management for BookingLens."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """Application configuration loaded from environment variables."""

    # OpenAI Configuration
    @classmethod
    def get_openai_api_key(cls) -> str:
        """Get OpenAI API key from environment variables.

        Returns:
            OpenAI API key from environment or empty string if not set.
        """
        return os.getenv("OPENAI_API_KEY", "")

    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL")

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Embedding Configuration
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    EMBEDDING_DIMENSIONS: int = int(os.getenv("EMBEDDING_DIMENSIONS", "512"))
    EMBEDDING_BATCH_SIZE: int = int(os.getenv("EMBEDDING_BATCH_SIZE", "50"))
    BUFFER_CLEANUP_THRESHOLD: int = int(os.getenv("BUFFER_CLEANUP_THRESHOLD", "100"))

    # Retrieval Configuration
    RETRIEVAL_TOP_K: int = int(os.getenv("RETRIEVAL_TOP_K", "5"))

    # Simulated API latency for analytics reports
    SIMULATE_LATENCY: bool = os.getenv("SIMULATE_LATENCY", "false").lower() in _TRUE_VALUES
    SIMULATED_LATENCY_MIN_MS: int = int(os.getenv("SIMULATED_LATENCY_MIN_MS", "50"))
    SIMULATED_LATENCY_MAX_MS: int = int(os.getenv("SIMULATED_LATENCY_MAX_MS", "150"))

    # Export Configuration
    EXPORT_PATH: Path = Path(os.getenv("EXPORT_PATH", "processed_hotel_data.json"))

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "BookingLens/1.0")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration values.

        Raises:
            ValueError: If OPENAI_API_KEY is not set or latency bounds are inverted.
        """
        if not cls.get_openai_api_key():
            msg = (
                "OPENAI_API_KEY is required. Please set it in .env file or environment."
            )
            raise ValueError(msg)
        if cls.SIMULATED_LATENCY_MIN_MS > cls.SIMULATED_LATENCY_MAX_MS:
            msg = (
                "SIMULATED_LATENCY_MIN_MS must not exceed SIMULATED_LATENCY_MAX_MS "
                f"({cls.SIMULATED_LATENCY_MIN_MS} > {cls.SIMULATED_LATENCY_MAX_MS})"
            )
            raise ValueError(msg)

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment.

        Returns:
            True if environment is development.
        """
        return cls.ENVIRONMENT.lower() == "development"

    @classmethod
    def simulated_latency_range(cls) -> tuple[int, int] | None:
        """Latency bounds in milliseconds, or None when simulation is off."""  # noqa: DOC201
        if not cls.SIMULATE_LATENCY:
            return None
        return cls.SIMULATED_LATENCY_MIN_MS, cls.SIMULATED_LATENCY_MAX_MS

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Configure logging once at application startup with:
        - Console output for all levels
        - Simple, readable format
        - Configurable level via environment variable
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        # The OpenAI client logs each request through httpx
        openai_level = getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        for name in ("openai", "httpx"):
            logging.getLogger(name).setLevel(openai_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound embedding requests.

        Returns:
            Mapping of header names to values.
        """
        headers: dict[str, str] = {}
        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT
        return headers


config = Config()
