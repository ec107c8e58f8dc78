"""
Article generator configuration.

Recognized options only; anything else is rejected so a typo in an
operator override fails loudly instead of being ignored.

Environment (loaded from .env when present):
    DEEPSEEK_API_KEY          - completion service key
    DEEPSEEK_BASE_URL         - OpenAI-compatible endpoint
    DEEPSEEK_MODEL            - chat model name
    DEEPSEEK_TEMPERATURE      - article generation temperature
    ANALYSIS_PERCENTAGE       - share of each thread's posts to sample
    THREAD_ARTICLES_DATA_DIR  - root of the analysis data directory
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Relative to the working directory the job is started from
DEFAULT_DATA_DIR = Path("data")
DEFAULT_ENV_FILE = Path(".env")

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_ANALYSIS_PERCENTAGE = 30.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_CLASSIFICATION_BATCH_SIZE = 20
DEFAULT_REQUEST_TIMEOUT = 60.0

PROGRESS_FILENAME = "progress.json"
OUTPUT_FILENAME = "articles.json"

# Env var -> config field
_ENV_OVERRIDES = {
    "DEEPSEEK_TEMPERATURE": "temperature",
    "ANALYSIS_PERCENTAGE": "analysis_percentage",
    "DEEPSEEK_MODEL": "model",
    "THREAD_ARTICLES_DATA_DIR": "data_dir",
}


class ArticleGeneratorConfig(BaseModel):
    """Settings for one article generation job."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    analysis_percentage: float = Field(
        default=DEFAULT_ANALYSIS_PERCENTAGE,
        gt=0,
        le=100,
        description="Percentage of each thread's posts sampled for analysis",
    )
    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        ge=0,
        le=2,
        description="Sampling temperature for headline/article generation",
    )
    classification_batch_size: int = Field(
        default=DEFAULT_CLASSIFICATION_BATCH_SIZE,
        ge=1,
        description="Max comments per classification request",
    )
    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="Per-request timeout in seconds",
    )
    data_dir: Path = Field(default=DEFAULT_DATA_DIR)

    @property
    def analysis_dir(self) -> Path:
        return self.data_dir / "analysis"

    @property
    def progress_file(self) -> Path:
        return self.analysis_dir / PROGRESS_FILENAME

    @property
    def output_file(self) -> Path:
        return self.analysis_dir / OUTPUT_FILENAME

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, **overrides: Any) -> "ArticleGeneratorConfig":
        """
        Build config from environment variables, then apply explicit overrides.

        Args:
            env_file: Optional .env path (defaults to .env in the working directory)
            **overrides: Field values that take precedence over the environment

        Raises:
            pydantic.ValidationError: if an env value or override is invalid
        """
        env_path = Path(env_file) if env_file else DEFAULT_ENV_FILE
        if env_path.exists():
            load_dotenv(env_path)

        values: dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def get_api_key() -> Optional[str]:
    """Return the completion service key from the environment, if set."""
    return os.getenv("DEEPSEEK_API_KEY")


def get_base_url() -> str:
    return os.getenv("DEEPSEEK_BASE_URL", DEFAULT_BASE_URL)
