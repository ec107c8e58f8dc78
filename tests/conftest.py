"""
Pytest configuration for thread-articles tests.

Test Tier System:
- fast (default): Pure unit tests, completion service stubbed
- medium: Filesystem-backed tests (tmp_path checkpoints / output files)
- slow: Live completion service calls

Run tiers:
- pytest                          # Fast + medium (default addopts)
- pytest -m fast                  # Unit tests only
- pytest -m slow                  # Live API only (needs a real DEEPSEEK_API_KEY)

Note: Unmarked tests are auto-assigned to 'fast' tier. Tests marked
@pytest.mark.integration without a tier default to 'medium'.

API Key Safety:
- Unless slow tests are selected, a fake DEEPSEEK_API_KEY is forced so a
  missing stub can never reach the real API.
"""

import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from thread_articles.config import ArticleGeneratorConfig
from thread_articles.models import Post, Thread
from tests.stubs import StubCompletionService

FAKE_API_KEY = "sk-test-fake-key-for-testing"

# Env vars that ArticleGeneratorConfig.from_env reads
CONFIG_ENV_VARS = (
    "DEEPSEEK_TEMPERATURE",
    "ANALYSIS_PERCENTAGE",
    "DEEPSEEK_MODEL",
    "THREAD_ARTICLES_DATA_DIR",
)


# =============================================================================
# Tier Auto-Assignment
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """Assign 'fast' to unmarked tests, 'medium' to untiered integration tests."""
    for item in items:
        has_tier = (
            list(item.iter_markers(name="fast")) or
            list(item.iter_markers(name="medium")) or
            list(item.iter_markers(name="slow"))
        )
        if has_tier:
            continue

        if list(item.iter_markers(name="skip")):
            continue

        if list(item.iter_markers(name="integration")):
            item.add_marker(pytest.mark.medium)
            continue

        item.add_marker(pytest.mark.fast)


def pytest_configure(config):
    """Force a fake API key unless slow tests are explicitly selected."""
    markexpr = getattr(config.option, "markexpr", "") or ""
    includes_slow_tests = "slow" in markexpr and "not slow" not in markexpr

    if includes_slow_tests:
        os.environ.setdefault("DEEPSEEK_API_KEY", FAKE_API_KEY)
    else:
        os.environ["DEEPSEEK_API_KEY"] = FAKE_API_KEY


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Keep operator env overrides out of tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_thread() -> Callable[..., Thread]:
    """Factory: make_thread(no, texts) -> Thread with one post per text."""

    def _make(no: int, texts: List[Optional[str]], **kwargs) -> Thread:
        posts = [Post(no=no * 1000 + i, com=text) for i, text in enumerate(texts)]
        return Thread(no=no, posts=posts, **kwargs)

    return _make


@pytest.fixture
def stub_client() -> StubCompletionService:
    return StubCompletionService()


@pytest.fixture
def config(tmp_path) -> ArticleGeneratorConfig:
    """Config writing under tmp_path, sampling every post."""
    return ArticleGeneratorConfig(analysis_percentage=100, data_dir=tmp_path)


@pytest.fixture
def sample_thread_payload() -> Dict:
    """Raw JSON for two threads as the data source delivers them."""
    return {
        "threads": [
            {
                "no": 100,
                "com": "OP text",
                "time": 1700000000,
                "posts": [
                    {"no": 100, "com": "OP text", "id": "a1", "country": "US", "country_name": "United States"},
                    {"no": 101, "com": "reply one", "id": "b2", "country": "DE", "country_name": "Germany"},
                    {"no": 102, "com": None, "id": "c3"},
                ],
            },
            {
                "no": 200,
                "com": "Second OP",
                "posts": [
                    {"no": 200, "com": "Second OP", "id": "d4", "country": "US", "country_name": "United States", "extra": 1},
                ],
            },
        ]
    }
