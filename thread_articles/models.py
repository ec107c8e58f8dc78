"""Pydantic models for threads, analysis records and batch artifacts.

Persisted JSON uses camelCase keys (the layout downstream readers of
progress.json / articles.json expect); Python code uses snake_case
attributes. Both spellings are accepted when loading.
"""

import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# =============================================================================
# Source data (read-only to the pipeline)
# =============================================================================


class Post(BaseModel):
    """A single message within a thread."""

    model_config = ConfigDict(extra="ignore")

    no: int
    com: Optional[str] = None
    resto: Optional[int] = None
    time: Optional[int] = None
    name: Optional[str] = None
    id: Optional[str] = None  # poster id
    country: Optional[str] = None
    country_name: Optional[str] = None


class Thread(BaseModel):
    """A root post plus its replies."""

    model_config = ConfigDict(extra="ignore")

    no: int
    com: Optional[str] = None
    time: Optional[int] = None
    name: Optional[str] = None
    posts: List[Post] = Field(default_factory=list)


# =============================================================================
# Analysis records
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ClassificationStats(_CamelModel):
    """Content classification counts for one thread."""

    analyzed_comments: int = Field(alias="analyzedComments", ge=0)
    antisemitic_comments: int = Field(alias="antisemiticComments", ge=0)
    percentage: float = Field(ge=0)

    @classmethod
    def from_counts(cls, flagged: int, analyzed: int) -> "ClassificationStats":
        """Build stats; percentage is 0.0 when nothing was analyzed."""
        percentage = round(100 * flagged / analyzed, 2) if analyzed > 0 else 0.0
        return cls(
            analyzed_comments=analyzed,
            antisemitic_comments=flagged,
            percentage=percentage,
        )


class ArticleMetadata(_CamelModel):
    total_posts: int = Field(alias="totalPosts", ge=0)
    analyzed_posts: int = Field(alias="analyzedPosts", ge=0)  # sampled posts
    generated_at: int = Field(alias="generatedAt", default_factory=now_millis)


class ArticleAnalysis(_CamelModel):
    """Analysis record for one thread. Immutable once created."""

    thread_id: int = Field(alias="threadId")
    headline: str
    article: str
    antisemitic_stats: ClassificationStats = Field(alias="antisemiticStats")
    metadata: ArticleMetadata


# =============================================================================
# Batch artifacts
# =============================================================================


class BatchStats(_CamelModel):
    total_threads: int = Field(alias="totalThreads", ge=0)
    total_analyzed_posts: int = Field(alias="totalAnalyzedPosts", ge=0)
    average_antisemitic_percentage: float = Field(alias="averageAntisemiticPercentage", ge=0)
    generated_at: int = Field(alias="generatedAt", default_factory=now_millis)


class ArticleBatch(_CamelModel):
    """Final artifact of a job, committed once to articles.json."""

    articles: List[ArticleAnalysis] = Field(default_factory=list)
    batch_stats: BatchStats = Field(alias="batchStats")

    @property
    def thread_ids(self) -> List[int]:
        return [a.thread_id for a in self.articles]


class ProgressCheckpoint(_CamelModel):
    """Contents of progress.json."""

    articles: List[ArticleAnalysis] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_millis)
