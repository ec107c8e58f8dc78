"""
thread-articles: resumable batch pipeline turning discussion threads into
headline + article summaries with content classification stats.
"""

from .article_generator import ArticleGenerator, compute_batch_stats, generate_articles
from .config import ArticleGeneratorConfig
from .errors import (
    CompletionError,
    ConfigurationError,
    OutputCommitError,
    ThreadAnalysisError,
    ThreadArticlesError,
)
from .models import (
    ArticleAnalysis,
    ArticleBatch,
    ArticleMetadata,
    BatchStats,
    ClassificationStats,
    Post,
    Thread,
)

__all__ = [
    "ArticleGenerator",
    "ArticleGeneratorConfig",
    "compute_batch_stats",
    "generate_articles",
    # Errors
    "ThreadArticlesError",
    "CompletionError",
    "ConfigurationError",
    "OutputCommitError",
    "ThreadAnalysisError",
    # Models
    "Post",
    "Thread",
    "ArticleAnalysis",
    "ArticleBatch",
    "ArticleMetadata",
    "BatchStats",
    "ClassificationStats",
]
