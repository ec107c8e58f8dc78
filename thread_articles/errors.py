"""Exception types raised across the article pipeline."""


class ThreadArticlesError(Exception):
    """Base class for pipeline errors."""

    pass


class ConfigurationError(ThreadArticlesError):
    """Raised when required settings (e.g. the API key) are missing."""

    pass


class CompletionError(ThreadArticlesError):
    """Raised when a completion call fails or returns no usable content."""

    pass


class OutputCommitError(ThreadArticlesError):
    """Raised when the final articles file could not be committed."""

    pass


class ThreadAnalysisError(ThreadArticlesError):
    """Raised when a thread cannot be analyzed; records the stage that failed."""

    def __init__(self, thread_id: int, stage: str, cause: BaseException):
        self.thread_id = thread_id
        self.stage = stage
        self.cause = cause
        super().__init__(f"Thread {thread_id} failed at stage {stage}: {cause}")
