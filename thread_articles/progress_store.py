"""
Checkpoint and output persistence.

progress.json  - {articles, timestamp}; rewritten after every analyzed
                 thread, read once at job start, deleted on completion.
                 Best effort: losing it only costs re-work.
articles.json  - {articles, batchStats, timestamp}; written once per job
                 via temp file + os.replace so readers never see a partial
                 file. Failure here is fatal.

Single writer, one job at a time. Running two jobs against the same
directory is unsupported.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .errors import OutputCommitError
from .models import ArticleAnalysis, ArticleBatch, ProgressCheckpoint, now_millis

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


def _temp_path(path: Path) -> Path:
    return path.with_name(path.name + TEMP_SUFFIX)


def _write_json_atomic(path: Path, payload: Dict[str, Any]) -> None:
    """Write JSON to <path>.tmp, fsync, then replace <path>. Removes the temp file on failure."""
    tmp = _temp_path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.warning(f"Could not remove temp file {tmp}: {cleanup_error}")
        raise


def _dedupe_by_thread(records: Sequence[ArticleAnalysis]) -> List[ArticleAnalysis]:
    seen = set()
    unique = []
    for record in records:
        if record.thread_id in seen:
            logger.warning(f"Dropping duplicate checkpoint record for thread {record.thread_id}")
            continue
        seen.add(record.thread_id)
        unique.append(record)
    return unique


class ProgressStore:
    """Durable job state under the analysis data directory."""

    def __init__(self, progress_file: Path, output_file: Path):
        self.progress_file = Path(progress_file)
        self.output_file = Path(output_file)

    # -------------------------------------------------------------------------
    # Checkpoint
    # -------------------------------------------------------------------------

    async def save_checkpoint(self, records: Sequence[ArticleAnalysis]) -> bool:
        """
        Persist the records completed so far.

        Returns:
            True if written; False if the write failed (logged, not raised)
        """
        checkpoint = ProgressCheckpoint(articles=list(records), timestamp=now_millis())
        payload = checkpoint.model_dump(mode="json", by_alias=True)
        try:
            await asyncio.to_thread(_write_json_atomic, self.progress_file, payload)
            return True
        except Exception as e:
            logger.warning(f"Failed to save progress: {e}")
            return False

    async def load_checkpoint(self) -> List[ArticleAnalysis]:
        """Return checkpointed records; [] if the file is missing or unusable."""
        return await asyncio.to_thread(self._read_checkpoint)

    def _read_checkpoint(self) -> List[ArticleAnalysis]:
        try:
            raw = self.progress_file.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Could not read checkpoint {self.progress_file}: {e}")
            return []

        try:
            checkpoint = ProgressCheckpoint.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring corrupt checkpoint {self.progress_file}: {type(e).__name__}")
            return []

        return _dedupe_by_thread(checkpoint.articles)

    async def clear_checkpoint(self) -> None:
        """Delete the checkpoint file. Errors are logged only."""
        try:
            await asyncio.to_thread(self.progress_file.unlink, missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove progress file {self.progress_file}: {e}")

    # -------------------------------------------------------------------------
    # Final output
    # -------------------------------------------------------------------------

    async def commit_output(self, batch: ArticleBatch) -> Path:
        """
        Atomically write the batch to the output file.

        Raises:
            OutputCommitError: if the write or rename fails; the temp file is
                removed and any previous output file is left untouched
        """
        payload = batch.model_dump(mode="json", by_alias=True)
        payload["timestamp"] = now_millis()
        try:
            await asyncio.to_thread(_write_json_atomic, self.output_file, payload)
        except Exception as e:
            logger.error(f"Failed to save articles: {e}")
            raise OutputCommitError(f"Could not write {self.output_file}: {e}") from e

        logger.info(f"Articles saved to: {self.output_file}")
        return self.output_file

    def load_output(self) -> Optional[ArticleBatch]:
        """Read a previously committed batch, or None if there is none."""
        if not self.output_file.exists():
            return None
        data = json.loads(self.output_file.read_text(encoding="utf-8"))
        data.pop("timestamp", None)
        return ArticleBatch.model_validate(data)
