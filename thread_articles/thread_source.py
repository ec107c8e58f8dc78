"""Load already-fetched threads from a JSON file."""

import json
import logging
from pathlib import Path
from typing import List, Union

from pydantic import TypeAdapter

from .models import Thread

logger = logging.getLogger(__name__)

_THREAD_LIST = TypeAdapter(List[Thread])


def load_threads(path: Union[str, Path]) -> List[Thread]:
    """
    Read threads from a JSON file.

    Accepts either a bare list of threads or an object with a "threads" key.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the JSON has neither shape
        pydantic.ValidationError: if a thread is malformed
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        if "threads" not in data:
            raise ValueError(f"{path}: expected a list of threads or a 'threads' key")
        data = data["threads"]
    if not isinstance(data, list):
        raise ValueError(f"{path}: threads must be a JSON list")

    threads = _THREAD_LIST.validate_python(data)
    logger.info(f"Loaded {len(threads)} threads from {path}")
    return threads
