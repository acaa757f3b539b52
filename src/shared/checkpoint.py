"""Atomic JSON persistence for resumable collection.

Both durable documents (the record store snapshot and the progress ledger)
go through these helpers so that an interrupted write never leaves a
partially-written file behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from src.shared.errors import InputFormatError

__all__ = [
    'load_json_document',
    'save_json_atomic',
]


def save_json_atomic(data: Any, filepath: Union[str, Path]) -> None:
    """Save a JSON document using atomic write (temp file + rename).

    The data is written to a temporary file in the target directory and then
    moved over the target with os.replace, so readers only ever see the old
    document or the new one.

    Args:
        data: Data to save (will be JSON serialized)
        filepath: Path where the document should be saved

    Raises:
        OSError: If filesystem operations fail
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        # Temp file must live in the same directory for the rename to be atomic
        temp_fd, temp_path = tempfile.mkstemp(
            suffix='.tmp',
            dir=path.parent,
            prefix=path.name + '.'
        )

        try:
            with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, str(path))
            logging.debug(f"Saved {filepath}")

        except Exception:
            try:
                os.close(temp_fd)
            except OSError:
                pass
            Path(temp_path).unlink(missing_ok=True)
            raise

    except OSError as e:
        logging.error(f"Failed to save {filepath}: {e}")
        raise


def load_json_document(filepath: Union[str, Path]) -> Optional[Any]:
    """Load a JSON document written by save_json_atomic.

    Args:
        filepath: Path to the document

    Returns:
        Parsed JSON data, or None if the file doesn't exist

    Raises:
        InputFormatError: If the file exists but is not valid JSON
    """
    path = Path(filepath)
    if not path.exists():
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputFormatError(str(path), f"not valid JSON ({e})") from e

    logging.debug(f"Loaded {filepath}")
    return data
