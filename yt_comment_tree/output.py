"""
Reading and writing the output document.
"""

import json
import os
import tempfile
from pathlib import Path

from .models import VideoCommentsRecord


def atomic_write_json(file_path, data):
    """
    Atomically write JSON data to a file using a temporary file and os.replace().

    This ensures that the file is never partially written or corrupted, even if the
    program crashes or is interrupted during the write operation.

    Parameters:
        file_path (str or Path): The target file path to write to
        data (list or dict): The data to serialize as JSON
    """
    target = Path(file_path)
    # Same directory so the temp file is on the same filesystem for atomic replacement
    dir_path = target.parent if str(target.parent) else Path('.')

    with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=dir_path, delete=False) as temp_file:
        temp_path = temp_file.name
        try:
            json.dump(data, temp_file, ensure_ascii=False, indent=2)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        except BaseException:
            temp_file.close()
            os.unlink(temp_path)
            raise

    os.replace(temp_path, target)


def write_document(file_path, records):
    """Serialize the output document (a list of VideoCommentsRecord) to ``file_path``."""
    atomic_write_json(file_path, [record.to_dict() for record in records])


def load_document(file_path):
    """Parse an output document written by ``write_document`` back into records."""
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return [VideoCommentsRecord.from_dict(entry) for entry in data]
