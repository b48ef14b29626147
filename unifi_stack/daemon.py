"""Docker daemon.json editing: set and revert the data-root key."""

import json
import os
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

DATA_ROOT_KEY = "data-root"
_DATA_ROOT_LINE = re.compile(r'"data-root"\s*:')


def _load(path: Path) -> Optional[dict]:
    """
    Parse daemon.json.

    Returns:
        The parsed object, an empty dict for a missing or blank file,
        or None if the file is not a JSON object.
    """
    if not path.exists():
        return {}

    content = path.read_text(encoding="utf-8")
    if not content.strip():
        return {}

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _write(path: Path, content: str) -> None:
    tmp_path = path.with_name(path.name + ".new")
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, path)


def _dump(data: dict) -> str:
    return json.dumps(data, indent=2) + "\n"


def backup_file(path: Path) -> Path:
    """Copy a file to a timestamped .bak sibling and return the backup path."""
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    backup = path.with_name(f"{path.name}.bak.{timestamp}")
    shutil.copy2(path, backup)
    return backup


def set_data_root(path: Path, data_root: str) -> None:
    """
    Set "data-root" in daemon.json, creating the file if needed.

    Unrelated keys are preserved. A file that is not a JSON object is
    backed up and replaced by a fresh object.

    Args:
        path: Path to daemon.json
        data_root: Docker data-root directory
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _load(path)
    if data is None:
        backup = backup_file(path)
        print(f"Warning: {path} is not a JSON object; backed up to {backup} and replacing it.")
        data = {}

    if data.get(DATA_ROOT_KEY) == data_root:
        print(f"{path} already sets {DATA_ROOT_KEY} to {data_root}.")
    data[DATA_ROOT_KEY] = data_root
    _write(path, _dump(data))


def revert_data_root(path: Path) -> bool:
    """
    Remove every "data-root" entry from daemon.json.

    Malformed files are filtered line by line instead.

    Args:
        path: Path to daemon.json

    Returns:
        True if the file existed and was rewritten, False if it is missing
    """
    if not path.exists():
        return False

    data = _load(path)
    if data is None:
        lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
        _write(path, "".join(line for line in lines if not _DATA_ROOT_LINE.search(line)))
        return True

    data.pop(DATA_ROOT_KEY, None)
    _write(path, _dump(data))
    return True
