import json
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, Optional


def ensure_parent_dir(path: Path | str) -> None:
    """
    Create the directory that will hold `path` if it is missing.
    """
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)


def write_json(path: str | Path, data: Any) -> None:
    """
    Write a JSON document with an atomic replace.

    The payload goes to a temporary file next to the target, is fsynced, then
    moved over the target with os.replace. Readers either see the previous
    document or the new one, never a truncated file.
    """
    target_path = Path(path)
    ensure_parent_dir(target_path)

    fd, tmp_path_str = tempfile.mkstemp(
        dir=str(target_path.parent),
        prefix=target_path.name,
        suffix=".tmp",
    )
    tmp_path = Path(tmp_path_str)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, target_path)
    except Exception:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def read_json(
    path: str | Path,
    default: Any = None,
    *,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Any:
    """
    Read a JSON document, returning `default` when the file is missing or
    unparsable (`on_error` is called with the decode error in that case).
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except json.JSONDecodeError as e:
        if on_error:
            on_error(e)
        return default
