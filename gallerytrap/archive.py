from __future__ import annotations

import fnmatch
import logging
import os

from .errors import InvalidFilePathError

logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o750
TEMP_SUFFIX = ".tmp"


def marker_name(filename: str, artifact_id: int) -> str:
    """Name of the view page that marks ``artifact_id`` as archived."""
    return f"{filename}.{artifact_id}.html"


def is_archived(artifact_id: int, directory: str) -> bool:
    """True iff a ``*.<id>.html`` marker sits directly in ``directory``.

    The marker is written last and only by an atomic rename, so its presence
    means the submission file next to it is complete."""
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return False
    return len(fnmatch.filter(names, f"*.{artifact_id}.html")) > 0


def check_canonical(path: str) -> str:
    """Reject paths that change under normalization (``..``, ``//``, ``./``)."""
    if not path or path != os.path.normpath(path):
        raise InvalidFilePathError(f"invalid file path: {path}")
    return path


def ensure_directory(directory: str) -> None:
    check_canonical(directory)
    os.makedirs(directory, mode=DIRECTORY_MODE, exist_ok=True)


def write_and_fsync(path: str, data: bytes) -> None:
    """Write ``data`` to ``path`` and fsync it before returning.

    The fsync orders the submission file ahead of the marker: after an
    interruption either the file is complete or no marker exists."""
    check_canonical(path)
    with open(path, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


def commit_submission(directory: str, filename: str, artifact_id: int, payload: bytes, page: bytes) -> str:
    """Persist the submission file, then publish its marker.

    Returns the path of the submission file."""
    file_path = os.path.join(directory, filename)
    write_and_fsync(file_path, payload)

    marker_path = os.path.join(directory, marker_name(filename, artifact_id))
    temp_path = marker_path + TEMP_SUFFIX
    write_and_fsync(temp_path, page)
    check_canonical(marker_path)
    os.replace(temp_path, marker_path)

    logger.debug("marker committed", extra={"context": {"id": artifact_id, "marker": marker_path}})
    return file_path
