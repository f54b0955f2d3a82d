"""
Classification of raw directory notifications.

Native watchers report creation, deletion and renaming inside a directory
with the same ``rename`` kind. The classifier tells them apart by comparing
the directory's current contents with the set of files already known:

- the named entry is gone and an unknown file is present: ``rename``
- the named entry is gone and nothing unknown is present: ``delete``
- the named entry exists but is not known: ``add``
- the named entry exists and is known: nothing to report

When several unknown files are present, the first one in sorted listing
order is taken as the rename target. Only one file is discovered per
notification; others surface on later notifications.
"""

import os
import stat
from dataclasses import dataclass
from typing import Container, List, Optional

from globwatcher.emitter import ADD, DELETE, RENAME

RAW_CHANGE = "change"
RAW_RENAME = "rename"


@dataclass(frozen=True)
class Classification:
    """A semantic event derived from a raw notification."""

    event: str
    path: str
    new_path: Optional[str] = None

    @property
    def args(self):
        if self.new_path is None:
            return (self.path,)
        return (self.path, self.new_path)


def is_file(path: str) -> bool:
    """True for anything that is not a directory; symlinks are not followed."""
    return not stat.S_ISDIR(os.lstat(path).st_mode)


def list_directory_files(directory: str) -> List[str]:
    """
    List the non-directory entries of ``directory`` as normalized paths.

    Entries are sorted by name. Stat failures propagate.
    """
    entries = [os.path.normpath(os.path.join(directory, name)) for name in sorted(os.listdir(directory))]
    return [entry for entry in entries if is_file(entry)]


def find_unknown_file(directory: str, known: Container[str]) -> Optional[str]:
    """Return the first file in ``directory`` that is not in ``known``."""
    for path in list_directory_files(directory):
        if path not in known:
            return path
    return None


def resolve_raw_name(directory: str, raw_name) -> str:
    """Absolute path of the entry a directory notification refers to."""
    return os.path.normpath(os.path.join(directory, os.path.basename(raw_name or "")))


def classify_directory_event(raw_name, directory: str, known: Container[str]) -> Optional[Classification]:
    """
    Classify a ``rename``-class notification raised for ``directory``.

    Args:
        raw_name: The filename reported with the notification.
        directory (str): The watched directory that raised it.
        known: The set of files currently watched.

    Returns:
        Classification: The event to emit, or None when the notification is
        an echo of a change to a file that is already known.
    """
    path = resolve_raw_name(directory, raw_name)

    if not os.path.exists(path):
        candidate = find_unknown_file(directory, known)
        if candidate is not None:
            return Classification(RENAME, path, candidate)
        return Classification(DELETE, path)

    if path not in known:
        return Classification(ADD, path)

    return None
