"""
File Access Module

The narrow file-system surface used by import and export. Pickers return None
when the user cancels; callers turn that into a "cancelled" outcome, never an
error. LocalFileAccess is the non-interactive implementation used by the CLI
and the web layer: its "pickers" answer with paths chosen up front.
"""

import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from keyhub.exceptions import StorageError
from keyhub.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ExtensionFilter:
    """A named group of file extensions offered by a picker, e.g. JSON Files (*.json)."""
    name: str
    extensions: List[str] = field(default_factory=list)

    def matches(self, path: Path) -> bool:
        suffix = Path(path).suffix.lstrip('.').lower()
        return not self.extensions or suffix in (ext.lower() for ext in self.extensions)


JSON_FILTER = ExtensionFilter("JSON Files", ["json"])
CSV_FILTER = ExtensionFilter("CSV Files", ["csv"])
IMPORT_FILTERS = [ExtensionFilter("Translation Files", ["json", "csv"]), JSON_FILTER, CSV_FILTER]


class FileAccess(ABC):
    """
    File picker and text I/O capability.

    Implementations:
        LocalFileAccess: preconfigured paths, atomic writes
    """

    @abstractmethod
    def pick_save_target(self, title: str, suggested_name: str,
                         extension_filters: Sequence[ExtensionFilter]) -> Optional[Path]:
        """Return the path to save to, or None if cancelled."""

    @abstractmethod
    def pick_open_target(self, title: str, extension_filters: Sequence[ExtensionFilter]) -> Optional[Path]:
        """Return the path to open, or None if cancelled."""

    @abstractmethod
    def pick_directory(self, title: str) -> Optional[Path]:
        """Return a directory, or None if cancelled."""

    @abstractmethod
    def read_text(self, path: Path) -> str:
        """Read a UTF-8 text file."""

    @abstractmethod
    def write_text(self, path: Path, content: str) -> None:
        """Write a UTF-8 text file, replacing any existing file."""


class LocalFileAccess(FileAccess):
    """
    File access on the local file system with fixed picker answers.

    Args:
        open_path: Answer for pick_open_target
        save_path: Answer for pick_save_target; takes precedence over save_dir
        save_dir: Directory joined with the suggested name for pick_save_target
        directory: Answer for pick_directory

    Any answer left as None behaves like a cancelled dialog.
    """

    def __init__(self, open_path: Optional[Path] = None, save_path: Optional[Path] = None,
                 save_dir: Optional[Path] = None, directory: Optional[Path] = None):
        self.open_path = Path(open_path) if open_path else None
        self.save_path = Path(save_path) if save_path else None
        self.save_dir = Path(save_dir) if save_dir else None
        self.directory = Path(directory) if directory else None

    def pick_save_target(self, title, suggested_name, extension_filters):
        if self.save_path is not None:
            return self.save_path
        if self.save_dir is not None:
            return self.save_dir / suggested_name
        logger.debug(f"No save target configured for '{title}'")
        return None

    def pick_open_target(self, title, extension_filters):
        if self.open_path is None:
            logger.debug(f"No open target configured for '{title}'")
            return None
        if extension_filters and not any(f.matches(self.open_path) for f in extension_filters):
            logger.warning(f"{self.open_path.name} does not match the offered file types")
        return self.open_path

    def pick_directory(self, title):
        return self.directory

    def read_text(self, path: Path) -> str:
        try:
            return Path(path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(f"Failed to read file: {e}", code="io_error") from e

    def write_text(self, path: Path, content: str) -> None:
        _atomic_write_text(Path(path), content)


def _atomic_write_text(file_path: Path, content: str):
    """
    Write text to a file through a temporary sibling and a rename, so the
    target is either the old file or the complete new one.

    Raises:
        StorageError: If the write fails
    """
    temp_path = None
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory as the target for an atomic rename
        temp_fd, temp_name = tempfile.mkstemp(
            dir=file_path.parent,
            prefix=f".{file_path.stem}_",
            suffix=f"{file_path.suffix}.tmp"
        )
        temp_path = Path(temp_name)

        # newline='' keeps CSV line endings exactly as rendered
        with open(temp_fd, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

        temp_path.replace(file_path)
        logger.debug(f"Atomic write successful: {file_path}")

    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        logger.error(f"Failed to write {file_path}: {e}")
        raise StorageError(f"Failed to write file: {e}", code="io_error") from e
