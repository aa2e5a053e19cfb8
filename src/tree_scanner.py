# src/tree_scanner.py
"""
PDF Folder Scanner
Walks an export tree and finds every folder that directly holds PDF files.
"""

import os
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set

from consolidation_config import PDF_EXTENSION

logger = logging.getLogger(__name__)

ROOT_DIRECTORY = "."


class ScanError(Exception):
    """Raised when the scan root itself cannot be read"""


def read_directory_entries(directory: Path) -> List[os.DirEntry]:
    """List one directory, sorted by name. Raises OSError if it cannot be read."""
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def is_regular_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False


def is_real_directory(entry: os.DirEntry) -> bool:
    """Directories only; symlinked directories are not followed"""
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def has_extension(name: str, extension: str = PDF_EXTENSION) -> bool:
    return name.lower().endswith(extension.lower())


def join_relative(parent: str, name: str) -> str:
    return name if parent == ROOT_DIRECTORY else f"{parent}/{name}"


def scan_sort_key(directory: str):
    """Root first, then plain lexicographic order of the '/'-joined path"""
    return (directory != ROOT_DIRECTORY, directory)


class PDFTreeScanner:
    """Depth-first scanner producing the ordered list of folders to consolidate"""

    def __init__(self, root, extension: str = PDF_EXTENSION,
                 exclude: Optional[Iterable] = None):
        self.root = Path(root)
        self.extension = extension
        self.exclude: Set[Path] = {Path(p).resolve() for p in (exclude or [])}
        self.skipped_directories: List[str] = []

    def scan(self) -> List[str]:
        """
        Return the relative paths ('.' for the root) of all folders that directly
        contain at least one matching file.

        A folder qualifies on its own files only; subfolders are always visited.
        Unreadable subfolders are skipped together with their subtree.
        """
        self.skipped_directories = []

        try:
            root_entries = read_directory_entries(self.root)
        except OSError as e:
            raise ScanError(f"Cannot read scan root {self.root}: {e}") from e

        found: List[str] = []
        self._visit(ROOT_DIRECTORY, root_entries, found)

        found.sort(key=scan_sort_key)
        logger.info(f"📁 Found {len(found)} folders with {self.extension.upper().lstrip('.')} files")
        return found

    def _visit(self, relative: str, entries: List[os.DirEntry], found: List[str]):
        if any(is_regular_file(e) and has_extension(e.name, self.extension) for e in entries):
            found.append(relative)

        for entry in entries:
            if not is_real_directory(entry):
                continue

            child_path = Path(entry.path)
            if self.exclude and child_path.resolve() in self.exclude:
                logger.debug(f"Excluding directory from scan: {child_path}")
                continue

            child_relative = join_relative(relative, entry.name)
            try:
                child_entries = read_directory_entries(child_path)
            except OSError as e:
                logger.warning(f"⚠️ Error scanning {child_path}: {e}. Skipping subtree.")
                self.skipped_directories.append(child_relative)
                continue

            self._visit(child_relative, child_entries, found)


def scan_pdf_folders(root, exclude: Optional[Iterable] = None) -> List[str]:
    """Convenience wrapper around PDFTreeScanner"""
    return PDFTreeScanner(root, exclude=exclude).scan()
