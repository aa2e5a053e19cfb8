# src/folder_names.py
"""
Display names for consolidated PDFs.
Turns hash-suffixed export folder names into clean, sortable output filenames.
"""

import re

# Exporter appends " <32 hex chars>" to every folder name for uniqueness
HASH_SUFFIX_PATTERN = re.compile(r'\s+[0-9a-f]{32}\Z', re.IGNORECASE)

# Keep word characters, whitespace and the common emoji/pictograph blocks
PICTOGRAPH_RANGES = (
    '\U0001F600-\U0001F64F'
    '\U0001F300-\U0001F5FF'
    '\U0001F680-\U0001F6FF'
    '\U0001F1E0-\U0001F1FF'
    '\u2600-\u26FF'
    '\u2700-\u27BF'
)
DISALLOWED_CHARS_PATTERN = re.compile(rf'[^\w\s{PICTOGRAPH_RANGES}]')
WHITESPACE_PATTERN = re.compile(r'\s+')

ROOT_LABEL = "Root"
OUTPUT_EXTENSION = ".pdf"
INDEX_WIDTH = 2


def strip_hash_suffix(segment: str) -> str:
    """Remove a trailing ' <32 hex>' export hash, if present."""
    if not segment:
        return ""
    return HASH_SUFFIX_PATTERN.sub('', segment)


def normalize_segment(segment: str) -> str:
    """Drop punctuation and join words with underscores (no hash stripping)."""
    if not segment:
        return ""
    cleaned = DISALLOWED_CHARS_PATTERN.sub('', segment).strip()
    return WHITESPACE_PATTERN.sub('_', cleaned)


def clean_folder_name(segment: str) -> str:
    """
    Clean one folder name for display.

    "Project Notes 🚀 0123456789abcdef0123456789abcdef" -> "Project_Notes_🚀"
    """
    return normalize_segment(strip_hash_suffix(segment))


def split_directory_path(directory: str) -> list:
    """Split a '/'-joined relative path into its real segments ('.' is the root)."""
    return [part for part in (directory or "").split('/') if part and part != '.']


def generate_output_name(directory: str, index: int) -> str:
    """
    Build the output filename for a directory at a 1-based scan position.

    Only the last two folder levels are used ("Parent-Child"); deeper ancestry
    is dropped on purpose to keep names short. The index is zero-padded to two
    digits, so listings sort by index only up to 99 directories.
    """
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        raise ValueError(f"Index must be a positive integer, got {index!r}")

    padded_index = str(index).zfill(INDEX_WIDTH)
    cleaned_parts = [clean_folder_name(part) for part in split_directory_path(directory)]

    if not cleaned_parts:
        return f"{padded_index}-{ROOT_LABEL}{OUTPUT_EXTENSION}"
    if len(cleaned_parts) == 1:
        return f"{padded_index}-{cleaned_parts[0]}{OUTPUT_EXTENSION}"

    parent, child = cleaned_parts[-2], cleaned_parts[-1]
    return f"{padded_index}-{parent}-{child}{OUTPUT_EXTENSION}"
