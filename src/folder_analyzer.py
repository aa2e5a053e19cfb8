# src/folder_analyzer.py
"""
Folder Analyzer
Read-only report of subfolder counts, file counts and sizes for every folder
under a root directory. Nothing is filtered or merged.
"""

import os
import sys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from consolidation_config import format_bytes, setup_logging
from tree_scanner import (
    ROOT_DIRECTORY, is_real_directory, is_regular_file, join_relative, read_directory_entries,
    scan_sort_key
)

logger = logging.getLogger(__name__)

PATH_WIDTH = 60
SUBFOLDER_WIDTH = 12
FILES_WIDTH = 8
TABLE_WIDTH = 100


@dataclass
class FolderStats:
    folder_count: int = 0
    file_count: int = 0
    total_size: int = 0


def analyze_directory(root, relative: str = ROOT_DIRECTORY) -> Dict[str, FolderStats]:
    """
    Collect stats for `root` and every folder below it.

    Each call returns its own mapping; the caller merges the child mappings in.
    Empty folders are included. Unreadable folders keep zero stats.
    """
    root = Path(root)
    stats = FolderStats()
    results: Dict[str, FolderStats] = {relative: stats}

    try:
        entries = read_directory_entries(root)
    except OSError as e:
        logger.error(f"❌ Error reading directory {root}: {e}")
        return results

    for entry in entries:
        if is_real_directory(entry):
            stats.folder_count += 1
            child = analyze_directory(Path(entry.path), join_relative(relative, entry.name))
            results.update(child)
        elif is_regular_file(entry):
            try:
                size = entry.stat().st_size
            except OSError as e:
                logger.warning(f"⚠️ Could not get stats for {entry.path}: {e}")
                continue
            stats.file_count += 1
            stats.total_size += size

    return results


def _row(path: str, folders, files, size: str) -> str:
    return (str(path).ljust(PATH_WIDTH) + str(folders).ljust(SUBFOLDER_WIDTH)
            + str(files).ljust(FILES_WIDTH) + size)


def build_report_lines(folder_stats: Dict[str, FolderStats]) -> List[str]:
    """Render the analysis table plus the detailed summary"""
    sorted_folders = sorted(folder_stats, key=scan_sort_key)

    lines = [
        "Complete Folder Analysis Results:",
        "=" * TABLE_WIDTH,
        _row("Folder Path", "Subfolders", "Files", "Size"),
        "-" * TABLE_WIDTH,
    ]

    total_files = 0
    total_size = 0
    total_folders = len(sorted_folders)

    for folder in sorted_folders:
        stats = folder_stats[folder]
        display = "(root)" if folder == ROOT_DIRECTORY else folder
        lines.append(_row(display, stats.folder_count, stats.file_count,
                          format_bytes(stats.total_size)))
        total_files += stats.file_count
        total_size += stats.total_size

    subfolders = max(total_folders - 1, 0)
    lines.append("-" * TABLE_WIDTH)
    lines.append(_row("TOTALS", subfolders, total_files, format_bytes(total_size)))

    average_files = total_files / total_folders if total_folders else 0.0
    average_size = total_size / total_folders if total_folders else 0

    lines.extend([
        "",
        "Detailed Summary:",
        f"- Total folders (including root): {total_folders}",
        f"- Total subfolders: {subfolders}",
        f"- Total files: {total_files}",
        f"- Total size: {format_bytes(total_size)}",
        f"- Average files per folder: {average_files:.1f}",
        f"- Average folder size: {format_bytes(average_size)}",
    ])
    return lines


def main(argv=None) -> int:
    """Print the folder analysis for a directory (default: current directory)"""
    import argparse

    parser = argparse.ArgumentParser(description='Report folder, file and size counts for a directory tree')
    parser.add_argument('root', nargs='?', default=os.getcwd(), help='Directory to analyze (default: current directory)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    target = Path(args.root)
    print(f"Analyzing directory: {target.resolve()}\n")

    try:
        read_directory_entries(target)
    except OSError as e:
        logger.error(f"❌ Error analyzing directory: {e}")
        return 1

    folder_stats = analyze_directory(target)
    for line in build_report_lines(folder_stats):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
