# src/consolidator.py
"""
Folder PDF Consolidator
Scans an export tree, and for every folder holding PDFs writes one merged PDF
into a flat output directory, named after the folder hierarchy.
"""

import os
import sys
import json
import locale
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from consolidation_config import DEFAULT_MIN_FILE_SIZE, DEFAULT_OUTPUT_DIR_NAME, format_bytes, setup_logging
from folder_names import generate_output_name
from pdf_merger import MergeStatus, OutputArtifact, PDFMerger, collect_eligible_pdfs
from tree_scanner import ROOT_DIRECTORY, PDFTreeScanner, ScanError

logger = logging.getLogger(__name__)

PLANNED = "planned"


class ConsolidationError(Exception):
    """Fatal error that aborts the whole run"""


@dataclass
class DirectoryOutcome:
    """What happened to one scanned folder"""
    index: int
    directory: str
    output_name: str
    status: str
    eligible_count: int = 0
    artifact: Optional[OutputArtifact] = None
    failed_files: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ConsolidationSummary:
    output_dir: str
    dry_run: bool = False
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: List[DirectoryOutcome] = field(default_factory=list)
    skipped_directories: List[str] = field(default_factory=list)

    @property
    def generated_files(self) -> List[str]:
        return sorted(o.artifact.file_name for o in self.outcomes if o.artifact)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['generated_files'] = self.generated_files
        return data


class FolderConsolidator:
    """Runs scan -> filter -> merge -> name for every folder, one at a time"""

    def __init__(self, root, output_dir=None, min_file_size: int = DEFAULT_MIN_FILE_SIZE,
                 dry_run: bool = False, merger: Optional[PDFMerger] = None):
        self.root = Path(root)
        self.output_dir = Path(output_dir) if output_dir else self.root / DEFAULT_OUTPUT_DIR_NAME
        self.min_file_size = min_file_size
        self.dry_run = dry_run
        self.merger = merger or PDFMerger()

    def run(self) -> ConsolidationSummary:
        """Consolidate every folder. Raises ConsolidationError only for fatal problems"""
        summary = ConsolidationSummary(output_dir=str(self.output_dir), dry_run=self.dry_run)

        logger.info("Scanning for folders with PDF files...")
        scanner = PDFTreeScanner(self.root, exclude=[self.output_dir])
        try:
            folders = scanner.scan()
        except ScanError as e:
            raise ConsolidationError(str(e)) from e
        summary.skipped_directories = list(scanner.skipped_directories)

        # nothing is created until the root has been read
        if not self.dry_run:
            self._ensure_output_dir()

        total = len(folders)
        for index, folder in enumerate(folders, 1):
            outcome = self._process_folder(folder, index, total)
            summary.outcomes.append(outcome)
            summary.processed += 1

            if outcome.status in (MergeStatus.MERGED.value, MergeStatus.COPIED.value):
                summary.succeeded += 1
            elif outcome.status == MergeStatus.FAILED.value:
                summary.failed += 1
            elif outcome.status == MergeStatus.SKIPPED.value:
                summary.skipped += 1

        return summary

    def _ensure_output_dir(self):
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConsolidationError(f"Cannot create output directory {self.output_dir}: {e}") from e

    def _process_folder(self, folder: str, index: int, total: int) -> DirectoryOutcome:
        folder_path = self.root if folder == ROOT_DIRECTORY else self.root.joinpath(*folder.split('/'))
        output_name = generate_output_name(folder, index)
        display = "(root)" if folder == ROOT_DIRECTORY else folder

        logger.info(f"[{index}/{total}] Processing: {display}")
        logger.info(f"  Output: {output_name}")

        outcome = DirectoryOutcome(
            index=index,
            directory=folder,
            output_name=output_name,
            status=MergeStatus.SKIPPED.value
        )

        try:
            pdf_files = collect_eligible_pdfs(folder_path, self.min_file_size)
        except OSError as e:
            logger.error(f"  ❌ Error reading folder {display}: {e}")
            outcome.status = MergeStatus.FAILED.value
            outcome.error = str(e)
            return outcome
        outcome.eligible_count = len(pdf_files)

        if not pdf_files:
            logger.info(f"  ⚠️ No valid PDFs found (all files < {format_bytes(self.min_file_size)})")
            return outcome

        if self.dry_run:
            outcome.status = PLANNED
            logger.info(f"  Would consolidate {len(pdf_files)} PDF(s)")
            return outcome

        result = self.merger.merge(pdf_files, self.output_dir / output_name, source_directory=folder)
        outcome.status = result.status.value
        outcome.artifact = result.artifact
        outcome.failed_files = [r.file.name for r in result.failed_imports]
        outcome.error = result.error

        if result.success:
            logger.info(f"  ✅ Success: {format_bytes(result.artifact.size_bytes)}")
        else:
            logger.error(f"  ❌ Failed to merge {display}: {result.error}")

        return outcome


def save_summary(summary: ConsolidationSummary, report_path):
    """Write the run summary as JSON (atomic replace)"""
    report_path = Path(report_path)
    report = {
        'consolidated_at': datetime.now().isoformat(),
        'summary': summary.to_dict()
    }

    temp_file = report_path.with_name(report_path.name + '.tmp')
    try:
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False, default=str)
        temp_file.replace(report_path)
        logger.info(f"📋 Run report saved: {report_path}")
    except OSError as e:
        logger.warning(f"⚠️ Could not save run report {report_path}: {e}")


def print_summary(summary: ConsolidationSummary):
    planned = [o for o in summary.outcomes if o.status == PLANNED]

    print("\n" + "=" * 60)
    print("🔍 DRY RUN - no files written" if summary.dry_run else "Merge Summary:")
    print(f"- Folders processed: {summary.processed}")
    if summary.dry_run:
        print(f"- Folders to consolidate: {len(planned)}")
        if summary.failed:
            print(f"- Unreadable folders: {summary.failed}")
    else:
        print(f"- Successful merges: {summary.succeeded}")
        print(f"- Failed merges: {summary.failed}")
    print(f"- Folders without valid PDFs: {summary.skipped}")
    if summary.skipped_directories:
        print(f"- Unreadable folders skipped: {len(summary.skipped_directories)}")
    print(f"- Output directory: {summary.output_dir}")

    if summary.dry_run:
        if planned:
            print("\nPlanned files:")
            for o in planned:
                print(f"  - {o.output_name} ({o.eligible_count} PDFs from {o.directory})")
    elif summary.generated_files:
        print("\nGenerated files:")
        for name in summary.generated_files:
            print(f"  - {name}")


def main(argv=None) -> int:
    """Command line entry point"""
    import argparse

    parser = argparse.ArgumentParser(
        description='Merge the PDFs of every folder in an export tree into one PDF per folder',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pdf-consolidate                        # Consolidate the current directory into ./output
  pdf-consolidate --root export --dry-run
  pdf-consolidate --min-size 51200 --report-json run.json
        """
    )
    parser.add_argument('--root', default=os.getcwd(),
                        help='Root of the export tree (default: current directory)')
    parser.add_argument('--output', default=None,
                        help=f'Output directory (default: <root>/{DEFAULT_OUTPUT_DIR_NAME})')
    parser.add_argument('--min-size', type=int, default=DEFAULT_MIN_FILE_SIZE,
                        help=f'Minimum PDF size in bytes (default: {DEFAULT_MIN_FILE_SIZE})')
    parser.add_argument('--dry-run', action='store_true',
                        help='Show what would be written without writing anything')
    parser.add_argument('--report-json', default=None,
                        help='Save the run summary as JSON to this path')
    parser.add_argument('--log-file', default=None,
                        help='Also write diagnostics to this file')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')

    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error as e:
        logger.debug(f"Using default collation: {e}")

    consolidator = FolderConsolidator(
        root=args.root,
        output_dir=args.output,
        min_file_size=args.min_size,
        dry_run=args.dry_run
    )

    logger.info("PDF Merger Starting...")
    logger.info(f"Source: {consolidator.root.resolve()}")
    logger.info(f"Output: {consolidator.output_dir.resolve()}")
    logger.info(f"Minimum file size: {format_bytes(consolidator.min_file_size)}")

    try:
        summary = consolidator.run()
    except ConsolidationError as e:
        logger.error(f"❌ Fatal error: {e}")
        return 1

    print_summary(summary)

    if args.report_json:
        save_summary(summary, args.report_json)

    return 0


if __name__ == "__main__":
    sys.exit(main())
