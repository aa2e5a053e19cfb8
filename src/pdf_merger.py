# src/pdf_merger.py
"""
PDF Merger for consolidated folder exports
Selects the real content PDFs of one folder and merges them into a single file.
Single files are copied byte-for-byte; multiple files are merged page by page
with PyMuPDF, skipping inputs that cannot be read.
"""

import os
import shutil
import locale
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

import fitz  # PyMuPDF

from consolidation_config import DEFAULT_MIN_FILE_SIZE, PDF_EXTENSION, format_bytes
from tree_scanner import has_extension, is_regular_file, read_directory_entries

logger = logging.getLogger(__name__)

# PyMuPDF reports broken documents as RuntimeError subclasses (FileDataError)
PDF_READ_ERRORS = (OSError, RuntimeError, ValueError)


@dataclass(frozen=True)
class CandidateFile:
    """One PDF found in a folder"""
    name: str
    path: str
    size_bytes: int


@dataclass(frozen=True)
class OutputArtifact:
    """A consolidated PDF written to the output directory"""
    file_name: str
    source_directory: str
    page_count: int
    size_bytes: int


@dataclass(frozen=True)
class FileImportResult:
    """Outcome of importing one input file into a merged document"""
    file: CandidateFile
    success: bool
    page_count: int = 0
    error: Optional[str] = None


class MergeStatus(str, Enum):
    MERGED = "merged"
    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class MergeOutcome:
    status: MergeStatus
    artifact: Optional[OutputArtifact] = None
    imports: List[FileImportResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status in (MergeStatus.MERGED, MergeStatus.COPIED)

    @property
    def failed_imports(self) -> List[FileImportResult]:
        return [result for result in self.imports if not result.success]


def name_sort_key(candidate: CandidateFile):
    """Locale-aware collation key for file names"""
    return locale.strxfrm(candidate.name)


def select_eligible_pdfs(entries: Iterable[os.DirEntry],
                         min_file_size: int = DEFAULT_MIN_FILE_SIZE) -> List[CandidateFile]:
    """
    Pick the PDFs of one folder that take part in consolidation.

    Files smaller than min_file_size are treated as export stubs and skipped.
    A file that cannot be stat'ed is skipped on its own.
    """
    eligible = []

    for entry in entries:
        if not (is_regular_file(entry) and has_extension(entry.name, PDF_EXTENSION)):
            continue

        try:
            size = entry.stat().st_size
        except OSError as e:
            logger.warning(f"  ⚠️ Could not stat {entry.name}: {e}")
            continue

        if size < min_file_size:
            logger.info(f"  Skipping small file: {entry.name} ({format_bytes(size)})")
            continue

        eligible.append(CandidateFile(
            name=entry.name,
            path=os.path.abspath(entry.path),
            size_bytes=size
        ))

    # sorted() is stable, so equal keys keep discovery order
    return sorted(eligible, key=name_sort_key)


def collect_eligible_pdfs(directory: Path,
                          min_file_size: int = DEFAULT_MIN_FILE_SIZE) -> List[CandidateFile]:
    """
    Read one folder (non-recursively) and return its eligible PDFs.

    An unreadable folder raises OSError; the caller decides how to report it.
    """
    entries = read_directory_entries(directory)
    return select_eligible_pdfs(entries, min_file_size)


class PDFMerger:
    """Merges one folder's eligible PDFs into a single output file"""

    def merge(self, files: List[CandidateFile], output_path,
              source_directory: str = ".") -> MergeOutcome:
        output_path = Path(output_path)

        if not files:
            logger.info("  No PDFs to merge")
            return MergeOutcome(status=MergeStatus.SKIPPED)

        if len(files) == 1:
            return self._copy_single(files[0], output_path, source_directory)

        return self._merge_many(files, output_path, source_directory)

    def _copy_single(self, pdf_file: CandidateFile, output_path: Path,
                     source_directory: str) -> MergeOutcome:
        """Copy a lone PDF unchanged"""
        temp_path = self._temp_path_for(output_path)
        try:
            shutil.copyfile(pdf_file.path, temp_path)
            temp_path.replace(output_path)
        except OSError as e:
            self._discard(temp_path)
            logger.error(f"  ❌ Error copying single PDF {pdf_file.name}: {e}")
            return MergeOutcome(status=MergeStatus.FAILED, error=str(e))

        logger.info(f"  Copied single PDF: {pdf_file.name}")
        artifact = OutputArtifact(
            file_name=output_path.name,
            source_directory=source_directory,
            page_count=self._count_pages(output_path),
            size_bytes=output_path.stat().st_size
        )
        return MergeOutcome(status=MergeStatus.COPIED, artifact=artifact)

    def _merge_many(self, files: List[CandidateFile], output_path: Path,
                    source_directory: str) -> MergeOutcome:
        """Import every page of every readable input, in order"""
        imports: List[FileImportResult] = []

        with fitz.open() as merged:
            for pdf_file in files:
                result = self._import_file(merged, pdf_file)
                imports.append(result)

            if not any(result.success for result in imports):
                logger.error(f"  ❌ None of the {len(files)} PDFs could be read; nothing written")
                return MergeOutcome(
                    status=MergeStatus.FAILED,
                    imports=imports,
                    error="all input files failed to import"
                )

            page_count = merged.page_count
            try:
                pdf_bytes = merged.tobytes(garbage=1, deflate=True)
            except PDF_READ_ERRORS as e:
                logger.error(f"  ❌ Error building merged PDF: {e}")
                return MergeOutcome(status=MergeStatus.FAILED, imports=imports, error=str(e))

        try:
            self._write_atomic(output_path, pdf_bytes)
        except OSError as e:
            logger.error(f"  ❌ Error writing {output_path}: {e}")
            return MergeOutcome(status=MergeStatus.FAILED, imports=imports, error=str(e))

        logger.info(f"  Created merged PDF with {page_count} pages")
        artifact = OutputArtifact(
            file_name=output_path.name,
            source_directory=source_directory,
            page_count=page_count,
            size_bytes=len(pdf_bytes)
        )
        return MergeOutcome(status=MergeStatus.MERGED, artifact=artifact, imports=imports)

    def _import_file(self, merged, pdf_file: CandidateFile) -> FileImportResult:
        """Append all pages of one input. Failures are recorded, not raised"""
        logger.info(f"  Adding: {pdf_file.name} ({format_bytes(pdf_file.size_bytes)})")
        pages_before = merged.page_count
        try:
            pdf_bytes = Path(pdf_file.path).read_bytes()
            with fitz.open(stream=pdf_bytes, filetype="pdf") as source:
                if source.page_count == 0:
                    raise ValueError("document has no pages")
                merged.insert_pdf(source)
                page_count = source.page_count
        except PDF_READ_ERRORS as e:
            # drop pages left behind by a half-finished import
            if merged.page_count > pages_before:
                merged.delete_pages(from_page=pages_before, to_page=merged.page_count - 1)
            logger.warning(f"  ⚠️ Could not process {pdf_file.name}: {e}")
            return FileImportResult(file=pdf_file, success=False, error=str(e))

        return FileImportResult(file=pdf_file, success=True, page_count=page_count)

    def _count_pages(self, pdf_path: Path) -> int:
        try:
            with fitz.open(pdf_path) as doc:
                return doc.page_count
        except PDF_READ_ERRORS as e:
            logger.debug(f"Could not count pages of {pdf_path}: {e}")
            return 0

    def _write_atomic(self, output_path: Path, data: bytes):
        temp_path = self._temp_path_for(output_path)
        try:
            temp_path.write_bytes(data)
            temp_path.replace(output_path)
        except OSError:
            self._discard(temp_path)
            raise

    @staticmethod
    def _temp_path_for(output_path: Path) -> Path:
        return output_path.with_name(output_path.name + ".tmp")

    @staticmethod
    def _discard(temp_path: Path):
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")
