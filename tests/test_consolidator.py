import json
from pathlib import Path

import pytest

import consolidator
import pdf_merger
from consolidator import ConsolidationError, FolderConsolidator, main
from pdf_merger import MergeStatus

HASH = "0123456789abcdef0123456789abcdef"

# --- END TO END ---

def test_export_tree_is_consolidated(export_tree, tmp_path, read_page_texts):
    # 1. Arrange
    output_dir = tmp_path / "out"

    # 2. Act
    summary = FolderConsolidator(export_tree, output_dir).run()

    # 3. Assert
    assert sorted(p.name for p in output_dir.iterdir()) == ["01-A.pdf", "02-B-C.pdf"]
    assert summary.processed == 2
    assert summary.succeeded == 2
    assert summary.generated_files == ["01-A.pdf", "02-B-C.pdf"]

    # A/ only had one real document, so it is copied unchanged
    assert (output_dir / "01-A.pdf").read_bytes() == (export_tree / "A" / "doc1.pdf").read_bytes()
    assert (output_dir / "02-B-C.pdf").read_bytes() == (export_tree / "B" / "C" / "doc2.pdf").read_bytes()
    assert all(t.startswith("doc1") for t in read_page_texts(output_dir / "01-A.pdf"))
    assert all(t.startswith("doc2") for t in read_page_texts(output_dir / "02-B-C.pdf"))


def test_originals_are_untouched(export_tree, tmp_path):
    before = {p: p.read_bytes() for p in export_tree.rglob("*.pdf")}

    FolderConsolidator(export_tree, tmp_path / "out").run()

    assert {p: p.read_bytes() for p in export_tree.rglob("*.pdf")} == before


def test_default_output_dir_is_inside_root_and_not_rescanned(export_tree):
    first = FolderConsolidator(export_tree).run()
    second = FolderConsolidator(export_tree).run()

    output_dir = export_tree / "output"
    assert sorted(p.name for p in output_dir.iterdir()) == ["01-A.pdf", "02-B-C.pdf"]
    assert [o.directory for o in second.outcomes] == [o.directory for o in first.outcomes]


def test_multi_file_folder_is_merged(tmp_path, make_pdf, read_page_texts):
    root = tmp_path / "export"
    folder = root / f"Guides {HASH}" / f"Onboarding {HASH}"
    make_pdf(folder / "b.pdf", pages=1, label="second", padding=25 * 1024)
    make_pdf(folder / "a.pdf", pages=2, label="first", padding=25 * 1024)

    summary = FolderConsolidator(root, tmp_path / "out").run()

    outcome = summary.outcomes[0]
    assert outcome.status == MergeStatus.MERGED.value
    assert outcome.output_name == "01-Guides-Onboarding.pdf"
    assert outcome.artifact.page_count == 3
    texts = read_page_texts(tmp_path / "out" / "01-Guides-Onboarding.pdf")
    assert [t.split(" page")[0] for t in texts] == ["first", "first", "second"]


def test_index_is_kept_for_folders_without_eligible_files(tmp_path, make_pdf):
    root = tmp_path / "export"
    make_pdf(root / "A" / "stub.pdf", padding=0)
    make_pdf(root / "B" / "real.pdf", padding=25 * 1024)

    summary = FolderConsolidator(root, tmp_path / "out").run()

    assert [(o.index, o.directory, o.status) for o in summary.outcomes] == [
        (1, "A", MergeStatus.SKIPPED.value),
        (2, "B", MergeStatus.COPIED.value),
    ]
    assert summary.processed == 2
    assert summary.succeeded == 1
    assert summary.skipped == 1
    assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["02-B.pdf"]


def test_root_folder_pdfs_use_root_name(tmp_path, make_pdf):
    root = tmp_path / "export"
    make_pdf(root / "top.pdf", padding=25 * 1024)

    summary = FolderConsolidator(root, tmp_path / "out").run()

    assert summary.generated_files == ["01-Root.pdf"]


def test_failed_folder_does_not_stop_the_run(tmp_path, make_pdf):
    root = tmp_path / "export"
    (root / "A").mkdir(parents=True)
    (root / "A" / "one.pdf").write_bytes(b"broken " * 5000)
    (root / "A" / "two.pdf").write_bytes(b"broken " * 5000)
    make_pdf(root / "B" / "good.pdf", padding=25 * 1024)

    summary = FolderConsolidator(root, tmp_path / "out").run()

    assert [o.status for o in summary.outcomes] == [MergeStatus.FAILED.value, MergeStatus.COPIED.value]
    assert summary.failed == 1
    assert summary.succeeded == 1
    assert summary.outcomes[0].failed_files == ["one.pdf", "two.pdf"]
    assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["02-B.pdf"]


def test_folder_unreadable_when_filtered_is_a_failure(export_tree, tmp_path, monkeypatch):
    real_read = pdf_merger.read_directory_entries

    def read_entries(directory):
        if Path(directory).name == "A":
            raise PermissionError(13, "Permission denied", str(directory))
        return real_read(directory)

    monkeypatch.setattr(pdf_merger, "read_directory_entries", read_entries)

    summary = FolderConsolidator(export_tree, tmp_path / "out").run()

    first = summary.outcomes[0]
    assert (first.directory, first.status) == ("A", MergeStatus.FAILED.value)
    assert "Permission denied" in first.error
    assert summary.failed == 1
    assert summary.skipped == 0
    assert summary.succeeded == 1
    assert summary.generated_files == ["02-B-C.pdf"]


def test_min_file_size_is_configurable(export_tree, tmp_path):
    summary = FolderConsolidator(export_tree, tmp_path / "out", min_file_size=1).run()

    # stub.pdf now counts, so A/ is a real merge of two files
    assert summary.outcomes[0].status == MergeStatus.MERGED.value
    assert summary.outcomes[0].eligible_count == 2

# --- DRY RUN ---

def test_dry_run_writes_nothing(export_tree, tmp_path):
    output_dir = tmp_path / "out"

    summary = FolderConsolidator(export_tree, output_dir, dry_run=True).run()

    assert not output_dir.exists()
    assert [(o.output_name, o.status) for o in summary.outcomes] == [
        ("01-A.pdf", consolidator.PLANNED),
        ("02-B-C.pdf", consolidator.PLANNED),
    ]
    assert summary.generated_files == []

# --- FATAL ERRORS ---

def test_missing_root_is_fatal(tmp_path):
    with pytest.raises(ConsolidationError):
        FolderConsolidator(tmp_path / "missing", tmp_path / "out").run()


def test_missing_root_creates_nothing(tmp_path):
    missing = tmp_path / "typo_root"

    with pytest.raises(ConsolidationError):
        FolderConsolidator(missing).run()

    assert not missing.exists()


def test_uncreatable_output_dir_is_fatal(export_tree, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(ConsolidationError):
        FolderConsolidator(export_tree, blocker / "out").run()

# --- CLI ---

def test_main_exit_codes(export_tree, tmp_path, capsys):
    assert main(["--root", str(export_tree), "--output", str(tmp_path / "out")]) == 0
    assert "02-B-C.pdf" in capsys.readouterr().out

    assert main(["--root", str(tmp_path / "missing"), "--output", str(tmp_path / "out2")]) == 1


def test_main_missing_root_with_default_output_exits_nonzero(tmp_path):
    missing = tmp_path / "typo_root"

    assert main(["--root", str(missing)]) == 1
    assert not missing.exists()


def test_main_writes_json_report(export_tree, tmp_path):
    report = tmp_path / "run.json"

    code = main(["--root", str(export_tree), "--output", str(tmp_path / "out"),
                 "--report-json", str(report)])

    assert code == 0
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["summary"]["succeeded"] == 2
    assert data["summary"]["generated_files"] == ["01-A.pdf", "02-B-C.pdf"]
    assert data["summary"]["outcomes"][0]["status"] == "copied"
