# tests/conftest.py

import os

import fitz  # PyMuPDF
import pytest


def build_pdf(path, pages=1, label=None, padding=0):
    """
    Writes a real PDF with `pages` pages, each carrying "<label> page <n>".
    `padding` adds an incompressible embedded file to push the size up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    label = label or path.stem

    doc = fitz.open()
    for n in range(1, pages + 1):
        page = doc.new_page()
        page.insert_text((72, 72), f"{label} page {n}")
    if padding:
        doc.embfile_add("padding.bin", os.urandom(padding))
    doc.save(str(path))
    doc.close()
    return path


def page_texts(path):
    with fitz.open(str(path)) as doc:
        return [page.get_text().strip() for page in doc]


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def read_page_texts():
    return page_texts


@pytest.fixture
def export_tree(tmp_path):
    """
    Creates the canonical export layout:
    - A/doc1.pdf  (~30 KB, real content)
    - A/stub.pdf  (~5 KB, export stub)
    - B/C/doc2.pdf (~50 KB, real content)
    """
    root = tmp_path / "export"
    build_pdf(root / "A" / "doc1.pdf", pages=2, label="doc1", padding=30 * 1024)
    build_pdf(root / "A" / "stub.pdf", pages=1, label="stub", padding=4 * 1024)
    build_pdf(root / "B" / "C" / "doc2.pdf", pages=3, label="doc2", padding=50 * 1024)
    return root
