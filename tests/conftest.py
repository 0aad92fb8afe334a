"""Shared fixtures for the Family Archive test suite."""

from pathlib import Path

import pytest

from family_archive.app import create_app
from family_archive.config import TestingConfig
from family_archive.ingestion import DocumentAnalyzer, OCRProcessor, OCRResult
from family_archive.sample_data import seed_sample_family
from family_archive.storage import ArchiveDatabase


class FakeOCRProcessor(OCRProcessor):
    """Returns canned text for images and PDFs; text files are read for real."""

    def __init__(self, text: str = "Birth certificate of Sara Ahmed dated 18/05/2018"):
        super().__init__()
        self.text = text
        self.calls: list[Path] = []

    def process_document(self, doc_path: Path) -> OCRResult:
        self.calls.append(Path(doc_path))
        if Path(doc_path).suffix.lower() == ".txt":
            return super().process_document(doc_path)
        return OCRResult(source_path=doc_path, text=self.text, confidence=87.5)


@pytest.fixture
def db():
    """Initialized in-memory archive database."""
    database = ArchiveDatabase("sqlite://").initialize()
    yield database
    database.close()


@pytest.fixture
def family(db):
    """Sample family: father, mother, son and daughter."""
    return seed_sample_family(db)


@pytest.fixture
def ocr_processor():
    return FakeOCRProcessor()


@pytest.fixture
def app(db, ocr_processor, tmp_path, monkeypatch):
    """Quart app wired to the in-memory database and a temporary upload folder."""
    monkeypatch.setattr(TestingConfig, "UPLOAD_FOLDER", tmp_path / "uploads")
    return create_app("testing", database=db, analyzer=DocumentAnalyzer(ocr_processor))


@pytest.fixture
def client(app):
    return app.test_client()
