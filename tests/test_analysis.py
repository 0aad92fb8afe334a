"""Tests for OCR text analysis."""

import pytest

from family_archive.ingestion import DocumentAnalyzer, OCRProcessor
from family_archive.ingestion.analysis import (
    classify_document,
    clean_text,
    detect_language,
    extract_key_info,
)


class TestCleanText:
    """Tests for clean_text."""

    def test_collapses_whitespace(self):
        assert clean_text("  Birth \n\n  record\t2018  ") == "Birth record 2018"

    def test_drops_symbols_but_keeps_arabic(self):
        assert clean_text("شهادة ميلاد @#$ Sara!") == "شهادة ميلاد Sara!"

    def test_empty(self):
        assert clean_text("") == ""
        assert clean_text(None) == ""


class TestClassifyDocument:
    """Tests for classify_document."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Birth Certificate - Ministry of Health", "birth_certificate"),
            ("عقد زواج", "marriage_certificate"),
            ("Passport number 123456789", "identity"),
            ("Bachelor degree awarded by the university", "certificate"),
            ("Issued by the Ministry of Interior", "official_document"),
        ],
    )
    def test_keywords(self, text, expected):
        assert classify_document(text, "scan.jpg") == expected

    def test_filename_keywords_count(self):
        assert classify_document("", "wedding_invitation.pdf") == "marriage_certificate"

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [("notes.pdf", "document"), ("scan.PNG", "photo"), ("data.csv", "unknown")],
    )
    def test_extension_fallback(self, filename, expected):
        assert classify_document("nothing to see here", filename) == expected


class TestExtractKeyInfo:
    """Tests for extract_key_info."""

    def test_dates_names_numbers(self):
        info = extract_key_info("Sara Ahmed was born 18/05/2018, registration 20180518001, issued 2018-06-01")

        assert info["dates"] == ["18/05/2018", "2018-06-01"]
        assert info["names"] == ["Sara Ahmed"]
        assert info["numbers"] == ["20180518001"]

    def test_names_are_capped(self):
        text = "Aa Bb Cc Dd Ee Ff Gg Hh Ii Jj Kk Ll Mm Nn"

        assert len(extract_key_info(text)["names"]) == 5

    def test_nothing_found(self):
        assert extract_key_info("no data") == {}


class TestDetectLanguage:
    """Tests for detect_language."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("شهادة ميلاد", "arabic"),
            ("Birth certificate", "english"),
            ("شهادة Birth", "mixed"),
            ("12345", "unknown"),
        ],
    )
    def test_languages(self, text, expected):
        assert detect_language(text) == expected


class TestDocumentAnalyzer:
    """Tests for DocumentAnalyzer on stored files."""

    def test_text_file_is_read_directly(self, tmp_path):
        path = tmp_path / "record.txt"
        path.write_text("Marriage of Ahmed Ali and Fatima Ali on 01/06/2012\n", encoding="utf-8")

        analysis = DocumentAnalyzer(OCRProcessor()).analyze(path, "record.txt")

        assert analysis.confidence == 100.0
        assert analysis.document_type == "marriage_certificate"
        assert analysis.language == "english"
        assert analysis.key_info["dates"] == ["01/06/2012"]
        assert analysis.word_count == 9

    def test_image_goes_through_processor(self, tmp_path, ocr_processor):
        path = tmp_path / "scan.png"
        path.write_bytes(b"not really an image")

        analysis = DocumentAnalyzer(ocr_processor).analyze(path, "scan.png")

        assert ocr_processor.calls == [path]
        assert analysis.confidence == 87.5
        assert analysis.document_type == "birth_certificate"
        assert analysis.to_dict()["key_info"]["names"] == ["Sara Ahmed"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DocumentAnalyzer(OCRProcessor()).analyze(tmp_path / "gone.txt")

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "sheet.csv"
        path.write_text("a,b", encoding="utf-8")

        assert DocumentAnalyzer(OCRProcessor()).supports(path) is False
        with pytest.raises(ValueError, match="Unsupported file type"):
            DocumentAnalyzer(OCRProcessor()).analyze(path)
