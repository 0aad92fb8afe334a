"""Document analysis on top of OCR text.

Cleans the recognized text, classifies the document by keyword, and pulls
out dates, names and long numbers. Keywords cover both Arabic and English
family papers.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from family_archive.ingestion.ocr import OCRProcessor

logger = logging.getLogger(__name__)

# Most specific types first: "birth certificate" must not match "certificate"
DOCUMENT_PATTERNS: dict[str, list[str]] = {
    "birth_certificate": [
        "ميلاد", "birth", "مولود", "born", "تاريخ الميلاد",
        "date of birth", "birth certificate",
    ],
    "marriage_certificate": [
        "زواج", "marriage", "متزوج", "married", "عقد زواج",
        "marriage certificate", "wedding",
    ],
    "identity": [
        "هوية", "identity", "passport", "جواز", "بطاقة",
        "رقم قومي", "national id", "id card",
    ],
    "certificate": [
        "شهادة", "certificate", "diploma", "degree", "graduation",
        "جامعة", "university", "college", "مدرسة", "school",
        "بكالوريوس", "bachelor", "ماجستير", "master", "دكتوراه", "phd",
    ],
    "official_document": [
        "حكومة", "government", "وزارة", "ministry", "رسمي",
        "official", "مصلحة", "هيئة", "authority",
    ],
}

_DISALLOWED_CHARS = re.compile(
    r"[^\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF"
    r"\u200C\u200D\u061C\u200E\u200Fa-zA-Z0-9\s\-.,!?()]"
)
_WHITESPACE = re.compile(r"\s+")
_DATE = re.compile(r"\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|\d{2,4}[-/]\d{1,2}[-/]\d{1,2}")
_NAME = re.compile(r"[A-Z][a-z]+ [A-Z][a-z]+|[\u0623-\u064A]+ [\u0623-\u064A]+")
_LONG_NUMBER = re.compile(r"\b\d{6,}\b")
_ARABIC = re.compile(r"[\u0600-\u06FF]")
_LATIN = re.compile("[a-zA-Z]")

MAX_NAMES = 5


def clean_text(raw_text: str | None) -> str:
    """Keep Arabic, Latin letters, digits and basic punctuation; collapse whitespace."""
    if not raw_text:
        return ""
    text = _DISALLOWED_CHARS.sub("", raw_text)
    return _WHITESPACE.sub(" ", text).strip()


def classify_document(text: str | None, filename: str = "") -> str:
    """Classify a document from its text and filename keywords."""
    haystack = (text or "").lower()
    name = (filename or "").lower()

    for doc_type, keywords in DOCUMENT_PATTERNS.items():
        if any(k in haystack or k in name for k in keywords):
            return doc_type

    suffix = Path(name).suffix
    if suffix in {".pdf", ".doc", ".docx"}:
        return "document"
    if suffix in {".jpg", ".jpeg", ".png", ".gif"}:
        return "photo"
    return "unknown"


def extract_key_info(text: str) -> dict[str, list[str]]:
    """Extract dates, up to five names and long numbers (ids, phones)."""
    info: dict[str, list[str]] = {}
    dates = _DATE.findall(text)
    if dates:
        info["dates"] = dates
    names = _NAME.findall(text)
    if names:
        info["names"] = names[:MAX_NAMES]
    numbers = _LONG_NUMBER.findall(text)
    if numbers:
        info["numbers"] = numbers
    return info


def detect_language(text: str) -> str:
    has_arabic = bool(_ARABIC.search(text))
    has_latin = bool(_LATIN.search(text))
    if has_arabic and has_latin:
        return "mixed"
    if has_arabic:
        return "arabic"
    if has_latin:
        return "english"
    return "unknown"


@dataclass
class DocumentAnalysis:
    """Everything learned about an uploaded document."""

    original_text: str
    cleaned_text: str
    confidence: float
    document_type: str
    key_info: dict[str, list[str]] = field(default_factory=dict)
    word_count: int = 0
    language: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "original_text": self.original_text,
            "cleaned_text": self.cleaned_text,
            "confidence": self.confidence,
            "document_type": self.document_type,
            "key_info": self.key_info,
            "word_count": self.word_count,
            "language": self.language,
        }


class DocumentAnalyzer:
    """Run OCR on a document and analyze the result."""

    def __init__(self, processor: OCRProcessor | None = None):
        self.processor = processor or OCRProcessor()

    def supports(self, path: Path) -> bool:
        return self.processor.supports(path)

    def analyze_text(self, text: str, confidence: float, original_filename: str = "") -> DocumentAnalysis:
        """Analyze already extracted text."""
        cleaned = clean_text(text)
        return DocumentAnalysis(
            original_text=text,
            cleaned_text=cleaned,
            confidence=confidence,
            document_type=classify_document(text, original_filename),
            key_info=extract_key_info(text),
            word_count=len(cleaned.split()),
            language=detect_language(cleaned),
        )

    def analyze(self, path: Path, original_filename: str = "") -> DocumentAnalysis:
        """Extract and analyze the text of a stored document.

        Args:
            path: Path of the stored file
            original_filename: Name the file was uploaded with

        Returns:
            DocumentAnalysis for the file
        """
        logger.info("Processing document: %s", original_filename or path)
        result = self.processor.process_document(Path(path))
        analysis = self.analyze_text(result.text, result.confidence or 0.0, original_filename)
        logger.info(
            "OCR completed for %s: type=%s confidence=%.1f",
            original_filename or path,
            analysis.document_type,
            analysis.confidence,
        )
        return analysis
