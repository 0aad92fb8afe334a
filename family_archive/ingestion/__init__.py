"""Ingestion module for OCR and document analysis."""

from family_archive.ingestion.analysis import DocumentAnalysis, DocumentAnalyzer
from family_archive.ingestion.ocr import OCRProcessor, OCRResult

__all__ = ["OCRProcessor", "OCRResult", "DocumentAnalyzer", "DocumentAnalysis"]
