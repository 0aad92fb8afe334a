"""OCR extraction for archive documents.

Text extraction is delegated to Tesseract (images) and pdf2image + Tesseract
(PDFs); plain text files are read directly. The processor never alters the
uploaded file.
"""

from pathlib import Path
from typing import Any

import pytesseract
from pdf2image import convert_from_path
from PIL import Image

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".tiff", ".tif", ".bmp"}
SUPPORTED_SUFFIXES = IMAGE_SUFFIXES | {".pdf", ".txt"}


class OCRResult:
    """Structured OCR result with metadata."""

    def __init__(
        self,
        source_path: Path,
        text: str,
        confidence: float | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        """Initialize OCR result.

        Args:
            source_path: Path to the source document
            text: Extracted text
            confidence: OCR confidence score (0-100)
            metadata: Additional metadata
        """
        self.source_path = source_path
        self.text = text
        self.confidence = confidence
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source": str(self.source_path),
            "text": self.text,
            "confidence": self.confidence,
            "metadata": self.metadata,
        }


def _mean_confidence(ocr_data: dict[str, Any]) -> float:
    # Tesseract reports -1 for boxes without text
    confidences = [float(c) for c in ocr_data["conf"] if float(c) != -1]
    return sum(confidences) / len(confidences) if confidences else 0.0


class OCRProcessor:
    """Extract text from archive documents."""

    def __init__(self, languages: str = "ara+eng", tesseract_config: str = "--psm 3"):
        """Initialize OCR processor.

        Args:
            languages: Tesseract language codes (e.g. "ara+eng")
            tesseract_config: Tesseract configuration string
        """
        self.languages = languages
        self.tesseract_config = tesseract_config

    def supports(self, path: Path) -> bool:
        return Path(path).suffix.lower() in SUPPORTED_SUFFIXES

    def process_text_file(self, text_path: Path) -> OCRResult:
        """Read text from a plain text file."""
        with open(text_path, encoding="utf-8") as f:
            text = f.read()

        return OCRResult(
            source_path=text_path,
            text=text.strip(),
            confidence=100.0,  # Nothing was recognized, the text is exact
            metadata={"file_type": "text", "encoding": "utf-8"},
        )

    def _recognize(self, image: Image.Image) -> tuple[str, float]:
        ocr_data = pytesseract.image_to_data(
            image,
            lang=self.languages,
            config=self.tesseract_config,
            output_type=pytesseract.Output.DICT,
        )
        text = pytesseract.image_to_string(image, lang=self.languages, config=self.tesseract_config)
        return text.strip(), _mean_confidence(ocr_data)

    def process_image(self, image_path: Path) -> OCRResult:
        """Extract text from a single image."""
        with Image.open(image_path) as image:
            text, confidence = self._recognize(image)
            metadata = {
                "file_type": "image",
                "image_width": image.size[0],
                "image_height": image.size[1],
                "format": image.format,
            }
        return OCRResult(source_path=image_path, text=text, confidence=confidence, metadata=metadata)

    def process_pdf(self, pdf_path: Path, dpi: int = 300) -> OCRResult:
        """Extract text from every page of a PDF, joined in page order."""
        images = convert_from_path(pdf_path, dpi=dpi)

        texts = []
        confidences = []
        for image in images:
            text, confidence = self._recognize(image)
            texts.append(text)
            confidences.append(confidence)

        return OCRResult(
            source_path=pdf_path,
            text="\n\n".join(t for t in texts if t),
            confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            metadata={"file_type": "pdf", "total_pages": len(images), "dpi": dpi},
        )

    def process_document(self, doc_path: Path) -> OCRResult:
        """Extract text from a document (image, PDF or text file).

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If file type is not supported
        """
        doc_path = Path(doc_path)

        if not doc_path.exists():
            raise FileNotFoundError(f"Document not found: {doc_path}")

        suffix = doc_path.suffix.lower()
        if suffix == ".pdf":
            return self.process_pdf(doc_path)
        if suffix in IMAGE_SUFFIXES:
            return self.process_image(doc_path)
        if suffix == ".txt":
            return self.process_text_file(doc_path)

        raise ValueError(
            f"Unsupported file type: {suffix}. "
            f"Supported types: {', '.join(sorted(SUPPORTED_SUFFIXES))}"
        )
