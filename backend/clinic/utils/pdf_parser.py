"""PDF text extraction with optional OCR for knowledge base ingestion."""

import io
import logging

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from backend.clinic.errors import DocumentTextError

logger = logging.getLogger(__name__)


class PDFParsingError(DocumentTextError):
    """Raised when PDF parsing fails."""


def _ocr_page(page: "fitz.Page", dpi_scale: float) -> str:
    pix = page.get_pixmap(matrix=fitz.Matrix(dpi_scale, dpi_scale))
    img = Image.open(io.BytesIO(pix.tobytes("png")))
    return pytesseract.image_to_string(img, config="--psm 1")


def _ocr_embedded_images(document: "fitz.Document", page: "fitz.Page", page_number: int) -> list[str]:
    texts = []
    for img_index, img in enumerate(page.get_images()):
        try:
            base_image = document.extract_image(img[0])
            image = Image.open(io.BytesIO(base_image["image"]))
            img_text = pytesseract.image_to_string(image, config="--psm 3")
        except Exception as e:
            logger.warning(
                "pdf_image_ocr_failed",
                extra={"page": page_number, "image": img_index, "error": str(e)},
            )
            continue
        if img_text.strip():
            texts.append(f"[Image {img_index + 1} content]:\n{img_text.strip()}")
    return texts


def extract_text_from_pdf(
    content_bytes: bytes,
    use_ocr: bool = False,
    ocr_threshold: int = 50,
    ocr_dpi_scale: float = 2.0,
) -> str:
    """Extract text from PDF with optional OCR support.

    Native text is extracted per page. With OCR enabled, pages with fewer
    than ``ocr_threshold`` characters are rendered and OCR'd, and embedded
    images are OCR'd as well.

    Args:
        content_bytes: PDF file content as bytes
        use_ocr: Enable OCR for images and low-text pages
        ocr_threshold: Minimum characters before triggering OCR
        ocr_dpi_scale: DPI scaling factor for OCR quality (2.0 = 144dpi)

    Returns:
        Extracted text content with "--- Page N ---" markers

    Raises:
        PDFParsingError: If the PDF is empty, corrupted, or yields no text
    """
    if not content_bytes:
        raise PDFParsingError("Empty PDF content provided")

    try:
        pdf_document = fitz.open(stream=content_bytes, filetype="pdf")
    except Exception as e:
        raise PDFParsingError(f"Invalid or corrupted PDF file: {e}") from e

    text_content = []
    try:
        for page_index in range(pdf_document.page_count):
            page = pdf_document[page_index]
            page_number = page_index + 1
            text = page.get_text("text")
            native_len = len(text.strip())

            if use_ocr and native_len < ocr_threshold:
                try:
                    ocr_text = _ocr_page(page, ocr_dpi_scale)
                except Exception as e:
                    logger.warning(
                        "pdf_page_ocr_failed", extra={"page": page_number, "error": str(e)}
                    )
                else:
                    if len(ocr_text.strip()) > native_len:
                        text = ocr_text + "\n[OCR extracted]"

            if use_ocr:
                for image_text in _ocr_embedded_images(pdf_document, page, page_number):
                    text += f"\n\n{image_text}"

            if text.strip():
                text_content.append(f"--- Page {page_number} ---\n{text.strip()}")
    finally:
        pdf_document.close()

    if not text_content:
        raise PDFParsingError(
            "No text could be extracted from PDF. "
            "The document may be scanned or image-based; enable OCR or upload a text file."
        )

    return "\n\n".join(text_content)
