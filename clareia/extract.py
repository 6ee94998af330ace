# clareia/extract.py
import io
import logging
from typing import Callable, List, Optional

import pdfplumber
import pytesseract
from pdf2image import convert_from_bytes
from PIL import Image
from pypdf import PdfReader

from .config import Settings
from .schema import UploadedDocument

logger = logging.getLogger(__name__)

# (content, media_type) -> text
DocumentReader = Callable[[bytes, str], str]

PDF_MEDIA_TYPE = "application/pdf"


def pdf_placeholder(filename: str) -> str:
    return f"Extrato em PDF enviado: {filename}. O conteúdo textual do documento não está disponível."


def image_placeholder(filename: str) -> str:
    return f"Imagem de extrato enviada: {filename}. O conteúdo textual da imagem não está disponível."


def text_placeholder(filename: str) -> str:
    return f"Arquivo de extrato enviado: {filename}. O arquivo não contém texto legível."


# -------- Optional readers backed by pdfplumber / pypdf / tesseract --------

def _extract_text_by_page(raw_bytes: bytes) -> List[str]:
    pages_text: List[str] = []
    try:
        with pdfplumber.open(io.BytesIO(raw_bytes)) as pdf:
            for p in pdf.pages:
                pages_text.append((p.extract_text() or "").strip())
    except Exception:
        # Fallback: pypdf (robust but less table-aware)
        reader = PdfReader(io.BytesIO(raw_bytes))
        if reader.is_encrypted:
            raise ValueError("PDF is password-protected.")
        pages_text = [(page.extract_text() or "").strip() for page in reader.pages]
    return pages_text


def _needs_ocr(pages_text: List[str]) -> bool:
    if not pages_text:
        return False
    empty_ratio = sum(1 for t in pages_text if not t) / float(len(pages_text))
    return empty_ratio > 0.6


def _ocr_pdf_pages(raw_bytes: bytes) -> List[str]:
    images = convert_from_bytes(raw_bytes, dpi=300)
    return [(pytesseract.image_to_string(img) or "").strip() for img in images]


def pdf_text_layer_reader(content: bytes, media_type: str) -> str:
    """
    Reads the PDF text layer page by page. When most pages come back empty
    (likely a scan), OCR is run and merged in page order.
    """
    if media_type != PDF_MEDIA_TYPE:
        return ""
    pages_text = _extract_text_by_page(content)
    if _needs_ocr(pages_text):
        ocr_pages = _ocr_pdf_pages(content)
        L = max(len(pages_text), len(ocr_pages))
        merged: List[str] = []
        for i in range(L):
            t = pages_text[i] if i < len(pages_text) else ""
            o = ocr_pages[i] if i < len(ocr_pages) else ""
            merged.append(t or o)
        pages_text = merged
    return "\n\n".join(
        f"--- PÁGINA {i + 1} ---\n{txt}" for i, txt in enumerate(pages_text) if txt
    )


def image_ocr_reader(content: bytes, media_type: str) -> str:
    if not media_type.startswith("image/"):
        return ""
    with Image.open(io.BytesIO(content)) as img:
        return (pytesseract.image_to_string(img) or "").strip()


def build_reader(settings: Settings) -> Optional[DocumentReader]:
    """Combine the readers enabled in settings; None keeps the placeholder behavior."""
    readers: List[DocumentReader] = []
    if settings.pdf_text_layer:
        readers.append(pdf_text_layer_reader)
    if settings.image_ocr:
        readers.append(image_ocr_reader)
    if not readers:
        return None

    def _read(content: bytes, media_type: str) -> str:
        for read in readers:
            text = read(content, media_type)
            if text.strip():
                return text
        return ""

    return _read


# -------- Text extraction entry point --------

def _read_with(reader: Optional[DocumentReader], document: UploadedDocument, media_type: str) -> str:
    if reader is None:
        return ""
    try:
        return reader(document.content, media_type) or ""
    except Exception as e:
        logger.warning(
            "Reader failed for %s (%s): %s; using placeholder",
            document.filename, media_type, type(e).__name__,
        )
        return ""


def extract_text(document: UploadedDocument, reader: Optional[DocumentReader] = None) -> str:
    """
    Text representation of an upload, chosen by its declared media type.
    Always returns a non-empty string.
    """
    media_type = (document.media_type or "").lower()

    if media_type == PDF_MEDIA_TYPE:
        text = _read_with(reader, document, media_type)
        return text if text.strip() else pdf_placeholder(document.filename)

    if media_type.startswith("image/"):
        text = _read_with(reader, document, media_type)
        return text if text.strip() else image_placeholder(document.filename)

    text = document.content.decode("utf-8", errors="replace")
    if not text.strip():
        return text_placeholder(document.filename)
    return text
