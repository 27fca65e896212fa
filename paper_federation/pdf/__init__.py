"""PDF acquisition pipeline."""

from .pipeline import PdfDocument, PdfRetriever
from .validation import extract_file_name, is_pdf_response

__all__ = ["PdfDocument", "PdfRetriever", "extract_file_name", "is_pdf_response"]
