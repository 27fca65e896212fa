"""Heuristics for recognising PDF payloads and naming downloaded files."""

from urllib.parse import urlparse

MIN_PDF_SIZE = 100


def is_pdf_response(
    content_type: str | None,
    url: str,
    size: int,
    min_size: int = MIN_PDF_SIZE,
) -> bool:
    """Accept a payload as a PDF.

    Needs a PDF signal (declared MIME type or ``.pdf`` URL) and at least
    ``min_size`` bytes. Proxies often mislabel MIME types and many PDF URLs
    have no extension, so neither signal is enough on its own.
    """
    declared_pdf = "pdf" in (content_type or "").lower()
    pdf_url = urlparse(url).path.lower().endswith(".pdf") or url.lower().endswith(".pdf")
    return (declared_pdf or pdf_url) and size >= min_size


def extract_file_name(url: str, fallback_id: str) -> str:
    """Use the last URL path segment when it is a .pdf, else ``<id>.pdf``."""
    try:
        last_part = urlparse(url).path.rstrip("/").split("/")[-1]
    except ValueError:
        last_part = ""

    if last_part and last_part.lower().endswith(".pdf"):
        return last_part
    return f"{fallback_id}.pdf"
