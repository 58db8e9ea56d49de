import io

import fitz  # PyMuPDF
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from residency_forms.tools.text_extract import extract_words


def make_template_pdf(pages: int, pagesize=letter) -> bytes:
    """Blank stand-in for a real template: a small footer marker on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize, invariant=1)
    for i in range(pages):
        c.setFont("Helvetica", 6)
        c.drawString(20, 20, f"template-page-{i}")
        c.showPage()
    c.save()
    return buf.getvalue()


def find_words(pdf_bytes: bytes, text: str, page=None):
    return [
        w for w in extract_words(pdf_bytes)
        if w.text == text and (page is None or w.page == page)
    ]


def page_words(pdf_bytes: bytes, page: int):
    return [w.text for w in extract_words(pdf_bytes) if w.page == page]


def image_count(pdf_bytes: bytes, page: int) -> int:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        return len(doc.load_page(page).get_images(full=True))
    finally:
        doc.close()
