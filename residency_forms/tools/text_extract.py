# residency_forms/tools/text_extract.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List

import fitz  # PyMuPDF


@dataclass
class Word:
    page: int
    x0: float
    y0: float
    x1: float
    y1: float
    text: str
    page_height: float

    @property
    def bottom_y(self) -> float:
        """y1 converted to bottom-left PDF coordinates (what placements use)."""
        return self.page_height - self.y1

    @property
    def center_x(self) -> float:
        return (self.x0 + self.x1) / 2.0


def extract_words(pdf_bytes: bytes) -> List[Word]:
    """
    Every word token with its box, PyMuPDF top-left coordinates.
    Used to calibrate placements against a real template and to check
    where stamped text actually landed.
    """
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    out: List[Word] = []

    try:
        for pno in range(doc.page_count):
            page = doc.load_page(pno)
            h = float(page.rect.height)

            # Each word item: (x0, y0, x1, y1, "word", block_no, line_no, word_no)
            for (x0, y0, x1, y1, w, _block, _line, _word) in page.get_text("words"):  # type: ignore
                w = (w or "").strip()
                if not w:
                    continue
                out.append(
                    Word(
                        page=pno,
                        x0=float(x0),
                        y0=float(y0),
                        x1=float(x1),
                        y1=float(y1),
                        text=w,
                        page_height=h,
                    )
                )
    finally:
        doc.close()

    return out
