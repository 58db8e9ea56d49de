# scripts/debug_extract_words.py
from __future__ import annotations

import sys
from pathlib import Path

from residency_forms.tools.text_extract import extract_words


def main() -> None:
    if len(sys.argv) < 2:
        print("usage: python -m scripts.debug_extract_words <template.pdf> [page]")
        raise SystemExit(2)

    pdf_bytes = Path(sys.argv[1]).read_bytes()
    only_page = int(sys.argv[2]) if len(sys.argv) > 2 else None

    words = extract_words(pdf_bytes)
    print("WORDS COUNT:", len(words))

    # bottom-left coordinates, ready to paste into a placement file
    for w in words:
        if only_page is not None and w.page != only_page:
            continue
        print(f"[p{w.page}] x={w.x0:.1f} y={w.bottom_y:.1f} (top y={w.y0:.1f}) {w.text}")


if __name__ == "__main__":
    main()
