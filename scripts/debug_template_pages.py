# scripts/debug_template_pages.py
from __future__ import annotations

import io
import sys

from pypdf import PdfReader

from residency_forms.errors import TemplateFetchError
from residency_forms.placement.registry import load_term
from residency_forms.storage.template_store import get_template_store


def main() -> None:
    term = sys.argv[1] if len(sys.argv) > 1 else None
    cfg = load_term(term)
    store = get_template_store()

    print(f"Term: {cfg.term} ({cfg.label})")
    for d in cfg.documents:
        try:
            r = PdfReader(io.BytesIO(store.fetch(d.template)))
        except TemplateFetchError as e:
            print(f"[MISSING] {d.code}: {e}")
            continue

        pages = len(r.pages)
        needed = max((p.page for p in d.placements), default=-1) + 1
        status = "OK" if needed <= pages else "PAGE MISMATCH"
        print(f"[{status}] {d.code}: {pages} page(s), placements need {needed}")
        for i, p in enumerate(r.pages):
            print(f"    page {i}: {float(p.mediabox.width):.0f} x {float(p.mediabox.height):.0f}")


if __name__ == "__main__":
    main()
