# residency_forms/stamping/engine.py
from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from residency_forms import settings
from residency_forms.errors import (
    PageMismatchError,
    PlacementError,
    TemplateFormatError,
    UnencodableTextError,
)
from residency_forms.fees import FeeTable, money_str, parse_number_or_zero, total_fee
from residency_forms.models import ApplicantRecord
from residency_forms.placement.entries import (
    ANCHOR_CENTER,
    KIND_CHECKBOX,
    KIND_IMAGE,
    ORIGIN_TOP,
    PlacementEntry,
)
from residency_forms.stamping.fonts import missing_glyphs

CHECK_GLYPH = "/"

OP_TEXT = "text"
OP_IMAGE = "image"


@dataclass(frozen=True)
class DrawOp:
    """One recorded draw instruction, in bottom-left PDF points."""
    page: int
    kind: str
    field: str
    x: float
    y: float
    text: str = ""
    font: str = ""
    font_size: float = 0.0
    width: float = 0.0
    height: float = 0.0
    image: Optional[bytes] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class StampResult:
    data: bytes
    ops: Tuple[DrawOp, ...]


PageSize = Tuple[float, float]


# =========================
# Field values
# =========================

def _fmt_date(d: Optional[date]) -> str:
    return d.strftime(settings.DATE_FORMAT) if d else ""


def resolve_text(name: str, record: ApplicantRecord, fees: Optional[FeeTable]) -> str:
    if name in ("date_of_birth", "submission_date"):
        return _fmt_date(getattr(record, name))

    if name == "building":
        return record.building.value if record.building else ""

    if name == "other_appliance_cost":
        cost = parse_number_or_zero(record.other_appliance_cost)
        return money_str(cost) if cost > 0 else ""

    if name == "fee_total":
        if fees is None:
            raise PlacementError("fee_total is placed but no fee table was supplied")
        return money_str(total_fee(record.appliances, record.other_appliance_cost, fees))

    val = getattr(record, name)
    return val if isinstance(val, str) else str(val or "")


def _is_checked(entry: PlacementEntry, record: ApplicantRecord) -> bool:
    group, key = entry.checkbox_target
    selected = record.appliances if group == "appliance" else record.consents
    return key in selected


# =========================
# Planning (pure)
# =========================

def plan_stamp(
    placements: Sequence[PlacementEntry],
    record: ApplicantRecord,
    page_sizes: Sequence[PageSize],
    fees: Optional[FeeTable] = None,
) -> List[DrawOp]:
    """
    Resolve every placement against the record and the loaded page geometry.

    Raises PageMismatchError when a placement targets a page the template does
    not have, PlacementError when an anchor falls outside its page.
    A value its font cannot draw raises UnencodableTextError.
    """
    ops: List[DrawOp] = []
    page_count = len(page_sizes)

    for entry in placements:
        if entry.page >= page_count:
            raise PageMismatchError(page=entry.page, page_count=page_count, field=entry.field)

        w, h = page_sizes[entry.page]
        x = entry.x
        y = (h - entry.y) if entry.origin == ORIGIN_TOP else entry.y

        if not (0 <= x <= w and 0 <= y <= h):
            raise PlacementError(
                f"Anchor ({x:.1f}, {y:.1f}) for {entry.field!r} is outside page {entry.page} ({w:.0f}x{h:.0f})"
            )

        if entry.kind == KIND_IMAGE:
            # No signature captured: leave the line blank.
            if not record.has_signature:
                continue
            ops.append(
                DrawOp(
                    page=entry.page,
                    kind=OP_IMAGE,
                    field=entry.field,
                    x=x,
                    y=y,
                    width=entry.width,
                    height=entry.height,
                    image=record.signature,
                )
            )
            continue

        if entry.kind == KIND_CHECKBOX:
            if not _is_checked(entry, record):
                continue
            text = CHECK_GLYPH
        else:
            text = resolve_text(entry.field, record, fees)
            if not text:
                continue

        try:
            pdfmetrics.getFont(entry.font)
        except KeyError as e:
            raise PlacementError(f"Font {entry.font!r} for {entry.field!r} is not registered") from e

        bad = missing_glyphs(text, entry.font)
        if bad:
            raise UnencodableTextError(entry.field, entry.font, bad)

        if entry.anchor == ANCHOR_CENTER:
            x = x - stringWidth(text, entry.font, entry.font_size) / 2.0

        ops.append(
            DrawOp(
                page=entry.page,
                kind=OP_TEXT,
                field=entry.field,
                x=x,
                y=y,
                text=text,
                font=entry.font,
                font_size=entry.font_size,
            )
        )

    return ops


# =========================
# Rendering
# =========================

def _overlay_page(w: float, h: float, ops: Sequence[DrawOp]):
    overlay_buf = io.BytesIO()
    # invariant=1 pins reportlab's creation date and document id
    c = canvas.Canvas(overlay_buf, pagesize=(w, h), invariant=1)

    for op in ops:
        if op.kind == OP_IMAGE:
            img = ImageReader(io.BytesIO(op.image or b""))
            c.drawImage(
                img,
                op.x,
                op.y,
                width=op.width,
                height=op.height,
                preserveAspectRatio=True,
                mask="auto",
            )
        else:
            c.setFont(op.font, op.font_size)
            c.drawString(op.x, op.y, op.text)

    c.save()
    overlay_buf.seek(0)
    return PdfReader(overlay_buf).pages[0]


def _load(document_bytes: bytes) -> PdfReader:
    try:
        return PdfReader(io.BytesIO(document_bytes))
    except PdfReadError as e:
        raise TemplateFormatError(f"Template is not a readable PDF: {e}") from e


def page_sizes_of(reader: PdfReader) -> List[PageSize]:
    return [(float(p.mediabox.width), float(p.mediabox.height)) for p in reader.pages]


def stamp_document(
    document_bytes: bytes,
    placements: Sequence[PlacementEntry],
    record: ApplicantRecord,
    *,
    fees: Optional[FeeTable] = None,
) -> StampResult:
    reader = _load(document_bytes)
    sizes = page_sizes_of(reader)
    ops = plan_stamp(placements, record, sizes, fees)

    by_page: Dict[int, List[DrawOp]] = {}
    for op in ops:
        by_page.setdefault(op.page, []).append(op)

    writer = PdfWriter(clone_from=reader)
    for idx, page_ops in sorted(by_page.items()):
        w, h = sizes[idx]
        writer.pages[idx].merge_page(_overlay_page(w, h, page_ops))

    out = io.BytesIO()
    writer.write(out)
    return StampResult(data=out.getvalue(), ops=tuple(ops))


def stamp(
    document_bytes: bytes,
    placements: Sequence[PlacementEntry],
    record: ApplicantRecord,
    *,
    fees: Optional[FeeTable] = None,
) -> bytes:
    return stamp_document(document_bytes, placements, record, fees=fees).data
