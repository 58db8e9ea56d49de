# residency_forms/api_main.py
from __future__ import annotations

import base64
from datetime import date
from urllib.parse import quote

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from residency_forms import settings
from residency_forms.errors import (
    ConfigError,
    PageMismatchError,
    RecordValidationError,
    StampingError,
    TemplateFetchError,
)
from residency_forms.fees import money_str, total_fee
from residency_forms.models import ApplicantRecord
from residency_forms.placement.registry import TermConfig, available_terms, load_term
from residency_forms.services.applicant_editor import applicant_to_json, json_to_applicant
from residency_forms.services.document_set import generate_all, generate_one

settings.configure_logging()

app = FastAPI(title="URH Residency Forms API")

# CORS for local frontend dev (Next/Vite/etc.)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _term_or_404(term: str) -> TermConfig:
    try:
        return load_term(term)
    except ConfigError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _applicant_or_422(body: dict, sample: bool) -> ApplicantRecord:
    applicant = body.get("applicant")
    if not isinstance(applicant, dict):
        raise HTTPException(status_code=400, detail="Missing applicant")
    try:
        return json_to_applicant(applicant, strict=not sample, today=date.today())
    except RecordValidationError as e:
        raise _validation_http_error(e)


def _validation_http_error(e: RecordValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail={"error": str(e), "missing": e.missing})


def _stamping_http_error(e: StampingError) -> HTTPException:
    if isinstance(e, TemplateFetchError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, PageMismatchError):
        return HTTPException(
            status_code=409,
            detail={"error": str(e), "page": e.page, "page_count": e.page_count},
        )
    return HTTPException(status_code=409, detail=str(e))


@app.get("/")
def root():
    return {"ok": True, "try": ["/docs", "/api/health", "/api/terms"]}


@app.get("/api/health")
def health():
    return {"ok": True}


@app.get("/api/terms")
def list_terms():
    items = []
    for t in available_terms():
        cfg = load_term(t)
        items.append({"term": cfg.term, "label": cfg.label})
    return {"items": items, "default": settings.default_term()}


@app.get("/api/terms/{term}")
def get_term(term: str):
    cfg = _term_or_404(term)
    return {
        "term": cfg.term,
        "label": cfg.label,
        "appliances": [
            {"key": a.key, "label": a.label, "fee": cfg.fees.fee_for(a.key)} for a in cfg.appliances
        ],
        "consents": [{"key": c.key, "label": c.label} for c in cfg.consents],
        "documents": [{"code": d.code, "title": d.title} for d in cfg.documents],
    }


@app.post("/api/terms/{term}/fees/total")
def compute_fee_total(term: str, body: dict = Body(default={})):
    cfg = _term_or_404(term)
    selected = body.get("appliances") or []
    if not isinstance(selected, list):
        raise HTTPException(status_code=400, detail="appliances must be a list")

    total = total_fee([str(k) for k in selected], body.get("other_appliance_cost"), cfg.fees)
    return {"term": cfg.term, "total": str(total), "formatted": money_str(total)}


# ------------------------------------------------------------
# Document generation
# ------------------------------------------------------------
@app.post("/api/terms/{term}/documents")
def generate_documents(
    term: str,
    body: dict = Body(...),
    sample: bool = Query(default=False),
):
    """
    body = { "applicant": { ...form fields... } }
    Stamps every document of the term in order. A failed document is reported
    in "failures"; the others are still returned. "applicant" echoes the
    finalized record (placeholders applied).
    """
    cfg = _term_or_404(term)
    record = _applicant_or_422(body, sample)

    try:
        result = generate_all(record, term=cfg.term)
    except RecordValidationError as e:
        raise _validation_http_error(e)

    return {
        "term": result.term,
        "applicant": applicant_to_json(record),
        "documents": [
            {
                "code": d.code,
                "filename": d.filename,
                "content_base64": base64.b64encode(d.data).decode("ascii"),
            }
            for d in result.documents
        ],
        "failures": [
            {"code": f.code, "filename": f.filename, "error": f.reason, "type": f.error_type}
            for f in result.failures
        ],
    }


@app.post("/api/terms/{term}/documents/{code}")
def download_document(
    term: str,
    code: str,
    body: dict = Body(...),
    sample: bool = Query(default=False),
):
    cfg = _term_or_404(term)
    try:
        cfg.document(code)
    except ConfigError as e:
        raise HTTPException(status_code=404, detail=str(e))

    record = _applicant_or_422(body, sample)

    try:
        doc = generate_one(record, code, term=cfg.term)
    except RecordValidationError as e:
        raise _validation_http_error(e)
    except StampingError as e:
        raise _stamping_http_error(e)

    # filename*= for utf-8 safety
    disp = f"attachment; filename*=UTF-8''{quote(doc.filename)}"
    return Response(
        content=doc.data,
        media_type="application/pdf",
        headers={"Content-Disposition": disp},
    )
