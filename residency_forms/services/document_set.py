# residency_forms/services/document_set.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from residency_forms.errors import StampingError
from residency_forms.models import ApplicantRecord
from residency_forms.placement.entries import DocumentDescriptor
from residency_forms.placement.registry import TermConfig, load_term
from residency_forms.stamping.engine import stamp
from residency_forms.storage.template_store import TemplateStore, get_template_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedDocument:
    code: str
    filename: str
    data: bytes = field(repr=False)

    def __iter__(self) -> Iterator:
        # unpacks as (filename, data)
        return iter((self.filename, self.data))


@dataclass(frozen=True)
class DocumentFailure:
    code: str
    filename: str
    reason: str
    error_type: str


@dataclass
class DocumentSetResult:
    term: str
    documents: List[GeneratedDocument] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _generate(
    record: ApplicantRecord,
    descriptor: DocumentDescriptor,
    cfg: TermConfig,
    store: TemplateStore,
) -> GeneratedDocument:
    template_bytes = store.fetch(descriptor.template)
    data = stamp(template_bytes, descriptor.placements, record, fees=cfg.fees)
    return GeneratedDocument(code=descriptor.code, filename=descriptor.filename_for(record), data=data)


def generate_one(
    record: ApplicantRecord,
    code: str,
    *,
    term: Optional[str] = None,
    store: Optional[TemplateStore] = None,
) -> GeneratedDocument:
    """Single document; StampingError propagates to the caller."""
    cfg = load_term(term)
    descriptor = cfg.document(code)
    return _generate(record, descriptor, cfg, store or get_template_store())


def generate_all(
    record: ApplicantRecord,
    *,
    term: Optional[str] = None,
    store: Optional[TemplateStore] = None,
) -> DocumentSetResult:
    """
    Stamp every document of the term, strictly in declared order.

    A StampingError aborts only that document: it is logged and reported in
    result.failures, and the remaining documents still generate.
    """
    cfg = load_term(term)
    store = store or get_template_store()
    result = DocumentSetResult(term=cfg.term)

    for descriptor in cfg.documents:
        try:
            doc = _generate(record, descriptor, cfg, store)
        except StampingError as e:
            logger.warning(
                "Document %s (term=%s) failed: %s: %s",
                descriptor.code,
                cfg.term,
                type(e).__name__,
                e,
            )
            result.failures.append(
                DocumentFailure(
                    code=descriptor.code,
                    filename=descriptor.filename_for(record),
                    reason=str(e),
                    error_type=type(e).__name__,
                )
            )
            continue

        logger.info("Generated %s (%d bytes)", doc.filename, len(doc.data))
        result.documents.append(doc)

    return result
