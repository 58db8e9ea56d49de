# residency_forms/placement/registry.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from residency_forms import settings
from residency_forms.errors import ConfigError
from residency_forms.fees import FeeTable
from residency_forms.placement.entries import DEFAULT_FONT, DocumentDescriptor, PlacementEntry
from residency_forms.stamping.fonts import register_fonts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChoiceItem:
    key: str
    label: str


@dataclass(frozen=True)
class TermConfig:
    """
    Everything that must change in lockstep when a term's template set changes:
    fee schedule, UI choice lists and per-document placements.
    """
    term: str
    label: str
    fees: FeeTable
    appliances: Tuple[ChoiceItem, ...]
    consents: Tuple[ChoiceItem, ...]
    documents: Tuple[DocumentDescriptor, ...]

    def document(self, code: str) -> DocumentDescriptor:
        c = (code or "").strip().upper()
        for d in self.documents:
            if d.code == c:
                return d
        raise ConfigError(f"No document {code!r} configured for term {self.term!r}")


def available_terms(directory: Optional[Path] = None) -> List[str]:
    d = directory or settings.placement_dir()
    if not d.exists():
        return []
    return sorted(p.stem for p in d.glob("*.json"))


def load_term(term: Optional[str] = None, directory: Optional[Path] = None) -> TermConfig:
    t = (term or settings.default_term()).strip().lower()
    d = directory or settings.placement_dir()
    return _load_term_cached(str(d.resolve()), t)


def placements_for(document_code: str, term: Optional[str] = None) -> Tuple[PlacementEntry, ...]:
    return load_term(term).document(document_code).placements


def document_descriptors(term: Optional[str] = None) -> Tuple[DocumentDescriptor, ...]:
    return load_term(term).documents


def clear_cache() -> None:
    _load_term_cached.cache_clear()


@lru_cache(maxsize=32)
def _load_term_cached(directory: str, term: str) -> TermConfig:
    path = Path(directory) / f"{term}.json"
    if not path.exists():
        raise ConfigError(f"Unknown term {term!r} (no {path.name} in {directory})")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path}: invalid JSON: {e}") from e

    # Term files may name TrueType fonts from FONT_DIR.
    register_fonts()

    cfg = term_from_json(term, raw, where=str(path))
    logger.info("Loaded placement config term=%s documents=%d", term, len(cfg.documents))
    return cfg


def term_from_json(term: str, j: Mapping[str, Any], *, where: str = "") -> TermConfig:
    where = where or term

    try:
        fees = FeeTable.from_json(term, j.get("fees") or {})
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{where}: bad fee table: {e}") from e

    default_font = str(j.get("font") or DEFAULT_FONT)

    documents: List[DocumentDescriptor] = []
    seen: set[str] = set()
    for i, dj in enumerate(j.get("documents") or []):
        code = str(dj.get("code") or "").strip().upper()
        template = str(dj.get("template") or "").strip()
        if not code or not template:
            raise ConfigError(f"{where}: document #{i} needs code and template")
        if not code.isalnum():
            raise ConfigError(f"{where}: document code {code!r} must be alphanumeric")
        if code in seen:
            raise ConfigError(f"{where}: duplicate document code {code!r}")
        seen.add(code)

        placements = tuple(
            PlacementEntry.from_json(pj, where=f"{where}:{code}", default_font=default_font)
            for pj in (dj.get("placements") or [])
        )
        documents.append(
            DocumentDescriptor(
                code=code,
                title=str(dj.get("title") or code),
                template=template,
                placements=placements,
            )
        )

    if not documents:
        raise ConfigError(f"{where}: no documents configured")

    return TermConfig(
        term=term,
        label=str(j.get("label") or term),
        fees=fees,
        appliances=_choices(j.get("appliances")),
        consents=_choices(j.get("consents")),
        documents=tuple(documents),
    )


def _choices(raw: Any) -> Tuple[ChoiceItem, ...]:
    out: List[ChoiceItem] = []
    for it in raw or []:
        if isinstance(it, str):
            out.append(ChoiceItem(key=it, label=it))
        else:
            out.append(ChoiceItem(key=str(it["key"]), label=str(it.get("label") or it["key"])))
    return tuple(out)
