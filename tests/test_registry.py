import json

import pytest

from residency_forms.errors import ConfigError
from residency_forms.placement import registry
from residency_forms.placement.entries import (
    ANCHOR_CENTER,
    KIND_CHECKBOX,
    KIND_IMAGE,
    ORIGIN_TOP,
    PlacementEntry,
)

EXPECTED_ORDER = ("ADF", "TNC", "RA", "DPP", "CF")


@pytest.mark.parametrize("term", ["regular", "intersession"])
def test_shipped_terms_load_in_declared_order(term):
    cfg = registry.load_term(term)
    assert tuple(d.code for d in cfg.documents) == EXPECTED_ORDER


def test_available_terms():
    assert registry.available_terms() == ["intersession", "regular"]


@pytest.mark.parametrize("term", ["regular", "intersession"])
def test_every_ui_appliance_has_a_fee(term):
    cfg = registry.load_term(term)
    for item in cfg.appliances:
        assert cfg.fees.fee_for(item.key) > 0


@pytest.mark.parametrize("term", ["regular", "intersession"])
def test_every_appliance_checkbox_is_a_ui_choice(term):
    cfg = registry.load_term(term)
    keys = {a.key for a in cfg.appliances} | {c.key for c in cfg.consents}
    for d in cfg.documents:
        for p in d.placements:
            if p.kind == KIND_CHECKBOX:
                assert p.checkbox_target[1] in keys


def test_terms_have_different_fee_schedules():
    regular = registry.load_term("regular").fees
    intersession = registry.load_term("intersession").fees
    assert regular.fee_for("hairDryer") != intersession.fee_for("hairDryer")


def test_placements_for_is_a_pure_lookup():
    first = registry.placements_for("ra", "regular")
    again = registry.placements_for("RA", "regular")
    assert first is again
    assert any(p.kind == KIND_IMAGE and p.page == 1 for p in first)


def test_regular_tnc_uses_top_origin_coordinates():
    tnc = registry.placements_for("TNC", "regular")
    assert any(p.origin == ORIGIN_TOP for p in tnc)


def test_unknown_term_and_document():
    with pytest.raises(ConfigError):
        registry.load_term("summer-1999")
    with pytest.raises(ConfigError):
        registry.load_term("regular").document("XYZ")


def test_default_term_comes_from_env(monkeypatch):
    monkeypatch.setenv("DEFAULT_TERM", "intersession")
    assert registry.load_term().term == "intersession"


def _write_term(tmp_path, doc_placements, **extra):
    payload = {
        "label": "Test",
        "fees": {"hairDryer": 100},
        "documents": [{"code": "ADF", "template": "adf.pdf", "placements": doc_placements}],
    }
    payload.update(extra)
    (tmp_path / "custom.json").write_text(json.dumps(payload), encoding="utf-8")


def test_custom_placement_dir(tmp_path, monkeypatch):
    _write_term(
        tmp_path,
        [
            {"field": "student_number", "page": 0, "x": 10, "y": 20, "anchor": "center", "font_size": 14},
            {"field": "appliance:hairDryer", "page": 0, "x": 30, "y": 40},
            {"field": "signature", "page": 0, "x": 50, "y": 60},
        ],
    )
    monkeypatch.setenv("PLACEMENT_DIR", str(tmp_path))
    cfg = registry.load_term("custom")
    text, box, sig = cfg.document("ADF").placements
    assert text == PlacementEntry(field="student_number", page=0, x=10, y=20, anchor=ANCHOR_CENTER, font_size=14)
    assert box.kind == KIND_CHECKBOX
    assert sig.kind == KIND_IMAGE and (sig.width, sig.height) == (120, 40)


@pytest.mark.parametrize(
    "placement",
    [
        {"field": "shoe_size", "page": 0, "x": 1, "y": 1},
        {"field": "student_number", "page": 0, "x": 1, "y": 1, "anchor": "right"},
        {"field": "student_number", "page": 0, "x": 1, "y": 1, "origin": "middle"},
        {"field": "student_number", "page": -1, "x": 1, "y": 1},
        {"field": "student_number", "page": 0, "x": 1},
        {"field": "student_number", "page": 0, "x": 1, "y": 1, "kind": "image"},
        {"field": "checkbox-without-colon", "page": 0, "x": 1, "y": 1, "kind": "checkbox"},
    ],
)
def test_malformed_placements_fail_at_load(tmp_path, monkeypatch, placement):
    _write_term(tmp_path, [placement])
    monkeypatch.setenv("PLACEMENT_DIR", str(tmp_path))
    with pytest.raises(ConfigError):
        registry.load_term("custom")


def test_non_positive_fee_fails_at_load(tmp_path, monkeypatch):
    _write_term(tmp_path, [], fees={"hairDryer": -1})
    monkeypatch.setenv("PLACEMENT_DIR", str(tmp_path))
    with pytest.raises(ConfigError):
        registry.load_term("custom")
