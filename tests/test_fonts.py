import json
import shutil
from dataclasses import replace
from pathlib import Path

import pytest
import reportlab
from reportlab.pdfbase import pdfmetrics

from residency_forms.errors import ConfigError, UnencodableTextError
from residency_forms.placement.entries import PlacementEntry
from residency_forms.placement.registry import load_term
from residency_forms.stamping.engine import plan_stamp, stamp
from residency_forms.stamping.fonts import missing_glyphs, register_fonts

from pdf_fixtures import make_template_pdf, page_words

LETTER = (612.0, 792.0)
VERA = Path(reportlab.__file__).parent / "fonts" / "Vera.ttf"
DEJAVU_CANDIDATES = [
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
]


@pytest.fixture
def vera_dir(tmp_path, monkeypatch):
    d = tmp_path / "fonts"
    d.mkdir()
    shutil.copy(VERA, d / "Vera.ttf")
    (d / "README.txt").write_text("not a font")
    monkeypatch.setenv("FONT_DIR", str(d))
    return d


def _name_placement(font="Helvetica"):
    return PlacementEntry(field="student_full_name", page=0, x=100, y=600, font=font)


def test_latin1_name_survives_standard_font(record):
    rec = replace(record, student_first_name="José", student_last_name="Muñoz")
    out = stamp(make_template_pdf(1), [_name_placement()], rec)
    words = page_words(out, 0)
    assert "José" in words
    assert "Muñoz" in words


def test_vietnamese_name_is_rejected_for_standard_font(record):
    rec = replace(record, student_first_name="Trần", student_last_name="Nguyễn")
    with pytest.raises(UnencodableTextError) as ei:
        plan_stamp([_name_placement()], rec, [LETTER])
    assert ei.value.field == "student_full_name"
    assert ei.value.chars == ["ầ", "ễ"]
    assert ei.value.missing == []


def test_cjk_is_rejected_for_standard_font(record):
    rec = replace(record, student_last_name="Nguyễn 李")
    with pytest.raises(UnencodableTextError):
        stamp(make_template_pdf(1), [_name_placement()], rec)


def test_register_fonts_from_font_dir(vera_dir):
    assert register_fonts() == ["Vera"]
    assert "Vera" in pdfmetrics.getRegisteredFontNames()


def test_register_fonts_without_font_dir(monkeypatch):
    monkeypatch.delenv("FONT_DIR", raising=False)
    assert register_fonts() == []


def test_register_fonts_bad_dir(tmp_path):
    with pytest.raises(ConfigError):
        register_fonts(tmp_path / "missing")


def test_registered_truetype_font_stamps_text_intact(vera_dir, record):
    register_fonts()
    rec = replace(record, student_first_name="Zoë", student_last_name="Muñoz")
    out = stamp(make_template_pdf(1), [_name_placement("Vera")], rec)
    words = page_words(out, 0)
    assert "Zoë" in words
    assert "Muñoz" in words


def test_truetype_font_checks_its_own_glyphs(vera_dir):
    register_fonts()
    assert missing_glyphs("Muñoz", "Vera") == []
    assert missing_glyphs("Trần", "Vera") == ["ầ"]


def test_unicode_truetype_font_stamps_vietnamese_name(tmp_path, monkeypatch, record):
    src = next((p for p in DEJAVU_CANDIDATES if p.exists()), None)
    if src is None:
        pytest.skip("DejaVuSans.ttf not installed")
    d = tmp_path / "fonts"
    d.mkdir()
    shutil.copy(src, d / "DejaVuSans.ttf")
    monkeypatch.setenv("FONT_DIR", str(d))
    register_fonts()

    rec = replace(record, student_first_name="Trần", student_last_name="Nguyễn")
    out = stamp(make_template_pdf(1), [_name_placement("DejaVuSans")], rec)
    words = page_words(out, 0)
    assert "Trần" in words
    assert "Nguyễn" in words


def test_term_font_applies_to_placements_and_is_registered_on_load(vera_dir, tmp_path, monkeypatch):
    terms = tmp_path / "terms"
    terms.mkdir()
    (terms / "custom.json").write_text(
        json.dumps(
            {
                "font": "Vera",
                "documents": [
                    {
                        "code": "ADF",
                        "template": "custom/adf.pdf",
                        "placements": [
                            {"field": "room", "page": 0, "x": 10, "y": 10},
                            {"field": "student_number", "page": 0, "x": 10, "y": 30, "font": "Helvetica"},
                        ],
                    }
                ],
            }
        )
    )
    monkeypatch.setenv("PLACEMENT_DIR", str(terms))

    cfg = load_term("custom")
    assert [p.font for p in cfg.document("ADF").placements] == ["Vera", "Helvetica"]
    assert "Vera" in pdfmetrics.getRegisteredFontNames()
