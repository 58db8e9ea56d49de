import io
import os
from datetime import date
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

# Force a predictable environment BEFORE importing the app modules.
os.environ.setdefault("TEMPLATE_SOURCE", "local")
os.environ.setdefault("DEFAULT_TERM", "regular")

from residency_forms.models import ApplicantRecord, Building  # noqa: E402
from residency_forms.placement import registry  # noqa: E402
from residency_forms.storage.template_store import LocalTemplateStore, reset_template_store  # noqa: E402

from pdf_fixtures import make_template_pdf  # noqa: E402

# pages per template file, per term
TEMPLATE_PAGES = {
    "regular": {"ADF": 1, "TNC": 2, "RA": 2, "DPP": 1, "CF": 1},
    "intersession": {"ADF": 1, "TNC": 1, "RA": 1, "DPP": 1, "CF": 1},
}


def write_term_templates(root: Path, term: str, pages_override: dict | None = None) -> None:
    cfg = registry.load_term(term)
    pages = dict(TEMPLATE_PAGES[term])
    pages.update(pages_override or {})
    for d in cfg.documents:
        path = root / d.template
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(make_template_pdf(pages[d.code]))


@pytest.fixture
def template_root(tmp_path):
    root = tmp_path / "templates"
    for term in TEMPLATE_PAGES:
        write_term_templates(root, term)
    return root


@pytest.fixture
def store(template_root):
    return LocalTemplateStore(template_root)


@pytest.fixture(autouse=True)
def _fresh_singletons():
    reset_template_store()
    yield
    reset_template_store()
    registry.clear_cache()


@pytest.fixture
def signature_png() -> bytes:
    img = Image.new("RGBA", (240, 80), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)
    draw.line([(10, 60), (80, 20), (150, 65), (230, 15)], fill=(0, 0, 0, 255), width=3)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def applicant_json():
    return {
        "studentFirstName": "Juan",
        "studentLastName": "Dela Cruz",
        "studentNumber": "2024-01234",
        "studentDOB": "2005-03-14",
        "building": "Kalayaan",
        "studentRoom": "214",
        "studentEmail": "jdelacruz@example.edu",
        "parentFirstName": "Maria",
        "parentLastName": "Dela Cruz",
        "parentContact": "09175550101",
        "parentAltContact": "",
        "parentAddress": "12 Mabini St, Quezon City",
        "parentRelation": "Mother",
        "parentEmail": "maria@example.com",
        "altEmergencyName": "Jose Santos",
        "altEmergencyContact": "09185550202",
        "appliances": ["hairDryer", "airFryer"],
        "otherAppliances": "Desk lamp",
        "otherApplianceCost": "",
        "consents": ["medicalEmergency"],
        "submissionDate": "2026-06-01",
    }


@pytest.fixture
def record() -> ApplicantRecord:
    return ApplicantRecord(
        student_first_name="Juan",
        student_last_name="Dela Cruz",
        student_number="2024-01234",
        date_of_birth=date(2005, 3, 14),
        building=Building.KALAYAAN,
        room="214",
        student_email="jdelacruz@example.edu",
        parent_first_name="Maria",
        parent_last_name="Dela Cruz",
        parent_contact="09175550101",
        parent_address="12 Mabini St, Quezon City",
        parent_relation="Mother",
        parent_email="maria@example.com",
        alt_emergency_name="Jose Santos",
        alt_emergency_contact="09185550202",
        appliances=frozenset({"hairDryer", "airFryer"}),
        consents=frozenset({"medicalEmergency"}),
        submission_date=date(2026, 6, 1),
    )
