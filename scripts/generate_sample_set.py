# scripts/generate_sample_set.py
from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

from residency_forms.services.applicant_editor import json_to_applicant
from residency_forms.services.document_set import generate_all

SAMPLE_APPLICANT = {
    "studentFirstName": "Juan",
    "studentLastName": "Dela Cruz",
    "studentNumber": "2024-01234",
    "studentDOB": "2005-03-14",
    "building": "Kalayaan",
    "studentRoom": "214",
    "studentEmail": "jdelacruz@up.edu.ph",
    "parentFirstName": "Maria",
    "parentLastName": "Dela Cruz",
    "parentContact": "0917 555 0101",
    "parentAddress": "12 Mabini St, Quezon City",
    "parentRelation": "Mother",
    "parentEmail": "maria.delacruz@example.com",
    "altEmergencyName": "Jose Rizal",
    "altEmergencyContact": "0918 555 0202",
    "appliances": ["hairDryer", "airFryer"],
    "otherAppliances": "Desk lamp",
    "otherApplianceCost": "150",
    "consents": ["medicalEmergency"],
}


def main() -> None:
    term = sys.argv[1] if len(sys.argv) > 1 else None
    out_dir = Path("out")
    out_dir.mkdir(exist_ok=True)

    record = json_to_applicant(SAMPLE_APPLICANT, strict=True, today=date.today())
    result = generate_all(record, term=term)

    for doc in result.documents:
        path = out_dir / doc.filename
        path.write_bytes(doc.data)
        print(f"[OK] wrote {path}")

    for f in result.failures:
        print(f"[FAIL] {f.code}: {f.error_type}: {f.reason}")

    print("\nDone. Open the PDFs in /out to review.")


if __name__ == "__main__":
    main()
