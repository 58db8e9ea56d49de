# residency_forms/services/applicant_editor.py
from __future__ import annotations

import base64
import binascii
import io
import re
from datetime import date
from typing import Any, List, Optional

from PIL import Image, UnidentifiedImageError

from residency_forms.errors import RecordValidationError
from residency_forms.models import ApplicantDraft, ApplicantRecord

DATA_URL_RE = re.compile(r"^data:(image/(?:png|jpeg|jpg));base64,(.*)$", re.S | re.I)

# JSON (camelCase from the browser form) -> record field
JSON_TO_FIELD = {
    "studentFirstName": "student_first_name",
    "studentLastName": "student_last_name",
    "studentNumber": "student_number",
    "studentDOB": "date_of_birth",
    "building": "building",
    "studentRoom": "room",
    "studentEmail": "student_email",
    "parentFirstName": "parent_first_name",
    "parentLastName": "parent_last_name",
    "parentContact": "parent_contact",
    "parentAltContact": "parent_alt_contact",
    "parentAddress": "parent_address",
    "parentRelation": "parent_relation",
    "parentEmail": "parent_email",
    "altEmergencyName": "alt_emergency_name",
    "altEmergencyContact": "alt_emergency_contact",
    "otherAppliances": "other_appliances",
    "otherApplianceCost": "other_appliance_cost",
    "submissionDate": "submission_date",
}

DATE_FIELDS = {"date_of_birth", "submission_date"}


def _parse_date(raw: Any, field_name: str) -> Optional[date]:
    if raw is None or isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise RecordValidationError(f"{field_name}: expected YYYY-MM-DD, got {s!r}", missing=[]) from e


def decode_data_url(raw: Optional[str]) -> Optional[bytes]:
    """
    Signature pad output (toDataURL()). Empty/None means the pad was empty.
    """
    s = (raw or "").strip()
    if not s:
        return None

    m = DATA_URL_RE.match(s)
    if not m:
        raise RecordValidationError("signature must be a PNG or JPEG data URL", missing=[])

    try:
        data = base64.b64decode(m.group(2), validate=True)
    except (binascii.Error, ValueError) as e:
        raise RecordValidationError(f"signature is not valid base64: {e}", missing=[]) from e

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise RecordValidationError(f"signature image could not be read: {e}", missing=[]) from e

    return data


def _key_list(j: dict, key: str) -> List[str]:
    raw = j.get(key) or []
    if not isinstance(raw, list):
        raise RecordValidationError(f"{key} must be a list of keys", missing=[])
    return [str(k) for k in raw]


def json_to_draft(j: dict) -> ApplicantDraft:
    draft = ApplicantDraft()

    for key, name in JSON_TO_FIELD.items():
        if key not in j:
            continue
        val = j.get(key)
        if name in DATE_FIELDS:
            val = _parse_date(val, key)
        draft.set_field(name, val)

    for k in _key_list(j, "appliances"):
        draft.appliances.add(k)
    for k in _key_list(j, "consents"):
        draft.consents.add(k)

    draft.set_field("signature", decode_data_url(j.get("signature")))
    return draft


def json_to_applicant(j: dict, *, strict: bool = True, today: Optional[date] = None) -> ApplicantRecord:
    """
    strict=False is the sample-download path. `today` fills a missing
    submission date; callers pass it explicitly so stamping never samples the clock.
    """
    draft = json_to_draft(j or {})
    if draft.submission_date is None and today is not None:
        draft.set_field("submission_date", today)
    return draft.finalize(strict=strict)


def applicant_to_json(rec: ApplicantRecord) -> dict:
    field_to_json = {v: k for k, v in JSON_TO_FIELD.items()}
    out: dict = {}
    for name, key in field_to_json.items():
        val = getattr(rec, name)
        if isinstance(val, date):
            out[key] = val.isoformat()
        elif name == "building":
            out[key] = val.value if val else ""
        else:
            out[key] = val if val is not None else ""
    out["appliances"] = sorted(rec.appliances)
    out["consents"] = sorted(rec.consents)
    out["hasSignature"] = rec.has_signature
    return out
