# residency_forms/models.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date
from enum import Enum
from typing import FrozenSet, List, Optional

from residency_forms.errors import RecordValidationError

# Placeholders used when the student's identity is left blank (sample downloads).
PLACEHOLDER_STUDENT_NUMBER = "1234"
PLACEHOLDER_STUDENT_NAME = "Sample"


class Building(str, Enum):
    ACACIA = "Acacia"
    ILANG_ILANG = "Ilang-Ilang"
    KALAYAAN = "Kalayaan"
    MOLAVE = "Molave"
    YAKAL = "Yakal"

    @classmethod
    def parse(cls, raw: str | None) -> Optional["Building"]:
        s = str(raw or "").strip()
        if not s:
            return None
        for b in cls:
            if s.lower() in (b.value.lower(), b.name.lower()):
                return b
        raise RecordValidationError(
            f"Unknown building {s!r}; expected one of {', '.join(b.value for b in cls)}",
            missing=[],
        )


def _clean(s: str | None) -> str:
    return (s or "").replace("\u00a0", " ").replace("\x00", "").strip()


def _join_name(first: str, last: str) -> str:
    return " ".join(p for p in (first, last) if p)


@dataclass(frozen=True)
class ApplicantRecord:
    """
    Finalized, read-only submission. Built by ApplicantDraft.finalize();
    the stamping engine reads nothing else.
    """
    student_first_name: str = ""
    student_last_name: str = ""
    student_number: str = ""
    date_of_birth: Optional[date] = None
    building: Optional[Building] = None
    room: str = ""
    student_email: str = ""

    parent_first_name: str = ""
    parent_last_name: str = ""
    parent_contact: str = ""
    parent_alt_contact: str = ""
    parent_address: str = ""
    parent_relation: str = ""
    parent_email: str = ""

    alt_emergency_name: str = ""
    alt_emergency_contact: str = ""

    appliances: FrozenSet[str] = frozenset()
    other_appliances: str = ""
    other_appliance_cost: Optional[str] = None
    consents: FrozenSet[str] = frozenset()

    signature: Optional[bytes] = None
    submission_date: Optional[date] = None

    @property
    def student_full_name(self) -> str:
        return _join_name(self.student_first_name, self.student_last_name)

    @property
    def parent_full_name(self) -> str:
        return _join_name(self.parent_first_name, self.parent_last_name)

    @property
    def building_room(self) -> str:
        b = self.building.value if self.building else ""
        return " ".join(p for p in (b, self.room) if p)

    @property
    def has_signature(self) -> bool:
        return bool(self.signature)


REQUIRED_FIELDS = (
    "student_first_name",
    "student_last_name",
    "student_number",
    "date_of_birth",
    "building",
    "room",
    "student_email",
    "parent_first_name",
    "parent_last_name",
    "parent_contact",
    "parent_address",
    "parent_relation",
    "parent_email",
    "alt_emergency_name",
    "alt_emergency_contact",
    "submission_date",
)

_TEXT_FIELDS = {
    f.name
    for f in fields(ApplicantRecord)
    if f.name not in {"date_of_birth", "building", "appliances", "consents", "signature", "submission_date", "other_appliance_cost"}
}


@dataclass
class ApplicantDraft:
    """
    Mutable editing surface for the form. Each field edit mutates it in place;
    finalize() snapshots it into an ApplicantRecord.
    """
    values: dict = field(default_factory=dict)
    appliances: set = field(default_factory=set)
    consents: set = field(default_factory=set)
    signature: Optional[bytes] = None
    date_of_birth: Optional[date] = None
    submission_date: Optional[date] = None
    building: str = ""
    other_appliance_cost: Optional[str] = None

    def set_field(self, name: str, value) -> None:
        if name == "date_of_birth":
            self.date_of_birth = value
        elif name == "submission_date":
            self.submission_date = value
        elif name == "building":
            self.building = value.value if isinstance(value, Building) else (value or "")
        elif name == "other_appliance_cost":
            self.other_appliance_cost = None if value is None else str(value)
        elif name == "signature":
            self.signature = value or None
        elif name in _TEXT_FIELDS:
            self.values[name] = "" if value is None else str(value)
        else:
            raise KeyError(f"Unknown applicant field: {name}")

    def toggle_appliance(self, key: str) -> None:
        if key in self.appliances:
            self.appliances.discard(key)
        else:
            self.appliances.add(key)

    def toggle_consent(self, key: str) -> None:
        if key in self.consents:
            self.consents.discard(key)
        else:
            self.consents.add(key)

    def finalize(self, *, strict: bool = True) -> ApplicantRecord:
        """
        strict=True enforces every required field. strict=False is the
        sample-download path: incomplete records are allowed, but an unknown
        building is still rejected.

        Placeholder substitution for the student's number/name happens here
        and only here.
        """
        text = {k: _clean(self.values.get(k)) for k in _TEXT_FIELDS}
        record = ApplicantRecord(
            **text,
            date_of_birth=self.date_of_birth,
            building=Building.parse(self.building),
            appliances=frozenset(k for k in (_clean(a) for a in self.appliances) if k),
            consents=frozenset(k for k in (_clean(c) for c in self.consents) if k),
            other_appliance_cost=(
                _clean(self.other_appliance_cost) if self.other_appliance_cost is not None else None
            ),
            signature=self.signature or None,
            submission_date=self.submission_date,
        )

        if strict:
            missing = missing_required_fields(record)
            if missing:
                raise RecordValidationError(
                    f"Missing required field(s): {', '.join(missing)}", missing=missing
                )

        return apply_placeholders(record)


def missing_required_fields(record: ApplicantRecord) -> List[str]:
    missing: List[str] = []
    for name in REQUIRED_FIELDS:
        v = getattr(record, name)
        if v is None or (isinstance(v, str) and not v):
            missing.append(name)
    return missing


def apply_placeholders(record: ApplicantRecord) -> ApplicantRecord:
    changes = {}
    if not record.student_number:
        changes["student_number"] = PLACEHOLDER_STUDENT_NUMBER
    if not record.student_first_name and not record.student_last_name:
        changes["student_first_name"] = PLACEHOLDER_STUDENT_NAME
    return replace(record, **changes) if changes else record
