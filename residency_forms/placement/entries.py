# residency_forms/placement/entries.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Tuple

from residency_forms.errors import ConfigError
from residency_forms.models import ApplicantRecord

KIND_TEXT = "text"
KIND_CHECKBOX = "checkbox"
KIND_IMAGE = "image"
KINDS = (KIND_TEXT, KIND_CHECKBOX, KIND_IMAGE)

ANCHOR_LEFT = "left"
ANCHOR_CENTER = "center"
ANCHORS = (ANCHOR_LEFT, ANCHOR_CENTER)

ORIGIN_BOTTOM = "bottom"
ORIGIN_TOP = "top"
ORIGINS = (ORIGIN_BOTTOM, ORIGIN_TOP)

DEFAULT_FONT = "Helvetica"
DEFAULT_FONT_SIZE = 10.0
SIGNATURE_W = 120.0
SIGNATURE_H = 40.0

TEXT_FIELDS = (
    "student_first_name",
    "student_last_name",
    "student_full_name",
    "student_number",
    "date_of_birth",
    "building",
    "room",
    "building_room",
    "student_email",
    "parent_first_name",
    "parent_last_name",
    "parent_full_name",
    "parent_contact",
    "parent_alt_contact",
    "parent_address",
    "parent_relation",
    "parent_email",
    "alt_emergency_name",
    "alt_emergency_contact",
    "other_appliances",
    "other_appliance_cost",
    "fee_total",
    "submission_date",
)

IMAGE_FIELDS = ("signature",)

# checkbox fields are "<set>:<key>", e.g. "appliance:hairDryer"
CHECKBOX_RE = re.compile(r"^(appliance|consent):(\S+)$")

FILENAME_UNSAFE_RE = re.compile(r"[\\/\x00-\x1f\x7f]+")


@dataclass(frozen=True)
class PlacementEntry:
    field: str
    page: int
    x: float
    y: float
    kind: str = KIND_TEXT
    anchor: str = ANCHOR_LEFT
    origin: str = ORIGIN_BOTTOM
    font: str = DEFAULT_FONT
    font_size: float = DEFAULT_FONT_SIZE
    width: float = SIGNATURE_W
    height: float = SIGNATURE_H

    @property
    def checkbox_target(self) -> Tuple[str, str]:
        m = CHECKBOX_RE.match(self.field)
        if not m:
            raise ConfigError(f"{self.field!r} is not a checkbox field")
        return m.group(1), m.group(2)

    @classmethod
    def from_json(
        cls, j: Mapping[str, Any], *, where: str = "", default_font: str = DEFAULT_FONT
    ) -> "PlacementEntry":
        try:
            name = str(j["field"])
            page = int(j["page"])
            x = float(j["x"])
            y = float(j["y"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"{where}: placement needs field/page/x/y ({e})") from e

        kind = str(j.get("kind") or _default_kind(name))
        anchor = str(j.get("anchor") or ANCHOR_LEFT)
        origin = str(j.get("origin") or ORIGIN_BOTTOM)

        if kind not in KINDS:
            raise ConfigError(f"{where}: unknown kind {kind!r} for {name!r}")
        if anchor not in ANCHORS:
            raise ConfigError(f"{where}: unknown anchor {anchor!r} for {name!r}")
        if origin not in ORIGINS:
            raise ConfigError(f"{where}: unknown origin {origin!r} for {name!r}")
        if page < 0:
            raise ConfigError(f"{where}: negative page index for {name!r}")

        if kind == KIND_TEXT and name not in TEXT_FIELDS:
            raise ConfigError(f"{where}: unknown text field {name!r}")
        if kind == KIND_IMAGE and name not in IMAGE_FIELDS:
            raise ConfigError(f"{where}: unknown image field {name!r}")
        if kind == KIND_CHECKBOX and not CHECKBOX_RE.match(name):
            raise ConfigError(f"{where}: checkbox field must look like 'appliance:<key>', got {name!r}")

        font_size = float(j.get("font_size") or DEFAULT_FONT_SIZE)
        if font_size <= 0:
            raise ConfigError(f"{where}: font_size must be positive for {name!r}")

        return cls(
            field=name,
            page=page,
            x=x,
            y=y,
            kind=kind,
            anchor=anchor,
            origin=origin,
            font=str(j.get("font") or default_font),
            font_size=font_size,
            width=float(j.get("width") or SIGNATURE_W),
            height=float(j.get("height") or SIGNATURE_H),
        )


def _default_kind(name: str) -> str:
    if name in IMAGE_FIELDS:
        return KIND_IMAGE
    if CHECKBOX_RE.match(name):
        return KIND_CHECKBOX
    return KIND_TEXT


@dataclass(frozen=True)
class DocumentDescriptor:
    code: str
    title: str
    template: str
    placements: Tuple[PlacementEntry, ...]

    def filename_for(self, record: ApplicantRecord) -> str:
        number = _filename_part(record.student_number)
        name = _filename_part(record.student_full_name)
        return f"{self.code}_{number}_{name}.pdf"


def _filename_part(s: str) -> str:
    return FILENAME_UNSAFE_RE.sub(" ", s or "").strip()
