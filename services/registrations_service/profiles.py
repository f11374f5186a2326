"""Deployment profiles.

The system has been deployed for a conference (church hierarchy and shirt
sizes) and for a youth group (group numbers and a new-member flag). A profile
lists the extra registrant fields a deployment collects, which of them admins
may edit and which the directory can filter on. Intake validation, the admin
edit draft and the directory filters all read from the active profile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from libs.common.config import get_settings
from services.registrations_service.models import GENDERS

SHIRT_SIZES = (
    "Small",
    "Medium",
    "Large",
    "Extra Large",
    "Double Extra Large",
    "Triple Extra Large",
    "Quadruple Extra Large",
)

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = "text"  # text | choice | int | bool
    required: bool = True
    choices: tuple[str, ...] = ()
    editable: bool = True
    filterable: bool = False

    def coerce(self, raw: str) -> Any:
        """Convert a query-string value to the column's Python type."""
        if self.kind == "int":
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"{self.label} must be a whole number") from None
        if self.kind == "bool":
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(f"{self.label} must be true or false")
        if self.choices and raw not in self.choices:
            raise ValueError(f"{self.label} must be one of: {', '.join(self.choices)}")
        return raw


IDENTITY_FIELDS = (
    FieldSpec("full_name", "Full name"),
    FieldSpec("email", "Email"),
    FieldSpec("phone", "Phone"),
    FieldSpec("gender", "Gender", kind="choice", choices=GENDERS, filterable=True),
)


@dataclass(frozen=True)
class DeploymentProfile:
    name: str
    title: str
    extra_fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return IDENTITY_FIELDS + self.extra_fields

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @property
    def editable_fields(self) -> list[str]:
        return [spec.name for spec in self.fields if spec.editable]

    @property
    def filterable_fields(self) -> list[str]:
        return [spec.name for spec in self.fields if spec.filterable]

    def missing_fields(self, data: dict[str, Any]) -> list[str]:
        """Return labels of required fields that are absent or blank."""
        missing = []
        for spec in self.fields:
            if not spec.required:
                continue
            value = data.get(spec.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(spec.label)
        return missing

    def invalid_choices(self, data: dict[str, Any]) -> list[str]:
        errors = []
        for spec in self.fields:
            value = data.get(spec.name)
            if spec.choices and value not in (None, "") and value not in spec.choices:
                errors.append(f"{spec.label} must be one of: {', '.join(spec.choices)}")
        return errors

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "fields": [
                {
                    "name": spec.name,
                    "label": spec.label,
                    "kind": spec.kind,
                    "required": spec.required,
                    "choices": list(spec.choices),
                    "editable": spec.editable,
                    "filterable": spec.filterable,
                }
                for spec in self.fields
            ],
            "editable_fields": self.editable_fields,
            "filterable_fields": self.filterable_fields,
        }


CONFERENCE = DeploymentProfile(
    name="conference",
    title="Youth Conference Registration",
    extra_fields=(
        FieldSpec("metropolitan", "Metropolitan", filterable=True),
        FieldSpec("area", "Area", filterable=True),
        FieldSpec("district", "District", filterable=True),
        FieldSpec("assembly", "Assembly", filterable=True),
        FieldSpec(
            "shirt_size", "Shirt size", kind="choice", choices=SHIRT_SIZES,
            filterable=True,
        ),
        FieldSpec("goals", "Goals", editable=False),
    ),
)

YOUTH = DeploymentProfile(
    name="youth",
    title="Youth Group Directory",
    extra_fields=(
        FieldSpec("group_number", "Group number", kind="int", filterable=True),
        FieldSpec(
            "is_new_member", "New member", kind="bool", required=False,
            filterable=True,
        ),
    ),
)

PROFILES = {profile.name: profile for profile in (CONFERENCE, YOUTH)}


def get_profile() -> DeploymentProfile:
    """FastAPI dependency returning the active deployment profile."""
    return PROFILES[get_settings().DEPLOYMENT_PROFILE]
