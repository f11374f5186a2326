"""Directory filter parsing.

A filter is ``<kind>:<value>``:

    attendance:present | attendance:absent | attendance:unmarked
    payment:paid | payment:unpaid
    <field>:<value>    equality on a field the deployment profile lists as filterable

Attendance and payment filters select registrants by whether they have a
mark or dues row for the selected date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.sql import ColumnElement

from services.attendance_service.models import AttendanceStatus
from services.attendance_service.services.marks import marked_ids_query
from services.dues_service.services.dues import paid_ids_query
from services.registrations_service.models import Registration
from services.registrations_service.profiles import DeploymentProfile

ATTENDANCE_VALUES = ("present", "absent", "unmarked")
PAYMENT_VALUES = ("paid", "unpaid")


class FilterError(ValueError):
    pass


@dataclass(frozen=True)
class DirectoryFilter:
    kind: str
    value: str
    field_value: Any = None

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


def parse_filter(raw: Optional[str], profile: DeploymentProfile) -> Optional[DirectoryFilter]:
    """Parse ``raw``; ``None``, blank and ``all`` mean no filter."""
    if raw is None or not raw.strip() or raw.strip().lower() == "all":
        return None

    kind, sep, value = raw.strip().partition(":")
    kind = kind.strip()
    value = value.strip()
    if not sep or not value:
        raise FilterError(f"Filter must look like <kind>:<value>, got {raw!r}")

    if kind == "attendance":
        if value.lower() not in ATTENDANCE_VALUES:
            raise FilterError(
                f"Attendance filter must be one of: {', '.join(ATTENDANCE_VALUES)}"
            )
        return DirectoryFilter(kind, value.lower())

    if kind == "payment":
        if value.lower() not in PAYMENT_VALUES:
            raise FilterError(f"Payment filter must be one of: {', '.join(PAYMENT_VALUES)}")
        return DirectoryFilter(kind, value.lower())

    spec = profile.get_field(kind)
    if spec is None or not spec.filterable:
        raise FilterError(f"Cannot filter on {kind!r}")
    try:
        field_value = spec.coerce(value)
    except ValueError as exc:
        raise FilterError(str(exc)) from exc
    return DirectoryFilter(kind, value, field_value)


def parse_filter_or_422(raw: Optional[str], profile: DeploymentProfile) -> Optional[DirectoryFilter]:
    try:
        return parse_filter(raw, profile)
    except FilterError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc


def filter_clause(
    directory_filter: Optional[DirectoryFilter], on_date: date
) -> Optional[ColumnElement[bool]]:
    """Turn a parsed filter into a WHERE clause on ``registrations``.

    Attendance and payment filters embed the id lookup as a subquery, so an
    empty inclusion set matches nothing and an empty exclusion set matches
    everyone. Returns ``None`` when nothing needs constraining.
    """
    if directory_filter is None:
        return None

    if directory_filter.kind == "attendance":
        if directory_filter.value == "unmarked":
            return Registration.id.not_in(marked_ids_query(on_date))
        wanted = (
            AttendanceStatus.PRESENT
            if directory_filter.value == "present"
            else AttendanceStatus.ABSENT
        )
        return Registration.id.in_(marked_ids_query(on_date, wanted))

    if directory_filter.kind == "payment":
        paid = paid_ids_query(on_date)
        if directory_filter.value == "paid":
            return Registration.id.in_(paid)
        return Registration.id.not_in(paid)

    return getattr(Registration, directory_filter.kind) == directory_filter.field_value
