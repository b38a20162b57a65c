from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from app.services.odontogram import is_valid_fdi_tooth
from app.services.tooth_state_classification import ToothConditionType, classify_tooth_condition

logger = logging.getLogger("dental_odontogram.tooth_conditions")


class InvalidTeethPayload(ValueError):
    pass


class TreatmentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore", populate_by_name=True)

    id: int | str | None = None
    patient_id: int | str | None = Field(
        default=None, validation_alias=AliasChoices("patient_id", "patientId")
    )
    date: datetime
    type: str | None = None
    description: str | None = None
    teeth: Any = None
    cost: float | None = None
    notes: str | None = None

    @field_validator("id", "patient_id", mode="before")
    @classmethod
    def _scalar_identifier(cls, value):
        if isinstance(value, (bool, float)):
            return str(value)
        return value

    @field_validator("type", "description", "notes", mode="before")
    @classmethod
    def _text_or_none(cls, value, info: ValidationInfo):
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)):
            return str(value)
        logger.warning(
            "Ignoring unreadable treatment %s",
            info.field_name,
            extra={"treatment_id": info.data.get("id"), "value_type": type(value).__name__},
        )
        return None

    @field_validator("cost", mode="before")
    @classmethod
    def _cost_or_none(cls, value, info: ValidationInfo):
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                return float(text)
            except ValueError:
                pass
        logger.warning(
            "Ignoring unreadable treatment cost %r",
            value,
            extra={"treatment_id": info.data.get("id")},
        )
        return None

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_datetime(cls, value):
        if isinstance(value, str) and len(value.strip()) == 10:
            value = date.fromisoformat(value.strip())
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.min)
        return value

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class ToothCondition(BaseModel):
    number: int
    condition: ToothConditionType
    notes: str | None = None
    last_treatment: datetime


def _coerce_tooth(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidTeethPayload(f"Tooth entry {value!r} is not a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidTeethPayload(f"Tooth entry {value!r} is not a whole number")
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidTeethPayload(f"Tooth entry {value!r} is not numeric")
        return int(text)
    raise InvalidTeethPayload(f"Tooth entry {value!r} has unsupported type {type(value).__name__}")


def parse_teeth(raw: Any) -> list[int]:
    """Normalise a stored ``teeth`` value to a list of tooth numbers.

    Accepts ``None``, a list/tuple of ints or numeric strings, or a JSON
    string encoding such a list. Anything else raises ``InvalidTeethPayload``.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidTeethPayload(f"Teeth payload is not valid JSON: {text[:50]!r}") from exc
        if raw is None:
            return []
    if not isinstance(raw, (list, tuple)):
        raise InvalidTeethPayload(f"Teeth payload must be a list, got {type(raw).__name__}")
    return [_coerce_tooth(value) for value in raw]


def coerce_treatment(item: Any) -> TreatmentRecord:
    if isinstance(item, TreatmentRecord):
        return item
    return TreatmentRecord.model_validate(item)


def coerce_treatments(items: Iterable[Any]) -> list[TreatmentRecord]:
    records: list[TreatmentRecord] = []
    for index, item in enumerate(items):
        try:
            records.append(coerce_treatment(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable treatment record",
                extra={"position": index, "errors": exc.error_count()},
            )
    return records


def _id_sort_key(record: TreatmentRecord) -> tuple[int, int, str]:
    if record.id is None:
        return (2, 0, "")
    if isinstance(record.id, int):
        return (0, record.id, "")
    return (1, 0, record.id)


def sort_treatments(records: Iterable[TreatmentRecord]) -> list[TreatmentRecord]:
    """Most recent first; same-date ties by id ascending, then input order."""
    ordered = sorted(records, key=_id_sort_key)
    ordered.sort(key=lambda record: record.date, reverse=True)
    return ordered


def derive_tooth_conditions(treatments: Iterable[Any]) -> list[ToothCondition]:
    """Derive the current condition of every tooth touched by a treatment.

    The most recent treatment referencing a tooth decides its condition.
    Teeth that no treatment references are healthy and are not returned.
    Malformed records are logged and skipped; this never raises for bad data.
    """
    records = coerce_treatments(treatments)
    conditions: dict[int, ToothCondition] = {}

    for record in sort_treatments(records):
        try:
            teeth = parse_teeth(record.teeth)
        except InvalidTeethPayload as exc:
            logger.warning(
                "Ignoring malformed teeth payload: %s",
                exc,
                extra={"treatment_id": record.id, "patient_id": record.patient_id},
            )
            continue

        condition: ToothConditionType | None = None
        for number in teeth:
            if not is_valid_fdi_tooth(number):
                logger.warning(
                    "Dropping tooth %s outside FDI permanent dentition",
                    number,
                    extra={"treatment_id": record.id, "patient_id": record.patient_id},
                )
                continue
            if number in conditions:
                continue
            if condition is None:
                condition = classify_tooth_condition(record.type, record.description)
            conditions[number] = ToothCondition(
                number=number,
                condition=condition,
                notes=record.description,
                last_treatment=record.date,
            )

    logger.debug(
        "Derived %s tooth conditions from %s treatments", len(conditions), len(records)
    )
    return list(conditions.values())
