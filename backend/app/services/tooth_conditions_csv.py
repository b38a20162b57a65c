from __future__ import annotations

import csv
import io
import logging
import zipfile
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.services.tooth_conditions import (
    InvalidTeethPayload,
    TreatmentRecord,
    coerce_treatments,
    derive_tooth_conditions,
    parse_teeth,
    sort_treatments,
)

logger = logging.getLogger("dental_odontogram.export")

DAYS_PER_YEAR = 365.25

TABLE_PATIENTS = "patients"
TABLE_TREATMENTS = "treatments"
TABLE_TOOTH_CONDITIONS = "tooth_conditions"

TABLE_COLUMNS = {
    TABLE_PATIENTS: [
        "patient_id",
        "name",
        "date_of_birth",
        "age",
        "gender",
        "contact",
        "address",
        "registered_at",
        "total_treatments",
    ],
    TABLE_TREATMENTS: [
        "patient_id",
        "patient_name",
        "treatment_date",
        "treatment_type",
        "description",
        "teeth",
        "cost",
        "notes",
    ],
    TABLE_TOOTH_CONDITIONS: [
        "patient_id",
        "patient_name",
        "tooth",
        "condition",
        "last_treatment",
        "description",
    ],
}

TABLE_SORT_KEYS = {
    TABLE_PATIENTS: ["patient_id"],
    TABLE_TREATMENTS: ["patient_id", "treatment_date"],
    TABLE_TOOTH_CONDITIONS: ["patient_id", "tooth"],
}

INDEX_COLUMNS = ["table", "row_count"]


class PatientRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: int | str
    name: str
    date_of_birth: date | None = None
    gender: str | None = None
    contact: str | None = None
    address: str | None = None
    created_at: datetime | None = None
    treatments: list[Any] = Field(default_factory=list)


class ExportOptions(BaseModel):
    format: Literal["csv", "zip"] = "zip"
    include_basic_info: bool = True
    include_treatments: bool = True
    include_tooth_conditions: bool = True
    date_from: date | None = None
    date_to: date | None = None


class ExportOptionsError(ValueError):
    pass


@dataclass
class ExportFile:
    filename: str
    media_type: str
    content: bytes
    row_counts: dict[str, int]


def format_dt(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.isoformat()
    return str(value)


def format_date(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        formatted = format_dt(value)
        return formatted.split("T", 1)[0] if formatted else None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def age_in_years(date_of_birth: date | None, today: date) -> int | None:
    if date_of_birth is None:
        return None
    return int((today - date_of_birth).days // DAYS_PER_YEAR)


def teeth_text(record: TreatmentRecord) -> str:
    try:
        teeth = parse_teeth(record.teeth)
    except InvalidTeethPayload as exc:
        logger.warning(
            "Exporting treatment without teeth: %s",
            exc,
            extra={"treatment_id": record.id, "patient_id": record.patient_id},
        )
        return ""
    return ", ".join(str(number) for number in teeth)


def filter_treatments(
    records: list[TreatmentRecord], date_from: date | None, date_to: date | None
) -> list[TreatmentRecord]:
    selected = []
    for record in records:
        day = record.date.date()
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        selected.append(record)
    return selected


def patient_rows(
    patients: list[PatientRecord], options: ExportOptions, today: date
) -> list[dict[str, object]]:
    rows = []
    for patient in patients:
        records = filter_treatments(
            coerce_treatments(patient.treatments), options.date_from, options.date_to
        )
        rows.append(
            {
                "patient_id": patient.id,
                "name": patient.name,
                "date_of_birth": format_date(patient.date_of_birth),
                "age": age_in_years(patient.date_of_birth, today),
                "gender": patient.gender,
                "contact": patient.contact,
                "address": patient.address or "",
                "registered_at": format_date(patient.created_at),
                "total_treatments": len(records),
            }
        )
    return rows


def treatment_rows(patients: list[PatientRecord], options: ExportOptions) -> list[dict[str, object]]:
    rows = []
    for patient in patients:
        records = filter_treatments(
            coerce_treatments(patient.treatments), options.date_from, options.date_to
        )
        for record in sort_treatments(records):
            rows.append(
                {
                    "patient_id": patient.id,
                    "patient_name": patient.name,
                    "treatment_date": format_date(record.date),
                    "treatment_type": record.type or "",
                    "description": record.description,
                    "teeth": teeth_text(record),
                    "cost": record.cost or 0,
                    "notes": record.notes or "",
                }
            )
    return rows


def tooth_condition_rows(patients: list[PatientRecord]) -> list[dict[str, object]]:
    """Current tooth conditions per patient, from the full treatment history."""
    rows = []
    for patient in patients:
        conditions = derive_tooth_conditions(patient.treatments)
        for item in sorted(conditions, key=lambda condition: condition.number):
            rows.append(
                {
                    "patient_id": patient.id,
                    "patient_name": patient.name,
                    "tooth": item.number,
                    "condition": item.condition,
                    "last_treatment": format_date(item.last_treatment),
                    "description": item.notes,
                }
            )
    return rows


def _sortable(value) -> str:
    if value is None:
        return ""
    return str(value)


def sorted_rows(rows: list[dict[str, object]], sort_keys: list[str]) -> list[dict[str, object]]:
    if not sort_keys:
        return list(rows)
    return sorted(rows, key=lambda row: tuple(_sortable(row.get(key)) for key in sort_keys))


def csv_text(rows: list[dict[str, object]], columns: list[str], sort_keys: list[str]) -> str:
    sorted_payload = sorted_rows(rows, sort_keys)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns)
    writer.writeheader()
    for row in sorted_payload:
        writer.writerow({key: row.get(key) for key in columns})
    return buffer.getvalue()


def selected_tables(options: ExportOptions) -> list[str]:
    tables = []
    if options.include_basic_info:
        tables.append(TABLE_PATIENTS)
    if options.include_treatments:
        tables.append(TABLE_TREATMENTS)
    if options.include_tooth_conditions:
        tables.append(TABLE_TOOTH_CONDITIONS)
    return tables


def build_export(
    patients: list[Any],
    options: ExportOptions,
    *,
    prefix: str = "data_pasien",
    today: date | None = None,
) -> ExportFile:
    today = today or datetime.now(timezone.utc).date()
    records = [PatientRecord.model_validate(patient) for patient in patients]
    stamp = today.isoformat()

    if options.format == "csv":
        if not options.include_basic_info:
            raise ExportOptionsError("CSV format requires basic info to be included")
        rows = patient_rows(records, options, today)
        body = csv_text(rows, TABLE_COLUMNS[TABLE_PATIENTS], TABLE_SORT_KEYS[TABLE_PATIENTS])
        logger.info("Built patient CSV export", extra={"row_count": len(rows)})
        return ExportFile(
            filename=f"{prefix}_{stamp}.csv",
            media_type="text/csv",
            content=body.encode("utf-8"),
            row_counts={TABLE_PATIENTS: len(rows)},
        )

    tables = selected_tables(options)
    if not tables:
        raise ExportOptionsError("No export tables requested")

    row_counts: dict[str, int] = {}
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for table in tables:
            if table == TABLE_PATIENTS:
                rows = patient_rows(records, options, today)
            elif table == TABLE_TREATMENTS:
                rows = treatment_rows(records, options)
            else:
                rows = tooth_condition_rows(records)
            row_counts[table] = len(rows)
            body = csv_text(rows, TABLE_COLUMNS[table], TABLE_SORT_KEYS[table])
            archive.writestr(f"{table}.csv", body)
        index_rows = [{"table": table, "row_count": count} for table, count in row_counts.items()]
        archive.writestr("index.csv", csv_text(index_rows, INDEX_COLUMNS, ["table"]))

    logger.info(
        "Built export archive",
        extra={"tables": tables, "patient_count": len(records)},
    )
    return ExportFile(
        filename=f"{prefix}_{stamp}.zip",
        media_type="application/zip",
        content=buffer.getvalue(),
        row_counts=row_counts,
    )
