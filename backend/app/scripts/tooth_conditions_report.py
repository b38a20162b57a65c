from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from app.services.odontogram import condition_statistics
from app.services.tooth_conditions import derive_tooth_conditions
from app.services.tooth_conditions_csv import (
    TABLE_COLUMNS,
    TABLE_SORT_KEYS,
    TABLE_TOOTH_CONDITIONS,
    PatientRecord,
    csv_text,
    format_dt,
    tooth_condition_rows,
)


def _load_payload(path: Path) -> dict[str, object]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return {"treatments": data}
    if isinstance(data, dict) and isinstance(data.get("treatments"), list):
        return data
    raise ValueError("expected a list of treatments or an object with a 'treatments' list")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Derive current tooth conditions from a patient's treatment history."
    )
    parser.add_argument("--input", type=Path, required=True, help="Treatments JSON file.")
    parser.add_argument("--format", choices=["json", "csv"], default="json")
    parser.add_argument("--output", type=Path, help="Write to a file instead of stdout.")
    parser.add_argument("--patient-id", default=None, help="Patient id for CSV rows.")
    parser.add_argument("--patient-name", default=None, help="Patient name for CSV rows.")
    args = parser.parse_args()

    try:
        payload = _load_payload(args.input)
    except (OSError, ValueError) as exc:
        print(f"Unable to read {args.input}: {exc}", file=sys.stderr)
        return 2

    treatments = payload["treatments"]
    if args.format == "csv":
        patient = PatientRecord(
            id=args.patient_id or payload.get("patient_id") or "",
            name=args.patient_name or payload.get("patient_name") or "",
            treatments=treatments,
        )
        rows = tooth_condition_rows([patient])
        body = csv_text(
            rows,
            TABLE_COLUMNS[TABLE_TOOTH_CONDITIONS],
            TABLE_SORT_KEYS[TABLE_TOOTH_CONDITIONS],
        )
    else:
        conditions = derive_tooth_conditions(treatments)
        report = {
            "treatment_count": len(treatments),
            "conditions": [
                {
                    "number": item.number,
                    "condition": item.condition,
                    "notes": item.notes,
                    "last_treatment": format_dt(item.last_treatment),
                }
                for item in conditions
            ],
            "statistics": condition_statistics(conditions),
        }
        body = json.dumps(report, indent=2, sort_keys=True) + "\n"

    if args.output:
        args.output.write_text(body, encoding="utf-8")
        print(f"Wrote {args.output}")
    else:
        sys.stdout.write(body)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
