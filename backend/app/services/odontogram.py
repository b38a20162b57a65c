from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Literal

from app.services.tooth_state_classification import ToothConditionType

ToothType = Literal["incisor", "canine", "premolar", "molar"]

# Display order, patient's right on the left of the chart.
UPPER_TEETH: tuple[int, ...] = (18, 17, 16, 15, 14, 13, 12, 11, 21, 22, 23, 24, 25, 26, 27, 28)
LOWER_TEETH: tuple[int, ...] = (48, 47, 46, 45, 44, 43, 42, 41, 31, 32, 33, 34, 35, 36, 37, 38)

VALID_TEETH: frozenset[int] = frozenset(UPPER_TEETH + LOWER_TEETH)

CONDITION_LABELS: dict[str, str] = {
    "healthy": "Sehat",
    "filled": "Tambalan",
    "decayed": "Karies",
    "extracted": "Dicabut",
    "crown": "Mahkota",
    "root_canal": "Saluran Akar",
}

TOOTH_TYPE_LABELS: dict[ToothType, str] = {
    "incisor": "Seri",
    "canine": "Taring",
    "premolar": "Geraham Kecil",
    "molar": "Geraham Besar",
}


def is_valid_fdi_tooth(number: int) -> bool:
    return number in VALID_TEETH


def tooth_quadrant(number: int) -> int:
    return number // 10


def tooth_position(number: int) -> int:
    return number % 10


def tooth_type(number: int) -> ToothType:
    position = tooth_position(number)
    if position in {1, 2}:
        return "incisor"
    if position == 3:
        return "canine"
    if position in {4, 5}:
        return "premolar"
    return "molar"


def is_upper_tooth(number: int) -> bool:
    return 11 <= number <= 28


def condition_label(condition: str | None) -> str:
    return CONDITION_LABELS.get(condition or "", "Normal")


def condition_statistics(conditions: Iterable) -> dict[str, int]:
    """Count materialised teeth per condition; unlisted teeth are not counted."""
    stats: dict[str, int] = {}
    for item in conditions:
        stats[item.condition] = stats.get(item.condition, 0) + 1
    return stats


def _cell(number: int, condition) -> dict[str, object]:
    state: ToothConditionType = condition.condition if condition else "healthy"
    last_treatment: datetime | None = condition.last_treatment if condition else None
    kind = tooth_type(number)
    return {
        "number": number,
        "arch": "upper" if is_upper_tooth(number) else "lower",
        "quadrant": tooth_quadrant(number),
        "tooth_type": kind,
        "tooth_type_label": TOOTH_TYPE_LABELS[kind],
        "condition": state,
        "condition_label": condition_label(state),
        "notes": condition.notes if condition else None,
        "last_treatment": last_treatment,
    }


def build_odontogram(conditions: Iterable) -> dict[str, list[dict[str, object]]]:
    """Lay out all 32 teeth in chart order.

    Teeth without a derived condition are shown as healthy. Conditions for
    numbers outside the chart are ignored.
    """
    by_number = {item.number: item for item in conditions}
    return {
        "upper": [_cell(number, by_number.get(number)) for number in UPPER_TEETH],
        "lower": [_cell(number, by_number.get(number)) for number in LOWER_TEETH],
    }
