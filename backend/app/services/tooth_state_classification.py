from __future__ import annotations

from typing import Literal

ToothConditionType = Literal[
    "healthy",
    "filled",
    "decayed",
    "extracted",
    "crown",
    "root_canal",
]

TOOTH_CONDITIONS: tuple[ToothConditionType, ...] = (
    "healthy",
    "filled",
    "decayed",
    "extracted",
    "crown",
    "root_canal",
)

# First match wins.
_ORDERED_RULES: tuple[tuple[ToothConditionType, tuple[str, ...]], ...] = (
    ("extracted", ("pencabutan", "cabut")),
    ("root_canal", ("saluran akar", "endodontik")),
    ("crown", ("mahkota", "crown")),
    ("filled", ("tambal", "penambalan", "tambalan")),
    ("decayed", ("karies", "berlubang")),
)


def classify_tooth_condition(
    treatment_type: str | None, description: str | None = None
) -> ToothConditionType:
    label = " ".join(str(part or "") for part in (treatment_type, description)).strip().lower()
    if not label:
        return "healthy"

    for mapped_condition, keywords in _ORDERED_RULES:
        if any(keyword in label for keyword in keywords):
            return mapped_condition

    return "healthy"
