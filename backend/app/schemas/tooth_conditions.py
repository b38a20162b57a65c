from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.tooth_conditions import ToothCondition, TreatmentRecord
from app.services.tooth_conditions_csv import ExportOptions, PatientRecord
from app.services.tooth_state_classification import ToothConditionType


class TreatmentListIn(BaseModel):
    treatments: list[TreatmentRecord] = Field(default_factory=list)


class ToothConditionOut(ToothCondition):
    model_config = ConfigDict(from_attributes=True)


class OdontogramToothOut(BaseModel):
    number: int
    arch: Literal["upper", "lower"]
    quadrant: int
    tooth_type: Literal["incisor", "canine", "premolar", "molar"]
    tooth_type_label: str
    condition: ToothConditionType
    condition_label: str
    notes: Optional[str] = None
    last_treatment: Optional[datetime] = None


class OdontogramOut(BaseModel):
    upper: list[OdontogramToothOut]
    lower: list[OdontogramToothOut]
    conditions: list[ToothConditionOut]
    statistics: dict[str, int]


class ExportRequest(ExportOptions):
    patients: list[PatientRecord] = Field(default_factory=list)
