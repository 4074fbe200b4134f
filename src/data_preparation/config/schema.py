from pydantic import BaseModel, ConfigDict, model_validator

# ---------- Raw record ----------


class RawRecord(BaseModel):
    """One row of the raw cardiovascular dataset, before any recoding."""

    model_config = ConfigDict(extra="ignore")

    id: int
    age: int  # days
    age_years: int
    gender: int  # 1 = Female, 2 = Male
    height: float
    weight: float
    ap_hi: int
    ap_lo: int
    cholesterol: int  # 1 / 2 / 3
    gluc: int  # 1 / 2 / 3
    smoke: int
    alco: int
    active: int
    cardio: int
    bmi: float
    bp_category: str
    bp_category_encoded: str | int


RAW_COLUMNS = list(RawRecord.model_fields)

# ---------- Physiological bounds ----------


class PhysiologicalBounds(BaseModel):
    """Inclusive plausibility ranges used to drop outlier rows."""

    model_config = ConfigDict(frozen=True)

    height: tuple[float, float] = (120, 220)
    weight: tuple[float, float] = (30, 250)
    bmi: tuple[float, float] = (10, 70)
    ap_hi: tuple[float, float] = (90, 240)
    ap_lo: tuple[float, float] = (60, 140)

    @model_validator(mode="after")
    def _check_ranges(self):
        for name in type(self).model_fields:
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"Lower bound exceeds upper bound for {name}: ({low}, {high})")
        return self
