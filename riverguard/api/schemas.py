from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Literal, List


class SimDepthRequest(BaseModel):
    depth: float
    rate: float = 0.0


class SimPatternRequest(BaseModel):
    type: Literal["sine", "step", "ramp", "random"]
    baseline: float = 50.0
    amplitude: float = 30.0
    period_s: float = Field(default=600, gt=0)
    noise: float = 1.0
    step_low: float = 40.0
    step_high: float = 85.0
    step_period_s: float = Field(default=120, gt=0)
    ramp_min: float = 10.0
    ramp_max: float = 95.0
    ramp_period_s: float = Field(default=600, gt=0)


class RecipientRequest(BaseModel):
    email: str


class AlertRequest(BaseModel):
    message: Optional[str] = None
    # None = use the stored recipient set
    emails: Optional[List[str]] = None
