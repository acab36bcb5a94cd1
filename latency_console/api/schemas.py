from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, Union

from ..domain.hid import InputReport


class MeasureRequest(BaseModel):
    # raw editor text or an already-parsed object
    scenario: Union[str, Dict[str, Any]]


class BatchRequest(MeasureRequest):
    count: Optional[int] = Field(default=None, ge=1, le=1000)
    interval_ms: Optional[int] = Field(default=None, ge=1, le=60_000)


class HidReportRequest(BaseModel):
    hid_report: InputReport
