from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    text: Optional[str] = Field(default=None, examples=["a=1,b=2"])


class FormatRequest(BaseModel):
    properties: Optional[Dict[str, str]] = Field(default=None, examples=[{"a": "1", "b": "2"}])


class ReportSummary(BaseModel):
    records: int = 0
    properties: int = 0
    warnings: int = 0
    errors: int = 0
    round_trip_safe: bool = True


class ReportItem(BaseModel):
    record: Optional[int] = None
    key: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class ConversionReport(BaseModel):
    summary: ReportSummary
    conversions: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[ReportItem] = Field(default_factory=list)
    errors: List[ReportItem] = Field(default_factory=list)


class ParseResponse(BaseModel):
    properties: Dict[str, str] = Field(default_factory=dict)
    report: ConversionReport


class FormatResponse(BaseModel):
    text: str = ""
    report: ConversionReport

class HealthResponse(BaseModel):
    ok: bool = True
