from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FilterStateModel(BaseModel):
    city: str = ""
    county: str = ""
    company: str = ""
    model: str = ""
    year: str = ""


class DashboardStateModel(BaseModel):
    filters: FilterStateModel = Field(default_factory=FilterStateModel)
    page: int = Field(default=1, ge=1)
    include_charts: bool = True


class StatusResponse(BaseModel):
    loaded: bool
    source: Optional[str] = None
    error: Optional[str] = None
    records: int = 0


class OptionsResponse(BaseModel):
    options: Dict[str, List[Any]]
