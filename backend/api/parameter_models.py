from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class StoredParameter(BaseModel):
    id: str
    name: str
    value: Any
    unit: Optional[str] = None
    timestamp: datetime


class StoredParameterUpdate(BaseModel):
    value: Any
    # Taken from the known parameter definition when omitted
    name: Optional[str] = None
    unit: Optional[str] = None


class StoredParameterList(BaseModel):
    parameters: list[StoredParameter] = Field(default_factory=list)
