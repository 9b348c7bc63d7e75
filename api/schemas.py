from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class EntryForm(BaseModel):
    name: str = ""
    phoneNumber: str
    profession: str
    useMyGP: str
    reason: str = ""


class OutcomeResponse(BaseModel):
    ok: bool
    level: str
    message: str = ""
    notify: bool = True
    error: Optional[str] = None
    entry: Optional[Dict[str, Any]] = None


class EntriesResponse(BaseModel):
    count: int
    entries: List[Any] = Field(default_factory=list)


class ConfigResponse(BaseModel):
    professions: List[str]
    reasons: List[str]
    phone_input_prefix: str
    auto_refresh_interval: float
    auto_refresh_enabled: bool
