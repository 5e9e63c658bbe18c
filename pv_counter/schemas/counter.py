from typing import Dict, Any, List
from pydantic import BaseModel, Field
from datetime import datetime

class VisitTotals(BaseModel):
    site_total: int
    page_total: int

class VisitResponse(BaseModel):
    total: int
    page: int

class ListOptions(BaseModel):
    limit: int | None = None
    cursor: str | None = None
    prefix: str | None = None
    only_keys: bool = False

class Entry(BaseModel):
    key: str
    value: str | None = None
    path: str | None = None

class ListEntriesResponse(BaseModel):
    data: List[Entry] = Field(default_factory=list)
    cursor: str | None = None
    complete: bool = True

class UpdateEntryRequest(BaseModel):
    key: str
    value: Any

class SuccessResponse(BaseModel):
    success: bool = True

class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None

class ServiceStatus(BaseModel):
    status: str
    uptime: str
    total_requests: int
    store_status: Dict[str, Any]
    version: str
    debug_mode: bool
    started_at: datetime
