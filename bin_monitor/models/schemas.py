from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

BinStatusLiteral = Literal["normal", "warning", "critical"]
AlertActionLiteral = Literal["empty_now", "alert_set", "set_alert"]
HistoryActionLiteral = Literal["Emptied", "Collected"]
WindowLiteral = Literal["24h", "1w", "15d", "1m"]


class BinStateView(BaseModel):
    bin_id: int
    name: str
    color: str
    capacity_liters: float
    fill_level: int
    status: BinStatusLiteral
    volume_liters: float
    last_emptied_at: datetime | None = None
    alert_triggered: bool
    alert_action: AlertActionLiteral
    threshold: int | None = None
    suggested_threshold: int
    alert_enabled: bool = False


class HistoryEntryView(BaseModel):
    id: int
    bin_id: int
    bin_name: str
    action: HistoryActionLiteral
    fill_level_at_event: int
    volume_at_event: float
    timestamp: datetime


class HistoryResponse(BaseModel):
    window: WindowLiteral
    count: int
    items: list[HistoryEntryView]


class CommandResponse(BaseModel):
    ok: bool
    applied: bool
    action: str
    outcome: str
    message: str
    entries: list[HistoryEntryView] = Field(default_factory=list)


class AlertView(BaseModel):
    bin_id: int
    level: Literal["high", "medium"]
    message: str


class ScheduleResponse(BaseModel):
    active: bool
    intervals: dict[int, int]


class SummaryResponse(BaseModel):
    generated_at: datetime
    attention: dict[str, int]
    capacity: dict[str, float]
    next_scheduled_empty: dict[str, str]
    alerts: list[AlertView]
    refresh_hint_seconds: int


class ReadingRequest(BaseModel):
    fill_level: float


class EmptyBinRequest(BaseModel):
    action: HistoryActionLiteral = "Emptied"


class ThresholdRequest(BaseModel):
    percentage: float


class AlertToggleRequest(BaseModel):
    enabled: bool


class BulkAlertRequest(BaseModel):
    enabled: bool | None = None
    settings: dict[int, bool] | None = None


class ScheduleRequest(BaseModel):
    hours: float = 24
    confirm: bool = False
