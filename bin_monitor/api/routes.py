from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from bin_monitor.analytics.statistics import (
    attention_summary,
    capacity_summary,
    history_statistics,
    next_scheduled_empty,
)
from bin_monitor.core.engine import BinMonitorEngine, CommandResult
from bin_monitor.core.ledger import HistoryEntry
from bin_monitor.core.state_store import BinState
from bin_monitor.models.schemas import (
    AlertToggleRequest,
    AlertView,
    BinStateView,
    BulkAlertRequest,
    CommandResponse,
    EmptyBinRequest,
    HistoryEntryView,
    HistoryResponse,
    ReadingRequest,
    ScheduleRequest,
    ScheduleResponse,
    SummaryResponse,
    ThresholdRequest,
    WindowLiteral,
)

router = APIRouter(prefix="/api")


def _engine(request: Request) -> BinMonitorEngine:
    return request.app.state.engine


def _state_view(engine: BinMonitorEngine, state: BinState) -> BinStateView:
    setting = engine.alerts.get(state.bin_id)
    return BinStateView(
        bin_id=state.bin_id,
        name=state.name,
        color=state.bin.color,
        capacity_liters=state.bin.capacity_liters,
        fill_level=state.fill_level,
        status=state.status,
        volume_liters=state.volume_liters,
        last_emptied_at=state.last_emptied_at,
        alert_triggered=engine.alerts.is_alert_triggered(state),
        alert_action=engine.alerts.alert_action(state),
        threshold=setting.threshold if setting else None,
        suggested_threshold=engine.alerts.suggested_threshold(state.bin_id),
        alert_enabled=setting.enabled if setting else False,
    )


def _entry_view(entry: HistoryEntry) -> HistoryEntryView:
    return HistoryEntryView(
        id=entry.id,
        bin_id=entry.bin_id,
        bin_name=entry.bin_name,
        action=entry.action,
        fill_level_at_event=entry.fill_level_at_event,
        volume_at_event=entry.volume_at_event,
        timestamp=entry.timestamp,
    )


def _command_response(result: CommandResult) -> CommandResponse:
    return CommandResponse(
        ok=True,
        applied=result.applied,
        action=result.action,
        outcome=result.outcome,
        message=result.message,
        entries=[_entry_view(entry) for entry in result.entries],
    )


def snapshot_payload(engine: BinMonitorEngine) -> list[dict[str, Any]]:
    with engine.consistent_read():
        return [_state_view(engine, state).model_dump(mode="json") for state in engine.read_all()]


async def _publish(request: Request) -> None:
    manager = request.app.state.ws_manager
    await manager.broadcast({"type": "state", "data": snapshot_payload(_engine(request))})


@router.get("/bins")
async def list_bins(request: Request) -> list[dict[str, Any]]:
    return snapshot_payload(_engine(request))


@router.get("/bins/{bin_id}")
async def get_bin(bin_id: int, request: Request) -> dict[str, Any]:
    engine = _engine(request)
    with engine.consistent_read():
        return _state_view(engine, engine.read(bin_id)).model_dump(mode="json")


@router.post("/bins/{bin_id}/reading")
async def apply_reading(bin_id: int, request: Request, payload: ReadingRequest) -> dict[str, Any]:
    engine = _engine(request)
    with engine.consistent_read():
        state = engine.apply_reading(bin_id, payload.fill_level)
        view = _state_view(engine, state).model_dump(mode="json")
    await _publish(request)
    return view


@router.post("/bins/empty-all", response_model=CommandResponse)
async def empty_all(request: Request, payload: EmptyBinRequest | None = None) -> CommandResponse:
    engine = _engine(request)
    result = engine.command_empty_all(action=payload.action if payload else "Emptied")
    if result.applied:
        await _publish(request)
    return _command_response(result)


@router.post("/bins/{bin_id}/empty", response_model=CommandResponse)
async def empty_bin(bin_id: int, request: Request, payload: EmptyBinRequest | None = None) -> CommandResponse:
    engine = _engine(request)
    result = engine.command_empty_bin(bin_id, action=payload.action if payload else "Emptied")
    if result.applied:
        await _publish(request)
    return _command_response(result)


@router.put("/bins/{bin_id}/threshold", response_model=CommandResponse)
async def set_threshold(bin_id: int, request: Request, payload: ThresholdRequest) -> CommandResponse:
    engine = _engine(request)
    result = engine.set_threshold(bin_id, payload.percentage)
    await _publish(request)
    return _command_response(result)


@router.put("/bins/{bin_id}/alert", response_model=CommandResponse)
async def set_alert(bin_id: int, request: Request, payload: AlertToggleRequest) -> CommandResponse:
    engine = _engine(request)
    result = engine.set_alert_enabled(bin_id, payload.enabled)
    await _publish(request)
    return _command_response(result)


@router.get("/alerts")
async def list_alerts(request: Request) -> list[AlertView]:
    return [
        AlertView(bin_id=alert.bin_id, level=alert.level, message=alert.message)
        for alert in _engine(request).generate_alerts()
    ]


@router.put("/alerts", response_model=CommandResponse)
async def set_alerts(request: Request, payload: BulkAlertRequest) -> CommandResponse:
    engine = _engine(request)
    if payload.settings is not None:
        result = engine.apply_alert_settings(payload.settings)
    elif payload.enabled is not None:
        result = engine.set_all_alerts_enabled(payload.enabled)
    else:
        raise HTTPException(status_code=422, detail="Provide `enabled` or `settings`")
    await _publish(request)
    return _command_response(result)


@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(request: Request) -> ScheduleResponse:
    engine = _engine(request)
    return ScheduleResponse(active=engine.has_active_schedule(), intervals=engine.schedule_intervals())


@router.put("/schedule", response_model=CommandResponse)
async def set_schedule(request: Request, payload: ScheduleRequest) -> CommandResponse:
    result = _engine(request).set_schedule_for_all(payload.hours, confirm_overwrite=payload.confirm)
    if result.outcome == "confirmation_required":
        raise HTTPException(status_code=409, detail=result.message)
    return _command_response(result)


@router.get("/history", response_model=HistoryResponse)
async def get_history(request: Request, window: WindowLiteral = Query(default="24h")) -> HistoryResponse:
    entries = _engine(request).query(window)
    return HistoryResponse(window=window, count=len(entries), items=[_entry_view(entry) for entry in entries])


@router.get("/history/stats")
async def get_history_stats(request: Request, window: WindowLiteral = Query(default="1m")) -> dict[str, Any]:
    entries = _engine(request).query(window)
    return {"window": window, "bins": history_statistics(entries)}


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(request: Request) -> SummaryResponse:
    engine = _engine(request)
    with engine.consistent_read():
        states = engine.read_all()
        alerts = engine.generate_alerts()
    return SummaryResponse(
        generated_at=datetime.now(tz=UTC),
        attention=attention_summary(states),
        capacity=capacity_summary(states),
        next_scheduled_empty=next_scheduled_empty(states),
        alerts=[AlertView(bin_id=alert.bin_id, level=alert.level, message=alert.message) for alert in alerts],
        refresh_hint_seconds=request.app.state.config.dashboard.refresh_hint_seconds,
    )


@router.post("/reset", response_model=CommandResponse)
async def reset(request: Request, clear_history: bool | None = Query(default=None)) -> CommandResponse:
    result = _engine(request).command_reset(clear_history=clear_history)
    await _publish(request)
    return _command_response(result)
