from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.timeutil import now_local, now_utc
from ..domain.errors import (
    DispatchError,
    DispatchInProgressError,
    InvalidRecipientError,
    NoRecipientsError,
)
from ..domain.models import DashboardState, Reading, WeatherSnapshot
from ..sensors.simulated_sensor import PatternConfig, SimulatedDepthSensor
from ..services.notifier import AlertNotifier
from ..services.poller import DashboardPoller
from ..services.weather import WeatherService
from .schemas import AlertRequest, RecipientRequest, SimDepthRequest, SimPatternRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters (imported from main via circular-safe approach) ---
# We define them here as callables that main.py will set via app.dependency_overrides.
def get_poller() -> DashboardPoller:  # overridden in main
    raise RuntimeError("Poller dependency not configured")

def get_notifier() -> AlertNotifier:  # overridden in main
    raise RuntimeError("Notifier dependency not configured")

def get_weather() -> WeatherService:  # overridden in main
    raise RuntimeError("Weather dependency not configured")

def get_sim_sensor() -> SimulatedDepthSensor:  # overridden in main
    raise RuntimeError("Simulated sensor dependency not configured")


def _state_out(state: DashboardState) -> dict:
    return {
        "depth": state.depth,
        "display_depth": state.display_depth,
        "rate": state.rate,
        "status": state.status.value,
        "tier": state.tier.value,
        "percentage": state.percentage,
        "timestamp": state.timestamp.isoformat() if state.timestamp else None,
        "last_update": state.last_update_label,
        "badge": state.badge,
        "alert": (
            {"level": state.alert.level, "title": state.alert.title, "message": state.alert.message}
            if state.alert else None
        ),
        "last_error": state.last_error,
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
    }


def _weather_out(snapshot: Optional[WeatherSnapshot], error: Optional[str]) -> dict:
    if snapshot is None:
        return {"available": False, "last_error": error}
    return {
        "available": True,
        "temperature_c": snapshot.temperature_c,
        "precipitation_probability": snapshot.precipitation_probability,
        "rain_mm": snapshot.rain_mm,
        "humidity_pct": snapshot.humidity_pct,
        "is_raining": snapshot.is_raining,
        "fetched_at": snapshot.fetched_at.isoformat(),
        "last_error": error,
    }


@router.get("/live")
async def get_live(poller: DashboardPoller = Depends(get_poller)):
    policy = poller.policy
    return {
        "app": settings.app_name,
        "now_local": now_local().isoformat(),
        "state": _state_out(poller.state),
        "thresholds": {
            "container_height_cm": policy.container_height,
            "warning_level_cm": policy.warning,
            "flood_level_cm": policy.flood,
        },
    }


@router.get("/history")
async def get_history(poller: DashboardPoller = Depends(get_poller)):
    points = poller.history.snapshot()
    return {
        "capacity": poller.history.capacity,
        "labels": [p.label for p in points],
        "values": [p.value for p in points],
        "points": [{"label": p.label, "value": p.value} for p in points],
    }


@router.post("/poll")
async def poll_now(poller: DashboardPoller = Depends(get_poller)):
    state = await poller.tick()
    return {"ok": state is not None, "state": _state_out(poller.state)}


@router.get("/config")
async def get_config(poller: DashboardPoller = Depends(get_poller)):
    policy = poller.policy
    return {
        "sensor_mode": settings.sensor_mode,
        "container_height_cm": policy.container_height,
        "warning_level_cm": policy.warning,
        "flood_level_cm": policy.flood,
        "poll_seconds": settings.poll_seconds,
        "staleness_seconds": settings.staleness_seconds,
        "history_capacity": poller.history.capacity,
        "location": {"lat": settings.latitude, "lng": settings.longitude},
    }


# --- Simulation endpoints ---
@router.post("/sim/depth")
async def sim_depth(req: SimDepthRequest, poller: DashboardPoller = Depends(get_poller)):
    state = await poller.ingest(Reading(depth=req.depth, rate=req.rate, timestamp=now_utc()))
    return {"ok": True, "state": _state_out(state)}


@router.get("/sim/status")
async def sim_status(sensor: SimulatedDepthSensor = Depends(get_sim_sensor)):
    return sensor.status()


@router.post("/sim/enable")
async def sim_enable(sensor: SimulatedDepthSensor = Depends(get_sim_sensor)):
    sensor.enable()
    return {"ok": True, "enabled": True}


@router.post("/sim/disable")
async def sim_disable(sensor: SimulatedDepthSensor = Depends(get_sim_sensor)):
    sensor.disable()
    return {"ok": True, "enabled": False}


@router.post("/sim/manual")
async def sim_set_manual(req: SimDepthRequest, sensor: SimulatedDepthSensor = Depends(get_sim_sensor)):
    sensor.set_manual(req.depth)
    return {"ok": True, "mode": "manual", "depth": req.depth}


@router.post("/sim/pattern")
async def sim_set_pattern(req: SimPatternRequest, sensor: SimulatedDepthSensor = Depends(get_sim_sensor)):
    cfg = PatternConfig(**req.model_dump())
    sensor.set_pattern(cfg)
    return {"ok": True, "pattern": cfg.__dict__}


# --- Weather ---
@router.get("/weather")
async def get_weather_api(weather: WeatherService = Depends(get_weather)):
    return _weather_out(weather.snapshot, weather.last_error)


@router.post("/weather/refresh")
async def refresh_weather(weather: WeatherService = Depends(get_weather)):
    await weather.refresh()
    return _weather_out(weather.snapshot, weather.last_error)


# --- Recipients & alerts ---
@router.get("/recipients")
async def list_recipients(notifier: AlertNotifier = Depends(get_notifier)):
    return {"emails": notifier.recipients}


@router.post("/recipients")
async def add_recipient(req: RecipientRequest, notifier: AlertNotifier = Depends(get_notifier)):
    try:
        added = notifier.add_recipient(req.email)
    except InvalidRecipientError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "added": added, "emails": notifier.recipients}


@router.delete("/recipients/{email}")
async def remove_recipient(email: str, notifier: AlertNotifier = Depends(get_notifier)):
    if not notifier.remove_recipient(email):
        raise HTTPException(status_code=404, detail=f"Unknown recipient: {email}")
    return {"ok": True, "emails": notifier.recipients}


@router.get("/alerts/status")
async def alert_status(notifier: AlertNotifier = Depends(get_notifier)):
    result = notifier.last_result
    return {
        "state": notifier.state.value,
        "auto_alert": notifier.auto_alert,
        "last_error": notifier.last_error,
        "last_sent_to": result.sent_to if result else None,
    }


@router.post("/alerts/send")
async def send_alert(req: AlertRequest, notifier: AlertNotifier = Depends(get_notifier)):
    try:
        result = await notifier.dispatch(recipients=req.emails, message=req.message)
    except NoRecipientsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DispatchInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DispatchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {
        "ok": True,
        "sent_to": result.sent_to,
        "confirmed": result.confirmed,
        "message": result.message,
    }
