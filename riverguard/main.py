from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import riverguard.api.routes as routes_module

from .domain.history import RollingHistory
from .domain.thresholds import ThresholdPolicy
from .drivers.alert_relay import AlertRelayClient
from .drivers.weather import OpenMeteoClient
from .sensors.base import Sensor
from .sensors.sheet_sensor import SheetSensor
from .sensors.simulated_sensor import SimulatedDepthSensor
from .services.notifier import AlertNotifier
from .services.poller import DashboardPoller
from .services.weather import WeatherService


logger = logging.getLogger(__name__)


sensor: Sensor
sim_sensor: SimulatedDepthSensor | None = None

def build_sensor() -> Sensor:
    global sim_sensor

    if settings.sensor_mode.lower() == "sheet":
        return SheetSensor(url=settings.sensor_url, timeout=settings.http_timeout_seconds)

    # default to sim
    sim_sensor = SimulatedDepthSensor()
    return sim_sensor

sensor = build_sensor()


# --- Singletons ---
policy = ThresholdPolicy(
    container_height=settings.container_height_cm,
    warning=settings.warning_level_cm,
    flood=settings.flood_level_cm,
).validate()

poller = DashboardPoller(
    source=sensor,
    policy=policy,
    history=RollingHistory(settings.history_capacity),
    poll_seconds=settings.poll_seconds,
    staleness=timedelta(seconds=settings.staleness_seconds),
)

notifier = AlertNotifier(
    relay=AlertRelayClient(
        url=settings.relay_url,
        timeout=settings.http_timeout_seconds,
        read_response=settings.relay_read_response,
    ),
    recipients=settings.alert_recipients,
    default_message=settings.alert_message,
    auto_alert=settings.auto_alert_on_critical,
)
poller.subscribe(notifier.on_state)

weather = WeatherService(
    OpenMeteoClient(
        latitude=settings.latitude,
        longitude=settings.longitude,
        url=settings.weather_url,
        timeout=settings.http_timeout_seconds,
    ),
    refresh_seconds=settings.weather_refresh_seconds,
)


def get_poller() -> DashboardPoller:
    return poller


def get_notifier() -> AlertNotifier:
    return notifier


def get_weather() -> WeatherService:
    return weather


def get_sim_sensor() -> SimulatedDepthSensor:
    if sim_sensor is None:
        raise HTTPException(status_code=404, detail="Sim sensor not available (sensor_mode is not 'sim').")
    return sim_sensor


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "Starting %s (sensor_mode=%s height=%.0fcm warning=%.0fcm flood=%.0fcm)",
        settings.app_name,
        settings.sensor_mode,
        policy.container_height,
        policy.warning,
        policy.flood,
    )

    await poller.start()
    await weather.start()

    try:
        yield
    finally:
        await poller.stop()
        await weather.stop()
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_poller] = get_poller
app.dependency_overrides[routes_module.get_notifier] = get_notifier
app.dependency_overrides[routes_module.get_weather] = get_weather
app.dependency_overrides[routes_module.get_sim_sensor] = get_sim_sensor

app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["meta"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "app": settings.app_name}
