"""
Tests for the HTTP clients of the sensor sheet, the email relay and Open-Meteo
"""
import json

import httpx
import pytest

from riverguard.domain.errors import DispatchError, TransportError
from riverguard.drivers.alert_relay import AlertRelayClient
from riverguard.drivers.weather import OpenMeteoClient, parse_forecast
from riverguard.sensors.sheet_sensor import SheetSensor
from riverguard.sensors.simulated_sensor import PatternConfig, SimulatedDepthSensor, pattern_depth

SHEET_URL = "https://script.example.com/macros/s/abc/exec"


def _transport(handler):
    return httpx.MockTransport(handler)


class TestSheetSensor:

    @pytest.mark.asyncio
    async def test_returns_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            return httpx.Response(200, json={"WaterLevel": 42, "Timestamp": "2026-03-14T09:30:00Z"})

        sensor = SheetSensor(SHEET_URL, transport=_transport(handler))
        assert await sensor.fetch() == {"WaterLevel": 42, "Timestamp": "2026-03-14T09:30:00Z"}

    @pytest.mark.asyncio
    async def test_follows_apps_script_redirect(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "script.example.com":
                return httpx.Response(302, headers={"Location": "https://content.example.com/echo"})
            return httpx.Response(200, json={"WaterLevel": 7})

        sensor = SheetSensor(SHEET_URL, transport=_transport(handler))
        assert await sensor.fetch() == {"WaterLevel": 7}

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        sensor = SheetSensor(SHEET_URL, transport=_transport(lambda r: httpx.Response(500)))
        with pytest.raises(TransportError):
            await sensor.fetch()

    @pytest.mark.asyncio
    async def test_malformed_json(self) -> None:
        sensor = SheetSensor(SHEET_URL, transport=_transport(lambda r: httpx.Response(200, text="<html>")))
        with pytest.raises(TransportError):
            await sensor.fetch()

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        sensor = SheetSensor(SHEET_URL, transport=_transport(handler))
        with pytest.raises(TransportError):
            await sensor.fetch()

    def test_url_required(self) -> None:
        with pytest.raises(ValueError):
            SheetSensor("")


class TestSimulatedSensor:

    @pytest.mark.asyncio
    async def test_manual_payload_shape(self) -> None:
        sensor = SimulatedDepthSensor()
        sensor.set_manual(64.0)

        data = await sensor.fetch()

        assert data["WaterLevel"] == 64.0
        assert data["Rate"] == 0.0
        assert isinstance(data["Timestamp"], str)

    @pytest.mark.asyncio
    async def test_disabled_behaves_like_transport_failure(self) -> None:
        sensor = SimulatedDepthSensor()
        sensor.disable()
        with pytest.raises(TransportError):
            await sensor.fetch()

    @pytest.mark.asyncio
    async def test_pattern_never_negative(self) -> None:
        sensor = SimulatedDepthSensor()
        sensor.set_pattern(PatternConfig(type="random", baseline=0.0, amplitude=50.0))
        for _ in range(20):
            assert (await sensor.fetch())["WaterLevel"] >= 0.0
        assert sensor.status()["mode"] == "pattern"

    @pytest.mark.asyncio
    async def test_rate_is_cm_per_minute_between_fetches(self) -> None:
        ticks = iter([1000.0, 1030.0])
        sensor = SimulatedDepthSensor(clock=lambda: next(ticks))
        sensor.set_manual(40.0)
        await sensor.fetch()
        sensor.set_manual(43.0)

        data = await sensor.fetch()

        assert data["WaterLevel"] == 43.0
        assert data["Rate"] == 6.0

    @pytest.mark.asyncio
    async def test_disabled_sensor_keeps_previous_sample_for_rate(self) -> None:
        ticks = iter([0.0, 60.0])
        sensor = SimulatedDepthSensor(clock=lambda: next(ticks))
        sensor.set_manual(10.0)
        await sensor.fetch()
        sensor.disable()
        with pytest.raises(TransportError):
            await sensor.fetch()
        sensor.enable()
        sensor.set_manual(20.0)

        assert (await sensor.fetch())["Rate"] == 10.0

    @pytest.mark.parametrize(
        "t, expected",
        [(0.0, 85.0), (59.9, 85.0), (60.0, 40.0), (119.0, 40.0), (120.0, 85.0)],
    )
    def test_step_pattern_surges_then_recedes(self, t, expected) -> None:
        assert pattern_depth(PatternConfig(type="step", noise=0.0), t) == expected

    def test_ramp_pattern_climbs_over_its_period(self) -> None:
        cfg = PatternConfig(type="ramp", noise=0.0, ramp_min=10.0, ramp_max=90.0, ramp_period_s=100)
        assert pattern_depth(cfg, 0.0) == 10.0
        assert pattern_depth(cfg, 50.0) == 50.0
        assert pattern_depth(cfg, 100.0) == 10.0


class TestAlertRelay:

    @pytest.mark.asyncio
    async def test_posts_manual_alert_payload(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"sentTo": ["a@x.org"]})

        relay = AlertRelayClient(SHEET_URL, transport=_transport(handler))
        assert await relay.send(["a@x.org"], "hello") == ["a@x.org"]
        assert seen == [{"action": "manual_alert", "emails": ["a@x.org"], "message": "hello"}]

    @pytest.mark.asyncio
    async def test_fire_and_forget_does_not_read_body(self) -> None:
        relay = AlertRelayClient(
            SHEET_URL,
            read_response=False,
            transport=_transport(lambda r: httpx.Response(200, json={"sentTo": ["x@y.z"]})),
        )
        assert await relay.send(["a@x.org"], "hello") is None

    @pytest.mark.asyncio
    async def test_unreadable_body(self) -> None:
        relay = AlertRelayClient(SHEET_URL, transport=_transport(lambda r: httpx.Response(200, text="OK")))
        assert await relay.send(["a@x.org"], "hello") is None

    @pytest.mark.asyncio
    async def test_error_status_raises_dispatch_error(self) -> None:
        relay = AlertRelayClient(SHEET_URL, transport=_transport(lambda r: httpx.Response(503)))
        with pytest.raises(DispatchError):
            await relay.send(["a@x.org"], "hello")

    @pytest.mark.asyncio
    async def test_missing_url(self) -> None:
        with pytest.raises(DispatchError):
            await AlertRelayClient("").send(["a@x.org"], "hello")


FORECAST = {
    "current": {"temperature_2m": 29.4, "rain": 0.6, "relative_humidity_2m": 81},
    "hourly": {"precipitation_probability": [65, 70, 40]},
}


class TestWeather:

    def test_parse_forecast(self) -> None:
        snap = parse_forecast(FORECAST)
        assert snap.temperature_c == 29.4
        assert snap.precipitation_probability == 65.0
        assert snap.humidity_pct == 81.0
        assert snap.is_raining is True

    def test_parse_without_rain_field(self) -> None:
        snap = parse_forecast({"current": {"temperature_2m": 25}, "hourly": {"precipitation_probability": []}})
        assert snap.rain_mm is None
        assert snap.is_raining is False
        assert snap.precipitation_probability == 0.0

    @pytest.mark.parametrize("body", [{}, {"current": {}}, {"current": {"temperature_2m": "hot"}, "hourly": {}}, []])
    def test_malformed_forecast(self, body) -> None:
        with pytest.raises(TransportError):
            parse_forecast(body)

    @pytest.mark.asyncio
    async def test_client_sends_location(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json=FORECAST)

        client = OpenMeteoClient(6.5244, 3.3792, url="https://weather.example.com/v1/forecast", transport=_transport(handler))
        snap = await client.fetch()

        assert snap.temperature_c == 29.4
        assert seen[0]["latitude"] == "6.5244"
        assert seen[0]["longitude"] == "3.3792"
        assert seen[0]["hourly"] == "precipitation_probability"

    @pytest.mark.asyncio
    async def test_client_error(self) -> None:
        client = OpenMeteoClient(0, 0, transport=_transport(lambda r: httpx.Response(502)))
        with pytest.raises(TransportError):
            await client.fetch()
