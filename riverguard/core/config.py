from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "RiverGuard Water Level Monitor"
    timezone: str = "Africa/Lagos"

    # Sensor source: "sheet" polls the Apps Script endpoint, "sim" uses the simulated sensor
    sensor_mode: str = "sim"
    sensor_url: str = Field(default="")

    # Email relay (Apps Script web app)
    relay_url: str = Field(default="")
    relay_read_response: bool = True  # False = fire-and-forget, response body never read

    http_timeout_seconds: float = 10.0

    # Weather (Open-Meteo)
    weather_url: str = "https://api.open-meteo.com/v1/forecast"
    latitude: float = 6.5244
    longitude: float = 3.3792
    weather_refresh_seconds: int = 900

    # Container geometry and thresholds, all in cm measured from the bottom
    container_height_cm: float = 100.0
    warning_level_cm: float = 70.0
    flood_level_cm: float = 90.0

    # Polling
    poll_seconds: float = 3.0
    staleness_seconds: int = 300
    history_capacity: int = 20

    # Alerts
    alert_recipients: list[str] = Field(default_factory=list)
    alert_message: str = "CRITICAL TEST ALERT: RiverGuard System Triggered!"
    auto_alert_on_critical: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str = "riverguard.log"

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.container_height_cm <= 0:
            raise ValueError("container_height_cm must be positive")
        if not self.warning_level_cm < self.flood_level_cm <= self.container_height_cm:
            raise ValueError(
                "expected warning_level_cm < flood_level_cm <= container_height_cm, got "
                f"{self.warning_level_cm} / {self.flood_level_cm} / {self.container_height_cm}"
            )
        return self


settings = Settings()
