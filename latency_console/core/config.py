from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Input Latency Console"
    timezone: str = "UTC"
    host: str = "127.0.0.1"
    port: int = 8000

    # Device channel: "sim" for development, "ws" for the real bridge
    device_mode: str = Field(default="sim")
    device_ws_url: str = "ws://127.0.0.1:1838/ws"

    # Calibration sweep
    sweep_step: int = 40
    sweep_tick_ms: float = 40.0  # telemetry arrives at ~50Hz, 25Hz ticks won't miss a transition
    sweep_threshold: float = 0.1
    sweep_width: int = 1920
    sweep_height: int = 1080

    # Repeat batch
    batch_count: int = 50
    batch_interval_ms: int = 500

    # Background monitor
    monitor_points: int = 500

    # Storage
    sqlite_path: str = Field(default="measurements.db")
    record_measurements: bool = True
    log_file: str = "latency_console.log"
    log_level: str = "INFO"

    # Simulated device
    sim_sensor_x: int = 700
    sim_sensor_y: int = 420
    sim_latency_ms: float = 60.0
    sim_jitter_ms: float = 15.0


settings = Settings()
