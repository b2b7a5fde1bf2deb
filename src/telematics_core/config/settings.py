"""
Settings shared by the motion, driver and risk engines
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelematicsSettings(BaseSettings):
    """Engine settings with TELEMATICS_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="TELEMATICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Service identification
    service_name: str = Field(
        default="telematics-core",
        description="Name used to tag log records",
    )
    environment: str = Field(default="development", description="Deployment environment")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Motion fusion
    motion_analysis_interval_ms: int = Field(
        default=500, gt=0, description="Analysis tick interval in normal mode"
    )
    motion_parking_interval_ms: int = Field(
        default=5000, gt=0, description="Analysis tick interval in parking mode"
    )
    motion_buffer_size: int = Field(
        default=100, gt=0, description="Samples kept per sensor kind"
    )
    speed_history_size: int = Field(
        default=10, gt=0, description="Raw speeds averaged into the reported speed"
    )

    # Driver detection
    driver_analysis_interval_ms: int = Field(
        default=2000, gt=0, description="Driver detection tick interval"
    )
    driver_buffer_size: int = Field(
        default=50, gt=0, description="Motion samples kept per sensor kind"
    )
    driver_ambient_buffer_size: int = Field(
        default=20, gt=0, description="Proximity and light samples kept"
    )
    driver_confidence_threshold: float = Field(
        default=0.75, ge=0.0, le=1.0, description="Probability above which the holder is the driver"
    )

    # Risk assessment
    risk_profile_refresh_hours: float = Field(
        default=24.0, gt=0, description="Interval between driver profile refreshes"
    )
    risk_analysis_window_days: float = Field(
        default=7.0, gt=0, description="Trip and event window for profiles and historical risk"
    )
    risk_immediate_window_hours: float = Field(
        default=24.0, gt=0, description="Event window for immediate risk"
    )
    trip_history_size: int = Field(default=100, gt=0, description="Trips kept in history")
    event_history_size: int = Field(default=5000, gt=0, description="Driving events kept in history")
    accident_history_size: int = Field(
        default=100, gt=0, description="Accident records kept in history"
    )
    behavior_history_size: int = Field(
        default=60, gt=0, description="Behavior snapshots kept for trend comparison"
    )
    behavior_trend_window: int = Field(
        default=30, gt=0, description="Snapshots per trend comparison window"
    )
    base_premium: float = Field(default=1200.0, gt=0, description="Base annual premium")
    route_cluster_radius_m: float = Field(
        default=300.0, gt=0, description="Max endpoint distance for trips on the same route"
    )


settings = TelematicsSettings()
