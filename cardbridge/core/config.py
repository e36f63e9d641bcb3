"""
Application configuration.
All settings are loaded from environment variables (or a local .env file).
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Bridge settings loaded from environment variables.

    Every field has a default so the service starts against a local broker
    without any configuration.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # Comma-separated origins. Empty = allow any origin.
    cors_origins: str = ""
    # Browser client assets, served at / when the directory exists.
    frontend_dir: str = "frontend"
    http_host: str = "0.0.0.0"
    http_port: int = 9201

    # ===========================================
    # TOPICS
    # ===========================================
    team_id: str = "blink_01"
    topic_prefix: str = "rfid"

    # ===========================================
    # MQTT BROKER
    # ===========================================
    mqtt_enabled: bool = True
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_client_id: str = ""  # empty = broker-assigned
    mqtt_keepalive: int = 60
    mqtt_publish_qos: int = 0
    mqtt_reconnect_interval: float = 3.0
    publish_timeout_seconds: float = 5.0

    # ===========================================
    # PUSH CHANNEL
    # ===========================================
    client_queue_size: int = 100

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("mqtt_publish_qos")
    @classmethod
    def validate_qos(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("mqtt_publish_qos must be 0, 1 or 2")
        return v

    @field_validator("publish_timeout_seconds", "mqtt_reconnect_interval")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper().strip()

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list; ["*"] when nothing is configured."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
