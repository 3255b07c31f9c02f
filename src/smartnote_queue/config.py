"""Configuration for the smart note queue.

Usage:
    from smartnote_queue.config import Config

    # Access config values
    database_url = Config.QUEUE_DATABASE_URL
    max_workers = Config.WORKER_MAX_CONCURRENCY
"""

import os


class Config:
    """Centralized configuration for the note-processing queue.

    All configuration values are class variables that can be accessed directly.
    Values are loaded from environment variables with sensible defaults.

    Example:
        from smartnote_queue.config import Config

        print(Config.SMARTNOTE_DIR)
        print(Config.GENERATION_URL)
    """

    # ========================================================================
    # Helper methods (static)
    # ========================================================================

    @staticmethod
    def _get_smartnote_dir() -> str:
        """Get and validate SMARTNOTE_DIR environment variable.

        Returns:
            Validated SMARTNOTE_DIR path

        Raises:
            ValueError: If SMARTNOTE_DIR not set or not writable
        """
        smartnote_dir = os.getenv("SMARTNOTE_DIR")
        if not smartnote_dir:
            raise ValueError("SMARTNOTE_DIR environment variable must be set")

        if not os.access(smartnote_dir, os.W_OK):
            raise ValueError(
                f"SMARTNOTE_DIR does not exist or no write permission: {smartnote_dir}"
            )

        return smartnote_dir

    @staticmethod
    def _get_value(key: str, default: str) -> str:
        """Get configuration value from environment with optional default."""
        return os.getenv(key, default)

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer configuration value."""
        return int(os.getenv(key, str(default)))

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Get float configuration value."""
        return float(os.getenv(key, str(default)))

    @staticmethod
    def _get_bool(key: str, default: bool = False) -> bool:
        """Get boolean configuration value."""
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    # ========================================================================
    # Common Configuration
    # ========================================================================

    SMARTNOTE_DIR: str = _get_smartnote_dir()

    LOG_LEVEL: str = _get_value("LOG_LEVEL", "INFO")

    # ========================================================================
    # Database Configuration
    # ========================================================================

    QUEUE_DATABASE_URL: str = _get_value(
        "DATABASE_URL", f"sqlite:///{SMARTNOTE_DIR}/smartnote_queue.db"
    )

    # Done/Failed entries older than this are removed by the cleanup command
    TERMINAL_RETENTION_DAYS: int = _get_int("TERMINAL_RETENTION_DAYS", 30)

    # ========================================================================
    # Worker Configuration
    # ========================================================================

    WORKER_MAX_CONCURRENCY: int = _get_int("WORKER_MAX_CONCURRENCY", 4)

    # ========================================================================
    # External Services
    # ========================================================================

    GENERATION_URL: str = _get_value("GENERATION_URL", "http://localhost:8080/v1/generate")
    GENERATION_API_KEY: str = _get_value("GENERATION_API_KEY", "")
    GENERATION_TIMEOUT: float = _get_float("GENERATION_TIMEOUT", 120.0)

    TRANSLATION_ENABLED: bool = _get_bool("TRANSLATION_ENABLED", True)
    TRANSLATION_URL: str = _get_value(
        "TRANSLATION_URL",
        "https://translate.googleapis.com/translate_a/single?client=gtx&dt=t",
    )
    TRANSLATION_TARGET_LANGUAGE: str = _get_value("TRANSLATION_TARGET_LANGUAGE", "en")
    TRANSLATION_TIMEOUT: float = _get_float("TRANSLATION_TIMEOUT", 15.0)

    # ========================================================================
    # MQTT Configuration
    # ========================================================================

    BROADCAST_TYPE: str = _get_value("BROADCAST_TYPE", "mqtt")
    MQTT_BROKER: str = _get_value("MQTT_BROKER", "localhost")
    MQTT_PORT: int = _get_int("MQTT_PORT", 1883)
    MQTT_TOPIC: str = _get_value("MQTT_TOPIC", "smartnote/queue/events")
