"""Startup configuration for the exporter."""

from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


@dataclass
class ExporterConfig:
    """Exporter configuration, fixed for the lifetime of the process."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}")
        self.log_level = self.log_level.upper()

    @property
    def bind_address(self) -> str:
        return f"{self.host}:{self.port}"
