"""Runtime configuration for the seed finder."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MC_SEEDFINDER_", env_file=".env", extra="ignore")

    app_name: str = "mc-seedfinder"
    log_level: str = "INFO"
    worker_count: int = Field(
        default=0,
        ge=0,
        description="Search worker threads; 0 uses the machine's CPU count.",
    )
    batch_size: int = Field(
        default=1 << 15,
        gt=0,
        description="Candidates evaluated per numpy batch; cancellation is polled once per batch.",
    )
    progress_interval_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Minimum time between two progress events of one search stage.",
    )
    sieve_enabled: bool = Field(
        default=True,
        description="Enumerate only seed prefixes compatible with observed slime chunks.",
    )
    reference_x: int = Field(default=0, description="Chunk X observations are spiral-ordered around.")
    reference_z: int = Field(default=0, description="Chunk Z observations are spiral-ordered around.")
    telemetry_enabled: bool = True

    @property
    def reference(self) -> tuple[int, int]:
        return self.reference_x, self.reference_z


settings = Settings()
