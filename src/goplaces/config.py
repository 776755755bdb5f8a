"""Configuration management for the GoPlaces client."""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientProfile(str, Enum):
    """Deployment surface the client runs in."""

    APP = "app"
    SHARE_EXTENSION = "share_extension"


PROFILE_USER_AGENTS: dict[ClientProfile, str] = {
    ClientProfile.APP: "GoPlaces-iOS/1.0",
    ClientProfile.SHARE_EXTENSION: "GoPlaces-ShareExt/1.0",
}


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GOPLACES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API
    api_base_url: str = "https://api-production-b29f.up.railway.app"
    api_token: str = ""
    profile: ClientProfile = ClientProfile.APP

    # Timeouts (seconds)
    request_timeout: float = 30.0
    resource_timeout: float = 60.0

    # Polling
    poll_interval: float = 2.0
    max_poll_attempts: int = 30

    # Concurrency
    max_concurrent_jobs: int = 5
    admission_timeout: float = 30.0
    admission_check_interval: float = 1.0

    # Expiry of registry entries
    expiry_multiplier: float = 3.0
    expiry_floor: float = 30.0
    expiry_ceiling: float = 300.0

    # Connectivity probe
    probe_interval: float = 10.0
    probe_timeout: float = 3.0

    log_level: str = "INFO"

    @property
    def user_agent(self) -> str:
        """User-Agent header for the configured profile."""
        return PROFILE_USER_AGENTS[self.profile]

    def for_profile(self, profile: ClientProfile) -> "Settings":
        """Return a copy of these settings bound to another profile."""
        return self.model_copy(update={"profile": profile})


# Global settings instance
settings = Settings()
