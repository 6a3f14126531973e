from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NexmoSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NEXMO_", env_file=".env", extra="ignore"
    )

    api_key: str = Field(default="")
    api_secret: str = Field(default="")
    from_number: str = Field(default="")  # custom sender ID

    # Credentials are left out of the payload; the session carries the auth.
    use_oauth: bool = Field(default=False)
    timeout: float | None = Field(default=None)

    # Gate webhook handlers on the provider's published subnets
    verify_ips: bool = Field(default=False)


@lru_cache
def get_settings() -> NexmoSettings:
    return NexmoSettings()
