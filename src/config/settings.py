"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use BANGUMICARD_ prefix (e.g., BANGUMICARD_ID_SCHEME=hash).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use BANGUMICARD_ prefix.

    Examples:
        BANGUMICARD_ID_PREFIX=BC
        BANGUMICARD_ID_SCHEME=counter
        BANGUMICARD_LAYOUT=stacked
    """

    model_config = SettingsConfigDict(
        env_prefix="BANGUMICARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Card identifiers
    id_prefix: str = Field(
        default="BC",
        pattern=r"^[A-Za-z][A-Za-z0-9]*$",
        description="Literal tag prepended to every card instance id",
    )

    id_scheme: Literal["counter", "hash", "random"] = Field(
        default="counter",
        description="How instance ids are allocated within one render pass",
    )

    id_width: int = Field(
        default=6,
        ge=4,
        le=16,
        description="Number of token characters following the prefix",
    )

    # Card markup
    layout: Literal["grouped", "stacked"] = Field(
        default="grouped",
        description="Card layout variant",
    )

    loading_text: str = Field(
        default="Loading…",
        description="Placeholder text shown in data slots before the fetch resolves",
    )

    profile_url_template: str = Field(
        default="https://bangumi.tv/user/{user}",
        description="Profile page the card links to; {user} is URL-path encoded",
    )

    api_url_template: str = Field(
        default="https://api.bgm.tv/v0/users/{user}",
        description="Profile API endpoint fetched by the client script",
    )

    # Client script diagnostics
    log_tag: str = Field(
        default="[BANGUMI-CARD]",
        description="Tag prefixed to console trace lines emitted by the client script",
    )


# Singleton instance - import this in your code
appsettings = AppSettings()
