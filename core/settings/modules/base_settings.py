from __future__ import annotations

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_FILE = os.getenv("STOREFRONT_ENV_FILE", ".env")


class StorefrontBaseSettings(BaseSettings):
    """
    Base for every settings section.

    Values come from the environment or from the env file named by
    ``STOREFRONT_ENV_FILE`` (``.env`` by default). Fields may be passed by
    name as well as by their env alias, which is what tests do.
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
