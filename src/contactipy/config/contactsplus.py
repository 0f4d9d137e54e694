"""Configuration for the ContactsPlus remote store."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import bool_from_env, float_from_env, require_env_vars

DEFAULT_API_BASE = "https://api.contactsplus.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_SCROLL_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class ContactsPlusConfig:
    access_token: str
    api_base: str = DEFAULT_API_BASE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    readonly: bool = False
    team_id: str | None = None
    page_size: int = DEFAULT_SCROLL_PAGE_SIZE

    @classmethod
    def from_environment(cls) -> ContactsPlusConfig:
        return get_contactsplus_config()

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def get_contactsplus_config() -> ContactsPlusConfig:
    values = require_env_vars(["CONTACTSPLUS_ACCESS_TOKEN"])
    api_base = os.getenv("CONTACTSPLUS_API_BASE") or DEFAULT_API_BASE
    team_id = os.getenv("CONTACTSPLUS_TEAM_ID") or None
    return ContactsPlusConfig(
        access_token=values["CONTACTSPLUS_ACCESS_TOKEN"],
        api_base=api_base.rstrip("/"),
        timeout_seconds=float_from_env("CONTACTSPLUS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        readonly=bool_from_env("READONLY_MODE", False),  # noqa: FBT003
        team_id=team_id,
    )
