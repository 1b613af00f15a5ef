"""Defaults for identifier generation and import handling."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var

DEFAULT_ID_PREFIX = "Vd_S"
INITIAL_ID_COUNTER = 1


@dataclass(frozen=True, slots=True)
class ContactsConfig:
    default_id_prefix: str = DEFAULT_ID_PREFIX
    initial_id_counter: int = INITIAL_ID_COUNTER


def get_contacts_config() -> ContactsConfig:
    return ContactsConfig(
        default_id_prefix=optional_env_var("PROSPECTDB_ID_PREFIX", DEFAULT_ID_PREFIX),
    )
