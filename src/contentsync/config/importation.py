"""Defaults for reconciliation runs."""

from __future__ import annotations

from dataclasses import dataclass

from contentsync.domain.importation import DEFAULT_CHUNK_SIZE

from .env import optional_int_env


@dataclass(frozen=True, slots=True)
class ImportationConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    deletion_limit: int | None = None  # None means unlimited


def get_importation_config() -> ImportationConfig:
    chunk_size = optional_int_env("CONTENTSYNC_CHUNK_SIZE", minimum=1)
    return ImportationConfig(
        chunk_size=DEFAULT_CHUNK_SIZE if chunk_size is None else chunk_size,
        deletion_limit=optional_int_env("CONTENTSYNC_DELETION_LIMIT"),
    )
