"""Configuration identifier allocation."""

from __future__ import annotations

from typing import Iterable


def allocate_provider_id(base_id: str, existing_ids: Iterable[str]) -> str:
    """Return ``base_id`` or the first free ``base_id-N`` (N = 1, 2, ...)."""
    taken = set(existing_ids)
    candidate = base_id
    counter = 1
    while candidate in taken:
        candidate = f"{base_id}-{counter}"
        counter += 1
    return candidate
