"""Adapter registry/factory."""
from __future__ import annotations

from .base import APIAdapter
from .clickup import ClickUpAdapter, PageRequest

_ADAPTERS: dict[str, type[APIAdapter]] = {
    ClickUpAdapter.name: ClickUpAdapter,
}


def get_adapter(name: str, **kwargs) -> APIAdapter:
    cls = _ADAPTERS.get(name.lower())
    if not cls:
        raise ValueError(f"Unknown adapter: {name}")
    return cls(**kwargs)


__all__ = ["get_adapter", "APIAdapter", "ClickUpAdapter", "PageRequest"]
