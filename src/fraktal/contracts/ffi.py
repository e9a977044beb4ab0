"""Helpers for building FireFly Interface (FFI) documents."""

from __future__ import annotations

from typing import Any

STRING = {"type": "string"}


def param(name: str, schema: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"name": name, "schema": schema or STRING}


def method(name: str, *params: str, returns: dict[str, Any] | None = None) -> dict[str, Any]:
    """A contract method whose parameters are all strings."""
    return {
        "name": name,
        "params": [param(p) for p in params],
        "returns": [param("", returns)] if returns else [],
    }


def event(name: str, *params: str) -> dict[str, Any]:
    return {"name": name, "params": [param(p) for p in params]}


def interface(
    name: str,
    version: str,
    methods: list[dict[str, Any]],
    events: list[dict[str, Any]] | None = None,
    description: str = "",
) -> dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "description": description,
        "methods": methods,
        "events": events or [],
    }


def event_names(ffi: dict[str, Any]) -> list[str]:
    """Names of the events an interface declares."""
    return [e["name"] for e in ffi.get("events", [])]
