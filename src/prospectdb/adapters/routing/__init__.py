"""Driving route adapter."""

from __future__ import annotations

from .client import RoutingClient

__all__ = ["RoutingClient"]
