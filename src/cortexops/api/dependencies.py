"""FastAPI dependency injection for shared application state."""

from __future__ import annotations

from fastapi import Request

from cortexops.config import Settings
from cortexops.generation.registry import TemplateRegistry
from cortexops.logger import RequestLogger
from cortexops.repositories.protocols import HistoryRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_history(request: Request) -> HistoryRepository:
    return request.app.state.history


def get_registry(request: Request) -> TemplateRegistry:
    return request.app.state.registry


def get_request_logger(request: Request) -> RequestLogger | None:
    return getattr(request.app.state, "request_logger", None)
