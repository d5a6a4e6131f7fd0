from pathlib import Path

from fastapi import Request

from .provider.discovery import ModelDiscovery
from .provider.usage_tracking import UsageTracker


def get_config_dir(request: Request) -> Path:
    """
    Directory holding auth-profiles.json / usage-history.json for this app.
    """
    return request.app.state.config_dir


def get_usage_tracker(request: Request) -> UsageTracker:
    """
    The app-scoped UsageTracker created in create_app().
    """
    return request.app.state.usage_tracker


def get_model_discovery(request: Request) -> ModelDiscovery:
    return request.app.state.model_discovery
