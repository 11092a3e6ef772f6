"""Shared service graph for the API process."""

from __future__ import annotations

from typing import Optional

from echoguard.config import load_settings
from echoguard.logging_setup import setup_logging
from echoguard.services import Services, build_services

_services: Optional[Services] = None


def get_services() -> Services:
    """Return the singleton Services instance, building it on first use.

    Tests replace it through ``app.dependency_overrides[get_services]``.
    """
    global _services
    if _services is None:
        settings = load_settings()
        setup_logging(settings.log_level)
        _services = build_services(settings)
    return _services
