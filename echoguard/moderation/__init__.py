"""Content moderation: toxicity gate, category filters and post reports."""

from echoguard.moderation.classifier import PerspectiveClassifier
from echoguard.moderation.communities import CommunityModerationStore
from echoguard.moderation.config_store import CachedConfigProvider, ModerationConfigStore
from echoguard.moderation.gate import ModerationGate
from echoguard.moderation.models import FailPolicy, ModerationConfig, Report, ScreenResult
from echoguard.moderation.providers import DEFAULT_PROVIDER, PROVIDER_NAMES, create_category_filter
from echoguard.moderation.reports import ReportStore

__all__ = [
    "CachedConfigProvider",
    "CommunityModerationStore",
    "DEFAULT_PROVIDER",
    "FailPolicy",
    "ModerationConfig",
    "ModerationConfigStore",
    "ModerationGate",
    "PROVIDER_NAMES",
    "PerspectiveClassifier",
    "Report",
    "ReportStore",
    "ScreenResult",
    "create_category_filter",
]
