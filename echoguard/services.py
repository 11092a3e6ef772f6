"""Wire stores, engines and providers together from :class:`Settings`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from echoguard.config import Settings
from echoguard.context.engine import ContextTrustEngine
from echoguard.context.fingerprint import GeoLocator, NullGeoLocator
from echoguard.context.store import ContextStore
from echoguard.moderation.classifier import PerspectiveClassifier
from echoguard.moderation.communities import CommunityModerationStore
from echoguard.moderation.config_store import CachedConfigProvider, ModerationConfigStore
from echoguard.moderation.gate import ModerationGate
from echoguard.moderation.providers import PROVIDER_NAMES, create_category_filter
from echoguard.moderation.reports import ReportStore


@dataclass
class Services:
    settings: Settings
    trust: ContextTrustEngine
    gate: ModerationGate
    config: CachedConfigProvider
    reports: ReportStore
    communities: CommunityModerationStore
    geo: GeoLocator


def build_services(
    settings: Settings,
    client: Optional[httpx.Client] = None,
    geo: Optional[GeoLocator] = None,
) -> Services:
    """Build the full object graph for one process."""
    data_dir = settings.data_path
    http = client or httpx.Client()

    config = CachedConfigProvider(
        ModerationConfigStore(data_dir, provider_names=PROVIDER_NAMES),
        ttl=settings.config_cache_ttl,
    )
    gate = ModerationGate(
        config,
        classifier=PerspectiveClassifier(
            settings.perspective_api_key,
            attributes=settings.monitored_attributes,
            client=http,
        ),
        providers=lambda name: create_category_filter(name, settings, client=http),
        threshold=settings.toxicity_threshold,
        fail_policy=settings.fail_policy,
        monitored_attributes=settings.monitored_attributes,
    )
    return Services(
        settings=settings,
        trust=ContextTrustEngine(ContextStore(data_dir), settings.max_unverified_attempts),
        gate=gate,
        config=config,
        reports=ReportStore(data_dir),
        communities=CommunityModerationStore(data_dir),
        geo=geo or NullGeoLocator(),
    )
