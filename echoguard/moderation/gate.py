"""Moderation gate: decides whether submitted content may be persisted."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from echoguard.config import DEFAULT_MONITORED_ATTRIBUTES, TOXICITY_THRESHOLD
from echoguard.errors import ProviderError, ValidationError
from echoguard.moderation.classifier import ToxicityClassifier
from echoguard.moderation.config_store import ConfigProvider
from echoguard.moderation.models import FailPolicy, RejectionType, ScreenResult
from echoguard.moderation.providers import CategoryFilterProvider

logger = logging.getLogger(__name__)

ProviderLookup = Callable[[str], CategoryFilterProvider]


class ModerationGate:
    """Screens content for toxicity and tags it with categories.

    Parameters
    ----------
    config : ConfigProvider
        Source of the live moderation config, read on every call.
    classifier : ToxicityClassifier | None
        Toxicity scorer.  Only invoked while the config toggle is on.
    providers : ProviderLookup | None
        Maps a provider identifier to a category-filter provider.
    threshold : float
        Scores strictly above this reject the content.
    fail_policy : FailPolicy
        Outcome when the classifier times out or errors.
    """

    def __init__(
        self,
        config: ConfigProvider,
        classifier: Optional[ToxicityClassifier] = None,
        providers: Optional[ProviderLookup] = None,
        threshold: float = TOXICITY_THRESHOLD,
        fail_policy: FailPolicy | str = FailPolicy.open,
        monitored_attributes: tuple[str, ...] = DEFAULT_MONITORED_ATTRIBUTES,
    ) -> None:
        self._config = config
        self._classifier = classifier
        self._providers = providers
        self.threshold = threshold
        self.fail_policy = FailPolicy(fail_policy)
        self.monitored_attributes = {a.upper() for a in monitored_attributes}

    # -- toxicity --------------------------------------------------------------

    def screen(self, content: str) -> ScreenResult:
        """Accept or reject *content*."""
        if content is None or not str(content).strip():
            raise ValidationError("Content must not be empty")

        config = self._config.get()
        if not config.use_perspective_api:
            return ScreenResult(accepted=True)

        if self._classifier is None:
            return self._on_failure(ProviderError("No toxicity classifier configured"))

        try:
            scores = self._classifier.analyze(content, config.category_filtering_request_timeout)
        except ProviderError as e:
            return self._on_failure(e)

        offending = {
            attr: score
            for attr, score in scores.items()
            if attr.upper() in self.monitored_attributes and score > self.threshold
        }
        if offending:
            worst = max(offending, key=offending.get)
            logger.info(
                "Content rejected: %s=%.2f over threshold %.2f (%r)",
                worst,
                offending[worst],
                self.threshold,
                content[:60],
            )
            return ScreenResult(
                accepted=False,
                rejection_type=RejectionType.inappropriate_content.value,
                reason=f"{worst} score {offending[worst]:.2f} exceeds {self.threshold:.2f}",
                scores=scores,
                classifier_invoked=True,
            )

        return ScreenResult(accepted=True, scores=scores, classifier_invoked=True)

    def _on_failure(self, error: ProviderError) -> ScreenResult:
        if self.fail_policy is FailPolicy.open:
            logger.warning("Toxicity check skipped, failing open: %s", error)
            return ScreenResult(accepted=True, classifier_invoked=True, failed_open=True)
        logger.warning("Toxicity check unavailable, failing closed: %s", error)
        return ScreenResult(
            accepted=False,
            rejection_type=RejectionType.moderation_unavailable.value,
            reason=error.message,
            classifier_invoked=True,
        )

    # -- categories ------------------------------------------------------------

    def categorize(self, content: str, timeout_ms: Optional[int] = None) -> dict[str, float]:
        """Return ``{category: score}`` from the configured provider.

        Provider failures propagate as :class:`ProviderError` /
        :class:`ProviderTimeout`; categorisation has no fail policy.
        """
        if content is None or not str(content).strip():
            raise ValidationError("Content must not be empty")
        if self._providers is None:
            raise ProviderError("No category filter providers configured")

        config = self._config.get()
        provider = self._providers(config.category_filtering_service_provider)
        timeout = timeout_ms if timeout_ms is not None else config.category_filtering_request_timeout
        categories = provider.get_categories(content, timeout)
        logger.debug("Categorised content with %s: %s", provider.name, categories)
        return categories
