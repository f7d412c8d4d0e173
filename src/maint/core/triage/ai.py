"""
Natural-language classifier integration.

The engine treats the classifier as an opaque service: it sends a
description and gets back a category, a priority and a one-line summary.
Failures are retryable; once the retry budget is spent the engine falls
back to keyword classification instead of failing the item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from maint.core.errors import ClassificationFailure, UnknownCategoryError
from maint.core.retry import RetryConfig, call_with_retry
from maint.core.rules import RuleBook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Classification:
    """Raw classifier output."""

    category: str
    priority: str = ""
    summary: str = ""


@runtime_checkable
class Classifier(Protocol):
    """Anything that can classify a maintenance description."""

    def classify(self, description: str) -> Classification:
        """
        Classify a description.

        Raises:
            ClassificationFailure: If the service is unavailable or the
                response cannot be interpreted
        """
        ...


class HttpClassifier:
    """
    Classifier backed by a JSON-over-HTTP endpoint.

    The endpoint receives ``{"text": description}`` and must answer with an
    object holding ``category``, ``priority`` and ``summary`` strings.

    Example:
        >>> classifier = HttpClassifier("https://nlp.example.com/classify", api_key="k")
        >>> classifier.classify("Toilet keeps running").category
        'Plumbing'
    """

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout: float = 20.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def classify(self, description: str) -> Classification:
        try:
            response = self._client.post(
                self.endpoint,
                json={"text": description},
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise ClassificationFailure(f"Classifier request failed: {e}") from e
        except ValueError as e:
            raise ClassificationFailure(f"Classifier returned invalid JSON: {e}") from e

        return parse_classification(payload)

    def close(self) -> None:
        self._client.close()


def parse_classification(payload: Any) -> Classification:
    """
    Validate a classifier payload.

    Raises:
        ClassificationFailure: If the payload is not an object with a
            non-empty ``category`` string
    """
    if not isinstance(payload, dict):
        raise ClassificationFailure(
            f"Classifier returned {type(payload).__name__}, expected an object"
        )
    category = payload.get("category")
    if not isinstance(category, str) or not category.strip():
        raise ClassificationFailure("Classifier response is missing 'category'")
    return Classification(
        category=category.strip(),
        priority=str(payload.get("priority") or ""),
        summary=str(payload.get("summary") or ""),
    )


def classify_category(
    classifier: Classifier | None,
    description: str,
    rules: RuleBook,
    *,
    retry: RetryConfig | None = None,
    timeout: float | None = None,
) -> str | None:
    """
    Ask the classifier for a category, degrading to None on failure.

    Returns:
        A category known to ``rules``, or None when no classifier is
        configured, the classifier keeps failing, or it answers with a
        category the rule book does not know. None means "use keyword
        classification".
    """
    if classifier is None:
        return None

    try:
        result = call_with_retry(
            classifier.classify, description, config=retry, timeout=timeout
        )
    except Exception as e:
        logger.warning(f"Classifier unavailable, falling back to keywords: {e}")
        return None

    try:
        return rules.resolve(result.category).category
    except UnknownCategoryError as e:
        logger.warning(f"Classifier returned {e}; falling back to keywords")
        return None
