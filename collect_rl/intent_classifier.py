"""
Intent classification for customer replies.

The primary path asks an external classification service (a trained NLP
model behind an HTTP endpoint) for the best-matching intent. Any failure
on that path (network error, timeout, non-2xx status, malformed body)
falls back to keyword matching against a static phrase table, so a turn
is never aborted by classification.

Service contract:
    POST {base_url}/classify  {"text": "<utterance>"}
    200 -> {"best_intent": {"name": "<intent name>", "confidence": 0.0..1.0}}
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from .types import ClassifiedIntent, Intent, unknown_intent
from .util import clamp

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFIER_URL = "http://localhost:8000"
CLASSIFY_PATH = "/classify"
DEFAULT_TIMEOUT = 5.0

# Declaration order breaks ties: the first entry reaching the best score wins.
FALLBACK_PATTERNS: Dict[str, List[str]] = {
    "Immediate Payment": ["pay now", "pay today", "paying now", "will pay"],
    "Promise to Pay": ["will pay", "promise", "next week", "by friday"],
    "Partial Payment": ["partial", "some money", "part of", "half"],
    "Financial Hardship": ["lost job", "no money", "financial difficulty", "can't afford"],
    "Loan Dispute": ["not mine", "wrong", "dispute", "never took"],
    "Refusal to Pay": ["won't pay", "refuse", "not paying", "never"],
    "Request for Extension": ["more time", "extend", "delay", "later"],
}

# score / FULL_CONFIDENCE_SCORE, capped at 1
FULL_CONFIDENCE_SCORE = 3.0


class ClassificationError(Exception):
    """The classification service could not produce a usable answer."""


def find_intent(intents: Sequence[Intent], name: str) -> Optional[Intent]:
    """Case-insensitive exact name match against the catalog."""
    wanted = name.strip().lower()
    for intent in intents:
        if intent.name.strip().lower() == wanted:
            return intent
    return None


def keyword_score(text: str, keywords: Sequence[str]) -> int:
    """Sum of word counts of every phrase found in ``text``."""
    return sum(len(k.split()) for k in keywords if k in text)


def fallback_classify(
    text: str,
    intents: Sequence[Intent],
    patterns: Optional[Dict[str, List[str]]] = None,
) -> ClassifiedIntent:
    """
    Classify ``text`` with the static keyword table.
    
    Only table entries present in the catalog are candidates. Never raises;
    with no keyword hits the synthetic Unknown intent (confidence 0) is
    returned.
    
    Args:
        text: Raw customer utterance
        intents: Configured intent catalog
        patterns: Override for the keyword table
        
    Returns:
        The best-scoring catalog intent with confidence min(score / 3, 1)
    """
    lowered = (text or "").lower()
    best: Optional[Intent] = None
    best_score = 0

    for name, keywords in (patterns or FALLBACK_PATTERNS).items():
        intent = find_intent(intents, name)
        if intent is None:
            continue
        score = keyword_score(lowered, keywords)
        if score > best_score:
            best, best_score = intent, score

    if best is None:
        return unknown_intent(0.0, source="fallback")

    confidence = min(best_score / FULL_CONFIDENCE_SCORE, 1.0)
    return replace(best.with_confidence(confidence), source="fallback")


def parse_response(body: Any) -> Tuple[str, float]:
    """
    Extract (intent name, confidence) from a service response body.
    
    Raises:
        ClassificationError: If the body does not follow the contract
    """
    if not isinstance(body, dict):
        raise ClassificationError(f"Expected JSON object, got {type(body).__name__}")
    best = body.get("best_intent")
    if not isinstance(best, dict):
        raise ClassificationError("Response has no best_intent object")

    name = best.get("name", "")
    if not isinstance(name, str):
        raise ClassificationError("best_intent.name is not a string")

    confidence = best.get("confidence", 0.0)
    if confidence is None:
        confidence = 0.0
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ClassificationError("best_intent.confidence is not a number")
    if not math.isfinite(confidence):
        raise ClassificationError(f"best_intent.confidence is not finite: {confidence}")

    return name, clamp(float(confidence), 0.0, 1.0)


class IntentClassifier:
    """
    Remote intent classifier with a deterministic keyword fallback.
    
    Exactly one request is attempted per call; there is no retry.
    
    Example:
        >>> classifier = IntentClassifier(intents, base_url="http://nlp:8000")
        >>> intent = await classifier.classify("I will pay next week")
        >>> intent.name, intent.confidence
    """

    def __init__(
        self,
        intents: Sequence[Intent],
        base_url: str = DEFAULT_CLASSIFIER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        use_remote: bool = True,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            intents: Intent catalog, immutable for the classifier's lifetime
            base_url: Root URL of the classification service
            timeout: Total seconds allowed for the request; expiry means fallback
            use_remote: Set False to classify with keywords only
            session: Optional shared aiohttp session (caller owns its lifetime).
                When omitted, one session is opened on the first request and
                reused until ``close``.
        """
        self.intents: Tuple[Intent, ...] = tuple(intents)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.use_remote = use_remote
        self.session = session
        self._owned_session: Optional[aiohttp.ClientSession] = None
        self._classification_count = 0
        self._remote_success_count = 0
        self._fallback_count = 0

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{CLASSIFY_PATH}"

    async def classify(self, text: str) -> ClassifiedIntent:
        """
        Classify ``text``; never raises for service problems.
        """
        self._classification_count += 1

        if self.use_remote:
            try:
                intent = await self.classify_remote(text)
                self._remote_success_count += 1
                return intent
            except ClassificationError as e:
                logger.warning(f"Remote intent classification failed, using keywords: {e}")

        self._fallback_count += 1
        intent = self.fallback(text)
        logger.debug(f"Keyword classified '{text[:30]}...' as {intent.name}")
        return intent

    async def classify_remote(self, text: str) -> ClassifiedIntent:
        """
        Classify via the service only.
        
        Raises:
            ClassificationError: On any transport or contract failure
        """
        body = await self._request(text)
        name, confidence = parse_response(body)

        intent = find_intent(self.intents, name)
        if intent is None:
            logger.info(f"Classifier returned intent '{name}' not in catalog")
            return unknown_intent(confidence, source="remote", label=name or None)

        return intent.with_confidence(confidence)

    def fallback(self, text: str) -> ClassifiedIntent:
        return fallback_classify(text, self.intents)

    def _client_session(self) -> aiohttp.ClientSession:
        if self.session is not None:
            return self.session
        if self._owned_session is None or self._owned_session.closed:
            self._owned_session = aiohttp.ClientSession()
        return self._owned_session

    async def close(self) -> None:
        """Close the HTTP session opened by this classifier, if any."""
        if self._owned_session is not None and not self._owned_session.closed:
            await self._owned_session.close()
        self._owned_session = None

    async def _request(self, text: str) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            return await self._post(self._client_session(), text, timeout)
        except asyncio.TimeoutError as e:
            raise ClassificationError(f"Timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise ClassificationError(f"Transport error: {e}") from e

    async def _post(
        self,
        session: aiohttp.ClientSession,
        text: str,
        timeout: aiohttp.ClientTimeout,
    ) -> Any:
        async with session.post(self.endpoint, json={"text": text}, timeout=timeout) as response:
            if not 200 <= response.status < 300:
                raise ClassificationError(f"API error: {response.status}")
            try:
                return await response.json(content_type=None)
            except ValueError as e:
                raise ClassificationError(f"Malformed response body: {e}") from e

    @property
    def stats(self) -> dict:
        """Get classification statistics."""
        return {
            "total": self._classification_count,
            "remote_successes": self._remote_success_count,
            "fallbacks": self._fallback_count,
            "remote_rate": (
                self._remote_success_count / self._classification_count
                if self._classification_count > 0 else 0.0
            ),
        }
