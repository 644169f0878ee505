"""
Tests for the intent classifier.

These tests verify the keyword fallback, response parsing, and the remote
path against both a mocked request and a real in-process HTTP server.
"""
import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from collect_rl.config import DEFAULT_INTENTS, EXTENDED_INTENTS
from collect_rl.intent_classifier import (
    FALLBACK_PATTERNS,
    ClassificationError,
    IntentClassifier,
    fallback_classify,
    find_intent,
    parse_response,
)
from collect_rl.types import ImpactType


def best_intent(name, confidence):
    return {"best_intent": {"name": name, "confidence": confidence}}


class MockedClassifier(IntentClassifier):
    """Classifier whose HTTP request is replaced by a canned body or error."""

    def __init__(self, intents, body=None, error=None, **kwargs):
        super().__init__(intents, **kwargs)
        self.body = body
        self.error = error
        self.calls = []

    async def _request(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.body


def classify(classifier, text):
    return asyncio.run(classifier.classify(text))


class TestFallbackClassify:
    """Keyword fallback classification."""

    def test_promise_outscores_immediate_payment(self):
        """'will pay' hits both entries; 'next week' tips it to Promise to Pay."""
        intent = fallback_classify("I will pay next week", EXTENDED_INTENTS)
        assert intent.name == "Promise to Pay"
        assert intent.confidence == 1.0
        assert intent.source == "fallback"

    def test_tie_goes_to_first_declared_entry(self):
        intent = fallback_classify("I will pay", EXTENDED_INTENTS)
        assert intent.name == "Immediate Payment"
        assert intent.confidence == pytest.approx(2 / 3)

    def test_only_catalog_intents_are_candidates(self):
        """Promise to Pay is not in the default catalog."""
        intent = fallback_classify("I will pay next week", DEFAULT_INTENTS)
        assert intent.name == "Immediate Payment"
        assert intent.confidence == pytest.approx(2 / 3)

    def test_confidence_caps_at_one(self):
        intent = fallback_classify("I lost job and have no money", EXTENDED_INTENTS)
        assert intent.name == "Financial Hardship"
        assert intent.type == ImpactType.NEGATIVE
        assert intent.confidence == 1.0

    def test_case_insensitive_text(self):
        intent = fallback_classify("I WILL PAY NOW", EXTENDED_INTENTS)
        assert intent.name == "Immediate Payment"

    def test_no_hits_returns_unknown(self):
        intent = fallback_classify("hello there", EXTENDED_INTENTS)
        assert intent.name == "Unknown"
        assert intent.type == ImpactType.NEUTRAL
        assert intent.confidence == 0.0

    def test_never_raises_on_degenerate_input(self):
        assert fallback_classify("", []).name == "Unknown"
        assert fallback_classify(None, EXTENDED_INTENTS).name == "Unknown"

    def test_catalog_name_match_is_case_insensitive(self):
        assert find_intent(DEFAULT_INTENTS, "refusal TO pay").id == "3"
        assert find_intent(DEFAULT_INTENTS, "Refusal") is None

    def test_pattern_table_covers_extended_catalog(self):
        names = {i.name for i in EXTENDED_INTENTS}
        assert set(FALLBACK_PATTERNS) == names


class TestParseResponse:
    """Service response parsing."""

    def test_valid(self):
        assert parse_response(best_intent("Refusal to Pay", 0.9)) == ("Refusal to Pay", 0.9)

    def test_confidence_is_clamped(self):
        assert parse_response(best_intent("A", 1.7))[1] == 1.0
        assert parse_response(best_intent("A", -0.2))[1] == 0.0

    def test_missing_confidence_is_zero(self):
        assert parse_response({"best_intent": {"name": "A"}}) == ("A", 0.0)

    @pytest.mark.parametrize("body", [
        None,
        [],
        "Refusal to Pay",
        {},
        {"best_intent": "Refusal to Pay"},
        {"best_intent": {"name": 3, "confidence": 0.5}},
        {"best_intent": {"name": "A", "confidence": "high"}},
        {"best_intent": {"name": "A", "confidence": True}},
        {"best_intent": {"name": "A", "confidence": float("nan")}},
        {"best_intent": {"name": "A", "confidence": float("inf")}},
        {"best_intent": {"name": "A", "confidence": float("-inf")}},
    ])
    def test_malformed(self, body):
        with pytest.raises(ClassificationError):
            parse_response(body)


class TestRemoteClassification:
    """Remote path with the HTTP request mocked out."""

    def test_resolves_catalog_intent(self):
        classifier = MockedClassifier(DEFAULT_INTENTS, body=best_intent("refusal to pay", 0.9))
        intent = classify(classifier, "I refuse")

        assert intent.id == "3"
        assert intent.name == "Refusal to Pay"
        assert intent.confidence == 0.9
        assert intent.source == "remote"
        assert classifier.calls == ["I refuse"]

    def test_unknown_label_becomes_unknown_intent(self):
        classifier = MockedClassifier(DEFAULT_INTENTS, body=best_intent("Complaint", 0.8))
        intent = classify(classifier, "this service is awful")

        assert intent.name == "Unknown"
        assert intent.type == ImpactType.NEUTRAL
        assert intent.confidence == 0.8
        assert "Complaint" in intent.description

    def test_malformed_body_falls_back(self):
        classifier = MockedClassifier(EXTENDED_INTENTS, body={"label": "x"})
        intent = classify(classifier, "I will pay next week")

        assert intent.name == "Promise to Pay"
        assert intent.source == "fallback"

    def test_transport_error_falls_back(self):
        classifier = MockedClassifier(
            EXTENDED_INTENTS, error=ClassificationError("connection refused")
        )
        intent = classify(classifier, "I refuse")

        assert intent.name == "Refusal to Pay"
        assert classifier.stats["fallbacks"] == 1
        assert classifier.stats["remote_successes"] == 0

    def test_remote_disabled_skips_request(self):
        classifier = MockedClassifier(EXTENDED_INTENTS, body=best_intent("Loan Dispute", 1.0),
                                      use_remote=False)
        intent = classify(classifier, "I will pay now")

        assert classifier.calls == []
        assert intent.name == "Immediate Payment"

    def test_stats(self):
        classifier = MockedClassifier(DEFAULT_INTENTS, body=best_intent("Immediate Payment", 1))
        classify(classifier, "a")
        classify(classifier, "b")

        stats = classifier.stats
        assert stats["total"] == 2
        assert stats["remote_successes"] == 2
        assert stats["remote_rate"] == 1.0


def run_against_server(handler, text, intents=EXTENDED_INTENTS, timeout=2.0):
    """Classify ``text`` against a local aiohttp app serving POST /classify."""

    async def main():
        app = web.Application()
        app.router.add_post("/classify", handler)
        async with test_utils.TestServer(app) as server:
            classifier = IntentClassifier(
                intents,
                base_url=f"http://{server.host}:{server.port}/",
                timeout=timeout,
            )
            try:
                return await classifier.classify(text), classifier
            finally:
                await classifier.close()

    return asyncio.run(main())


class TestHTTPContract:
    """Remote path over real HTTP."""

    def test_posts_text_and_reads_best_intent(self):
        received = {}

        async def handler(request):
            received.update(await request.json())
            return web.json_response(best_intent("Loan Dispute", 0.65))

        intent, classifier = run_against_server(handler, "that loan is not mine")

        assert received == {"text": "that loan is not mine"}
        assert intent.name == "Loan Dispute"
        assert intent.confidence == 0.65
        assert classifier.stats["remote_successes"] == 1

    def test_server_error_falls_back(self):
        async def handler(request):
            return web.json_response({"detail": "boom"}, status=500)

        intent, classifier = run_against_server(handler, "I need more time")

        assert intent.name == "Request for Extension"
        assert intent.source == "fallback"
        assert classifier.stats["fallbacks"] == 1

    def test_non_json_body_falls_back(self):
        async def handler(request):
            return web.Response(text="<html>oops</html>", content_type="text/html")

        intent, _ = run_against_server(handler, "I refuse")
        assert intent.name == "Refusal to Pay"
        assert intent.source == "fallback"

    def test_timeout_falls_back(self):
        async def handler(request):
            await asyncio.sleep(1.0)
            return web.json_response(best_intent("Immediate Payment", 1.0))

        intent, _ = run_against_server(handler, "maybe later", timeout=0.1)
        assert intent.name == "Request for Extension"
        assert intent.source == "fallback"

    def test_connection_refused_falls_back(self):
        async def main():
            classifier = IntentClassifier(EXTENDED_INTENTS, base_url="http://127.0.0.1:1", timeout=1.0)
            try:
                return await classifier.classify("half now")
            finally:
                await classifier.close()

        intent = asyncio.run(main())

        assert intent.name == "Partial Payment"
        assert intent.source == "fallback"

    def test_nan_confidence_falls_back(self):
        """The service's JSON may carry a bare NaN literal."""
        async def handler(request):
            return web.Response(
                text='{"best_intent": {"name": "Refusal to Pay", "confidence": NaN}}',
                content_type="application/json",
            )

        intent, classifier = run_against_server(handler, "I need more time")

        assert intent.name == "Request for Extension"
        assert intent.source == "fallback"
        assert classifier.stats["fallbacks"] == 1

    def test_reuses_one_http_session_until_closed(self):
        async def handler(request):
            return web.json_response(best_intent("Loan Dispute", 0.65))

        async def main():
            app = web.Application()
            app.router.add_post("/classify", handler)
            async with test_utils.TestServer(app) as server:
                classifier = IntentClassifier(
                    EXTENDED_INTENTS, base_url=f"http://{server.host}:{server.port}"
                )
                await classifier.classify("first")
                opened = classifier._owned_session
                await classifier.classify("second")
                same = classifier._owned_session is opened
                await classifier.close()
                return same, opened.closed, classifier

        same, closed, classifier = asyncio.run(main())

        assert same
        assert closed
        assert classifier.stats["remote_successes"] == 2

    def test_injected_session_is_not_closed(self):
        async def main():
            async with aiohttp.ClientSession() as shared:
                classifier = IntentClassifier(EXTENDED_INTENTS, session=shared, use_remote=False)
                await classifier.close()
                return shared.closed

        assert asyncio.run(main()) is False
