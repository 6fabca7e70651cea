import pytest

from talkmate.analysis import heuristics as h


@pytest.mark.parametrize("message, priority", [
    ("this is an EMERGENCY", "urgent"),
    ("a serious problem", "high"),
    ("just wondering", "medium"),
])
def test_ticket_priority(message, priority):
    assert h.ticket_priority(message) == priority


def test_ticket_category_first_match_wins():
    # "bug" (technical) is checked before "payment" (billing)
    assert h.ticket_category("payment page bug") == "technical"
    assert h.ticket_category("my invoice is wrong") == "billing"
    assert h.ticket_category("forgot my password") == "account"
    assert h.ticket_category("hello there") == "general"


def test_extract_tags_hashtags_then_capitalized_words():
    tags = h.extract_tags("#Billing issue with Stripe, see #billing and Paris")
    assert tags == ["billing", "stripe", "paris"]


def test_extract_tags_limit():
    assert len(h.extract_tags("#a #b #c #d #e #f #g")) == 5


def test_analyze_ticket_fields():
    analysis = h.analyze_ticket("x" * 600)
    assert analysis["complexity"] == 6.0
    assert analysis["requires_attention"] is True
    assert analysis["estimated_resolution"] == "3 minutes"


@pytest.mark.parametrize("message, intent", [
    ("hello there", "greeting"),
    ("what is this?", "question"),
    ("bye for now", "farewell"),
    ("this is something", "general"),
])
def test_analyze_intent(message, intent):
    assert h.analyze_intent(message) == intent


def test_intent_matches_whole_words_only():
    # "this" contains "hi" but is not a greeting
    assert h.analyze_intent("this") == "general"


def test_fallback_response_unknown_intent():
    assert h.fallback_response("nope") == h.FALLBACK_RESPONSES["general"]


def test_response_confidence_penalises_hedging():
    plain = "a" * 500
    hedged = "maybe perhaps " + "a" * 486
    assert h.response_confidence(None) == 0.0
    assert h.response_confidence(plain) == pytest.approx(0.5)
    assert h.response_confidence(hedged) < h.response_confidence(plain)


def test_summarize_keeps_first_third():
    text = "One. Two. Three. Four. Five. Six."
    assert h.summarize(text) == "One. Two."


def test_sentiment_label():
    assert h.sentiment_label(1) == "positive"
    assert h.sentiment_label(-0.5) == "negative"
    assert h.sentiment_label(0) == "neutral"
