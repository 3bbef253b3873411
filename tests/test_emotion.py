"""Tests for the hybrid emotion composer."""

import pytest

from community_pulse.core.emotion import compose, compose_batch, to_classification
from community_pulse.models import MessageEmotion, RuleTrigger

SAMPLE_TEXTS = [
    "",
    "ok",
    "gm wagmi lfg",
    "ngmi rekt",
    "This is bullshit, I am furious. FIX IT NOW!!!",
    "let's build something amazing",
    "it's over, we're cooked",
    'oh "great" another rug pull...',
    "🚀🔥💎",
    "not not not good ???? !!!!",
]


class TestNegation:
    @pytest.mark.parametrize("word", ["great", "amazing", "good"])
    def test_negation_lowers_sentiment(self, word):
        plain = compose(word)
        negated = compose(f"not {word}")
        assert negated.sentiment < plain.sentiment
        assert negated.positivity < plain.positivity

    def test_never(self):
        assert compose("never good").sentiment < compose("good").sentiment


class TestIntensifiers:
    def test_so_great(self):
        assert compose("so great!!!").sentiment > compose("great").sentiment

    def test_very_happy(self):
        assert compose("very happy").sentiment > compose("happy").sentiment

    def test_extremely_good_boosts_positivity(self):
        assert compose("extremely good").positivity > compose("good").positivity


class TestHope:
    def test_future_markers(self):
        result = compose("I can't wait to ship this")
        assert result.hope > 0.1
        assert result.agency >= 0
        assert "can't wait" in result.explain.hope_markers.future
        assert "ship" in result.explain.hope_markers.future
        assert RuleTrigger.FUTURE_MARKERS_FOUND in result.explain.rules_triggered

    def test_looking_forward(self):
        result = compose("looking forward to the launch")
        assert result.hope > 0.1
        assert "looking forward" in result.explain.hope_markers.future
        assert "launch" in result.explain.hope_markers.future

    def test_despair_lowers_hope(self):
        result = compose("it's over, we're cooked")
        assert result.hope < 0.3
        assert result.explain.hope_markers.despair
        assert RuleTrigger.DESPAIR_MARKERS_FOUND in result.explain.rules_triggered


class TestAgency:
    def test_angry_call_to_action(self):
        result = compose("this is bullshit, fix it")
        assert result.anger > 0.2
        assert result.agency > 0.2
        assert "fix" in result.explain.agency_markers.actions

    def test_lets_build(self):
        result = compose("let's build something amazing")
        assert result.agency > 0.4
        assert "let's" in result.explain.agency_markers.commitments
        assert "build" in result.explain.agency_markers.actions
        assert RuleTrigger.ACTION_EMOTION_BOOST in result.explain.rules_triggered

    def test_commitment_floor(self):
        result = compose("I will help organize this")
        assert result.agency >= 0.25
        assert "i will" in result.explain.agency_markers.commitments
        assert "help" in result.explain.agency_markers.actions
        assert RuleTrigger.COMMITMENT_DETECTED in result.explain.rules_triggered


class TestCryptoSlang:
    def test_positive_slang(self):
        result = compose("gm wagmi lfg")
        assert result.sentiment > 0
        assert result.positivity > 0.1
        for token in ("gm", "wagmi", "lfg"):
            assert token in result.explain.lexicon_hits.positive_moderate

    def test_negative_slang(self):
        result = compose("ngmi rekt")
        assert result.sentiment < 0
        assert result.explain.lexicon_hits.crypto_negative == ("ngmi", "rekt")

    def test_bullish(self):
        result = compose("bullish on this project")
        assert result.sentiment > 0
        assert "bullish" in result.explain.lexicon_hits.positive_moderate


class TestCompound:
    def test_mixed_sentiment_is_moderate(self):
        assert abs(compose("I love this idea but the execution is terrible").sentiment) < 0.5

    def test_sarcasm_dampens_positivity(self):
        sarcastic = compose('oh "great" another rug pull...')
        plain = compose("oh great another rug pull")
        assert RuleTrigger.SARCASM_DETECTED in sarcastic.explain.rules_triggered
        assert RuleTrigger.SARCASM_DAMPENED_POSITIVITY in sarcastic.explain.rules_triggered
        assert RuleTrigger.SARCASM_DETECTED not in plain.explain.rules_triggered
        assert sarcastic.positivity < 0.3
        assert sarcastic.positivity < plain.positivity

    def test_anger_survives_negation(self):
        result = compose("I'm not happy, I'm furious")
        assert result.anger >= 0.2
        assert result.explain.lexicon_hits.anger_strong == ("furious",)


class TestConfidence:
    def test_short_text_is_less_confident(self):
        short = compose("ok")
        longer = compose("This is a longer message that provides more context for analysis")
        assert short.confidence < longer.confidence
        assert RuleTrigger.SHORT_TEXT_PENALTY in short.explain.rules_triggered
        assert RuleTrigger.LONGER_TEXT_BOOST in longer.explain.rules_triggered

    def test_agreeing_signals(self):
        result = compose("This is absolutely amazing, I love it so much!")
        assert RuleTrigger.SIGNALS_AGREE in result.explain.rules_triggered
        assert result.confidence > 0.5


class TestEdgeCases:
    def test_empty_string(self):
        result = compose("")
        assert result.sentiment == 0
        assert result.positivity == 0
        assert result.negativity == 0
        assert result.anger == 0
        assert result.confidence == pytest.approx(0.3)

    def test_pure_emoji(self):
        result = compose("🚀🔥💎")
        assert result.sentiment == 0
        assert result.explain.valence.neu == 1.0

    def test_all_caps_emphasis(self):
        assert compose("THIS IS GREAT").sentiment >= compose("this is great").sentiment

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_scores_stay_in_range(self, text):
        result = compose(text)
        assert -1.0 <= result.sentiment <= 1.0
        for value in (result.positivity, result.negativity, result.anger, result.hope, result.agency, result.confidence):
            assert 0.0 <= value <= 1.0

    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_deterministic(self, text):
        assert compose(text) == compose(text)

    def test_rule_values_are_stable_strings(self):
        rules = compose("I can't wait to ship this").explain.rules_triggered
        assert "future_markers_found" in [rule.value for rule in rules]


class TestBatchAndClassification:
    def test_compose_batch_preserves_order(self):
        texts = ["great", "terrible", "gm"]
        assert compose_batch(texts) == [compose(t) for t in texts]

    def test_full_result_shape(self):
        result = compose("This is a test message")
        assert isinstance(result, MessageEmotion)
        assert result.explain.valence is not None
        assert result.explain.lexicon_hits is not None
        assert isinstance(result.explain.rules_triggered, tuple)

    @pytest.mark.parametrize(
        "sentiment, label",
        [(0.5, "positive"), (0.16, "positive"), (0.15, "neutral"), (-0.15, "neutral"), (-0.2, "negative")],
    )
    def test_sentiment_buckets(self, emotion, sentiment, label):
        assert to_classification(emotion(sentiment=sentiment)).sentiment == label

    def test_anger_and_agency_flags(self, emotion):
        c = to_classification(emotion(anger=0.3, agency=0.29))
        assert c.has_anger is True
        assert c.anger_confidence == 0.3
        assert c.has_agency is False
