"""
Hybrid emotion composer.

Merges the baseline valence score with the domain lexicon signals into a
six-dimensional emotion vector (sentiment, positivity, negativity, anger,
hope, agency) plus a confidence heuristic, recording every rule that fired.
"""
from __future__ import annotations

from typing import Iterable, List

from community_pulse.core import lexicon, valence
from community_pulse.models import (
    Classification,
    EmotionExplain,
    MessageEmotion,
    RuleTrigger,
)
from community_pulse.utils import clamp, clamp_to_unit_range, round3, sign

# Composition weights
BASELINE_WEIGHT = 0.6
LEXICON_WEIGHT = 0.4
SARCASM_SENTIMENT_FACTOR = 0.3
SARCASM_POSITIVITY_FACTOR = 0.5
ANGER_NEGATIVITY_WEIGHT = 0.5
BASELINE_ANGER_WEIGHT = 0.2
ANGER_RULE_THRESHOLD = 0.3

HOPE_POSITIVITY_WEIGHT = 0.3
HOPE_FUTURE_WEIGHT = 0.5
HOPE_MARKER_WEIGHT = 0.4
HOPE_DESPAIR_WEIGHT = 0.6

AGENCY_ACTION_WEIGHT = 0.5
AGENCY_COMMITMENT_WEIGHT = 0.5
AGENCY_INTENSITY_WEIGHT = 0.2
AGENCY_BOOST = 1.3
AGENCY_BOOST_MIN_ACTION = 0.1
AGENCY_BOOST_MIN_INTENSITY = 0.2
AGENCY_COMMITMENT_FLOOR = 0.25

# Confidence heuristic
CONFIDENCE_BASE = 0.5
LONG_TEXT_CHARS = 50
MEDIUM_TEXT_CHARS = 20
SHORT_TEXT_CHARS = 10
SLANG_ONLY_MAX_COMPOUND = 0.1
SLANG_ONLY_MIN_LEXICON = 0.15

# Classification buckets
POSITIVE_LABEL_THRESHOLD = 0.15
NEGATIVE_LABEL_THRESHOLD = -0.15
HAS_ANGER_THRESHOLD = 0.3
HAS_AGENCY_THRESHOLD = 0.3


def _confidence(text: str, compound: float, lexicon_score: float, sarcastic: bool, rules: List[RuleTrigger]) -> float:
    confidence = CONFIDENCE_BASE

    length = len(text)
    if length >= LONG_TEXT_CHARS:
        confidence += 0.2
        rules.append(RuleTrigger.LONGER_TEXT_BOOST)
    elif length >= MEDIUM_TEXT_CHARS:
        confidence += 0.1
    elif length < SHORT_TEXT_CHARS:
        confidence -= 0.2
        rules.append(RuleTrigger.SHORT_TEXT_PENALTY)

    baseline_sign = sign(compound)
    if baseline_sign != 0 and baseline_sign == sign(lexicon_score):
        confidence += 0.15
        rules.append(RuleTrigger.SIGNALS_AGREE)

    # Slang the baseline barely registers is the least reliable signal
    if abs(compound) < SLANG_ONLY_MAX_COMPOUND and abs(lexicon_score) > SLANG_ONLY_MIN_LEXICON:
        confidence -= 0.1
        rules.append(RuleTrigger.SLANG_ONLY_PENALTY)

    if sarcastic:
        confidence -= 0.2

    return clamp_to_unit_range(confidence)


def compose(text: str) -> MessageEmotion:
    """
    Compute the full emotion vector for a single message.

    Args:
        text: Raw message text (any string, including empty)

    Returns:
        MessageEmotion with scores rounded to 3 decimals and an explain trace
    """
    text = text or ""
    rules: List[RuleTrigger] = []

    baseline = valence.score(text)
    signal = lexicon.analyze(text)
    hope_signal = lexicon.analyze_hope(text)
    agency_signal = lexicon.analyze_agency(text)

    sarcastic = lexicon.detect_sarcasm(text)
    if sarcastic:
        rules.append(RuleTrigger.SARCASM_DETECTED)

    # Sentiment: weighted blend of baseline compound and signed lexicon score
    lexicon_score = signal.positive_delta - signal.anger_delta - signal.negative_delta
    sentiment = BASELINE_WEIGHT * baseline.compound + LEXICON_WEIGHT * lexicon_score
    if sarcastic and sentiment > 0:
        sentiment *= SARCASM_SENTIMENT_FACTOR
        rules.append(RuleTrigger.SARCASM_DAMPENED_POSITIVE)
    sentiment = clamp(sentiment, -1.0, 1.0)

    positivity = baseline.pos + signal.positive_delta
    if sarcastic:
        positivity *= SARCASM_POSITIVITY_FACTOR
        rules.append(RuleTrigger.SARCASM_DAMPENED_POSITIVITY)
    positivity = clamp_to_unit_range(positivity)

    negativity = clamp_to_unit_range(
        baseline.neg + signal.negative_delta + ANGER_NEGATIVITY_WEIGHT * signal.anger_delta
    )

    anger = clamp_to_unit_range(
        signal.anger_delta + BASELINE_ANGER_WEIGHT * max(0.0, -baseline.compound)
    )
    if anger > ANGER_RULE_THRESHOLD:
        rules.append(RuleTrigger.ANGER_DETECTED)

    hope = clamp_to_unit_range(
        HOPE_POSITIVITY_WEIGHT * positivity
        + HOPE_FUTURE_WEIGHT * hope_signal.future_score
        + HOPE_MARKER_WEIGHT * hope_signal.hope_score
        - HOPE_DESPAIR_WEIGHT * hope_signal.despair_score
    )
    if hope_signal.markers.future:
        rules.append(RuleTrigger.FUTURE_MARKERS_FOUND)
    if hope_signal.markers.despair:
        rules.append(RuleTrigger.DESPAIR_MARKERS_FOUND)

    # Agency: calls to action, amplified when the message is also emotional
    intensity = max(positivity, anger)
    agency = (
        AGENCY_ACTION_WEIGHT * agency_signal.action_score
        + AGENCY_COMMITMENT_WEIGHT * agency_signal.commitment_score
        + AGENCY_INTENSITY_WEIGHT * intensity
    )
    if agency_signal.action_score > AGENCY_BOOST_MIN_ACTION and intensity > AGENCY_BOOST_MIN_INTENSITY:
        agency *= AGENCY_BOOST
        rules.append(RuleTrigger.ACTION_EMOTION_BOOST)
    if agency_signal.markers.commitments:
        agency = max(agency, AGENCY_COMMITMENT_FLOOR)
    agency = clamp_to_unit_range(agency)
    if agency_signal.markers.commitments:
        rules.append(RuleTrigger.COMMITMENT_DETECTED)

    confidence = _confidence(text, baseline.compound, lexicon_score, sarcastic, rules)

    return MessageEmotion(
        sentiment=round3(sentiment),
        positivity=round3(positivity),
        negativity=round3(negativity),
        anger=round3(anger),
        hope=round3(hope),
        agency=round3(agency),
        confidence=round3(confidence),
        explain=EmotionExplain(
            valence=baseline,
            lexicon_hits=signal.hits,
            hope_markers=hope_signal.markers,
            agency_markers=agency_signal.markers,
            rules_triggered=tuple(rules),
        ),
    )


def compose_batch(texts: Iterable[str]) -> List[MessageEmotion]:
    """Compose every text independently, preserving input order."""
    return [compose(text) for text in texts]


def to_classification(emotion: MessageEmotion) -> Classification:
    """
    Bucket an emotion into the compact classification that gets persisted.

    Args:
        emotion: Composed message emotion

    Returns:
        Classification with a sentiment label and anger/agency flags
    """
    if emotion.sentiment > POSITIVE_LABEL_THRESHOLD:
        label = "positive"
    elif emotion.sentiment < NEGATIVE_LABEL_THRESHOLD:
        label = "negative"
    else:
        label = "neutral"

    return Classification(
        sentiment=label,
        has_anger=emotion.anger >= HAS_ANGER_THRESHOLD,
        anger_confidence=emotion.anger,
        has_agency=emotion.agency >= HAS_AGENCY_THRESHOLD,
    )
