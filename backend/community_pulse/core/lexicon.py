"""
Domain lexicon analyzer.

Works on top of the baseline valence scorer to catch crypto/web3 slang,
anger language, hope and despair markers, calls to action and sarcasm cues.
Every function returns the matched terms alongside its scores so the final
emotion can be explained.

Matching precedence:
    1. Phrase tables, by substring containment of the lowercased raw text
       (positive phrases, then anger phrases). Each phrase counts once.
    2. Single-word tables, per token in text order. Each occurrence counts.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import List, Mapping, Sequence

from community_pulse.core.tokenizer import tokenize
from community_pulse.models import (
    AgencyMarkers,
    AgencySignal,
    HopeMarkers,
    HopeSignal,
    LexiconHits,
    LexiconSignal,
)

# ---------------------------------------------------------------------
# Weighted term tables
# ---------------------------------------------------------------------
POSITIVE_STRONG: Mapping[str, float] = MappingProxyType({
    "legendary": 0.15,
    "goated": 0.15,
    "incredible": 0.12,
    "phenomenal": 0.12,
    "insane": 0.1,  # "very good" in crypto usage
})

POSITIVE_MODERATE: Mapping[str, float] = MappingProxyType({
    "bullish": 0.1,
    "wagmi": 0.12,
    "gm": 0.06,
    "gn": 0.04,
    "lfg": 0.12,
    "based": 0.08,
    "dope": 0.08,
    "fire": 0.08,
    "lit": 0.07,
    "goat": 0.1,
    "chad": 0.06,
    "alpha": 0.05,
    "moon": 0.06,
    "mooning": 0.08,
    "diamond": 0.05,
    "ser": 0.03,
    "fren": 0.05,
    "frens": 0.05,
    "anon": 0.02,
    "gigabrain": 0.08,
    "degen": 0.04,
    "wen": 0.02,
    "vibes": 0.06,
    "banger": 0.08,
    "slaps": 0.07,
    "hits": 0.05,
    "immaculate": 0.1,
})

POSITIVE_PHRASES: Mapping[str, float] = MappingProxyType({
    "let's go": 0.1,
    "love this": 0.12,
    "love it": 0.12,
    "so good": 0.08,
    "well done": 0.08,
    "great job": 0.08,
    "nice work": 0.07,
    "looking forward": 0.08,
    "can't wait": 0.1,
    "this is it": 0.08,
    "this hits": 0.07,
    "chef's kiss": 0.1,
    "take my money": 0.08,
    "shut up and": 0.06,
    "big if true": 0.05,
    "iykyk": 0.04,
    "good stuff": 0.06,
    "keep building": 0.07,
    "we're early": 0.06,
    "still early": 0.06,
    "never selling": 0.06,
})

ANGER_STRONG: Mapping[str, float] = MappingProxyType({
    "furious": 0.2,
    "outraged": 0.2,
    "enraged": 0.2,
    "livid": 0.2,
    "seething": 0.18,
    "infuriating": 0.18,
    "disgusting": 0.15,
    "despicable": 0.18,
    "vile": 0.15,
})

ANGER_MODERATE: Mapping[str, float] = MappingProxyType({
    "angry": 0.12,
    "pissed": 0.14,
    "mad": 0.1,
    "annoyed": 0.08,
    "irritated": 0.08,
    "frustrated": 0.1,
    "upset": 0.08,
    "disgusted": 0.12,
})

ANGER_PHRASES: Mapping[str, float] = MappingProxyType({
    "sick of": 0.12,
    "fed up": 0.12,
    "can't stand": 0.14,
    "piss me off": 0.16,
    "pisses me off": 0.16,
    "pissed off": 0.14,
    "wtf": 0.1,
    "are you kidding": 0.1,
    "what the hell": 0.12,
    "what the fuck": 0.16,
    "this is insane": 0.08,
    "absolutely ridiculous": 0.14,
    "beyond frustrated": 0.14,
    "so tired of": 0.1,
    "had enough": 0.1,
    "give me a break": 0.08,
    "unbelievable": 0.06,
    "bullshit": 0.25,
    "this is bullshit": 0.3,
})

CRYPTO_NEGATIVE: Mapping[str, float] = MappingProxyType({
    "ngmi": 0.12,
    "rekt": 0.1,
    "rugged": 0.15,
    "scam": 0.18,
    "scammer": 0.2,
    "rug": 0.12,
    "rugpull": 0.16,
    "ponzi": 0.15,
    "grift": 0.14,
    "grifter": 0.16,
    "exit": 0.05,
    "bearish": 0.06,
    "dumping": 0.08,
    "crashed": 0.1,
    "dead": 0.08,
    "dying": 0.08,
    "over": 0.04,  # "it's over"
    "joever": 0.1,
    "cooked": 0.08,
})

NEGATIONS = frozenset({
    "not", "no", "never", "n't", "without", "hardly", "rarely", "neither",
    "none", "nothing", "nowhere", "nobody",
})

INTENSIFIERS: Mapping[str, float] = MappingProxyType({
    "very": 1.5,
    "so": 1.4,
    "extremely": 1.6,
    "super": 1.5,
    "insanely": 1.6,
    "crazy": 1.4,
    "mega": 1.5,
    "hella": 1.5,
    "really": 1.4,
    "absolutely": 1.5,
    "totally": 1.4,
    "completely": 1.5,
    "utterly": 1.5,
    "incredibly": 1.5,
    "massively": 1.5,
    "ridiculously": 1.4,
    "unbelievably": 1.5,
})

POSITIVE_CAP = 0.4
ANGER_CAP = 0.6
NEGATIVE_CAP = 0.5
NEGATED_POSITIVE_FACTOR = 0.25
NEGATION_WINDOW = 3
INTENSIFIER_WINDOW = 2

# ---------------------------------------------------------------------
# Hope, agency and action markers
# ---------------------------------------------------------------------
FUTURE_MARKERS = (
    "will", "going to", "gonna", "can't wait", "looking forward", "next",
    "soon", "tomorrow", "this week", "ship", "launch", "release", "roadmap",
    "upcoming", "planning", "working on",
)

HOPE_MARKERS = (
    "excited", "bullish", "optimistic", "hope", "hoping", "confident",
    "upside", "progress", "potential", "promising", "opportunity",
    "possibilities", "bright", "future",
)

DESPAIR_MARKERS = (
    "hopeless", "over", "dead", "ngmi", "done", "give up", "giving up",
    "no point", "what's the point", "joever", "it's over", "we're cooked",
    "finished", "lost cause", "doomed",
)

FUTURE_INCREMENT = 0.15
HOPE_INCREMENT = 0.2
DESPAIR_INCREMENT = 0.25

ACTION_VERBS = (
    "do", "build", "ship", "fix", "make", "help", "join", "organize", "fund",
    "deploy", "launch", "start", "create", "develop", "implement", "solve",
    "tackle", "address", "improve", "change",
)

COMMITMENT_PHRASES = (
    "should", "let's", "lets", "we need", "i will", "i'll", "i'm going to",
    "we're going to", "we will", "we'll", "must", "have to", "need to",
    "gotta", "gonna", "time to", "ready to", "about to",
)

ACTION_INCREMENT = 0.12
COMMITMENT_INCREMENT = 0.18

# Replies that report or promise an action (mobilisation)
ACTION_SIGNAL_PATTERNS = (
    re.compile(r"\b(done|shipped|joined|signed up|registered|submitted|completed)\b", re.IGNORECASE),
    re.compile(r"\bi('ll| will)\s+(do|try|join|sign|check|look)", re.IGNORECASE),
    re.compile(r"\b(on it|will do|count me in|i'm in|let's go)\b", re.IGNORECASE),
    re.compile(r"\b(just did|already|finished|made it)\b", re.IGNORECASE),
)

SARCASM_PATTERNS = (
    re.compile(r"\b(sure|totally|definitely)\b.*\.\.\.", re.IGNORECASE),
    re.compile(r"\b(wow|great|amazing)\b.*\bnot\b", re.IGNORECASE),
    re.compile(r"/s\s*$"),
    re.compile("[\U0001F644\U0001F60F\U0001F643]"),  # eye roll, smirk, upside-down face
    re.compile(r"\b(oh|oh wow|oh great|oh yeah)\b.*\.\.\.", re.IGNORECASE),
    re.compile(r"[\"“](great|amazing|wonderful)[\"”]"),
)


def is_negation(token: str) -> bool:
    return token in NEGATIONS


def has_negation_before(words: Sequence[str], index: int) -> bool:
    """True when any of the NEGATION_WINDOW tokens before `index` negates."""
    start = max(0, index - NEGATION_WINDOW)
    return any(is_negation(word) for word in words[start:index])


def intensifier_multiplier(words: Sequence[str], index: int) -> float:
    """Multiplier of the nearest intensifier in the preceding tokens, else 1."""
    for distance in range(1, INTENSIFIER_WINDOW + 1):
        position = index - distance
        if position < 0:
            break
        multiplier = INTENSIFIERS.get(words[position])
        if multiplier:
            return multiplier
    return 1.0


def _phrase_negated(lower: str, phrase: str) -> bool:
    prefix = lower[: lower.index(phrase)]
    preceding = tokenize(prefix)[-NEGATION_WINDOW:]
    return any(is_negation(word) for word in preceding)


def analyze(text: str) -> LexiconSignal:
    """
    Score text against the domain lexicon.

    Negation dampens positive matches to a quarter of their weight. Anger and
    crypto-negative matches keep full force under negation ("not happy, I'm
    furious" is still angry).

    Args:
        text: Raw text

    Returns:
        LexiconSignal with capped deltas and every matched term
    """
    lower = (text or "").lower()
    words = tokenize(lower)

    negations: List[str] = [w for w in words if is_negation(w)]
    intensifiers: List[str] = [w for w in words if w in INTENSIFIERS]
    positive_strong: List[str] = []
    positive_moderate: List[str] = []
    positive_phrases: List[str] = []
    anger_strong: List[str] = []
    anger_moderate: List[str] = []
    anger_phrases: List[str] = []
    crypto_negative: List[str] = []

    positive_delta = 0.0
    anger_delta = 0.0
    negative_delta = 0.0

    for phrase, weight in POSITIVE_PHRASES.items():
        if phrase in lower:
            positive_phrases.append(phrase)
            if _phrase_negated(lower, phrase):
                weight *= NEGATED_POSITIVE_FACTOR
            positive_delta += weight

    for phrase, weight in ANGER_PHRASES.items():
        if phrase in lower:
            anger_phrases.append(phrase)
            anger_delta += weight

    for index, word in enumerate(words):
        negated = has_negation_before(words, index)
        multiplier = intensifier_multiplier(words, index)

        for table, bucket in ((POSITIVE_STRONG, positive_strong), (POSITIVE_MODERATE, positive_moderate)):
            if word in table:
                bucket.append(word)
                delta = table[word] * multiplier
                if negated:
                    delta *= NEGATED_POSITIVE_FACTOR
                positive_delta += delta

        for table, bucket in ((ANGER_STRONG, anger_strong), (ANGER_MODERATE, anger_moderate)):
            if word in table:
                bucket.append(word)
                anger_delta += table[word] * multiplier

        if word in CRYPTO_NEGATIVE:
            crypto_negative.append(word)
            negative_delta += CRYPTO_NEGATIVE[word]

    hits = LexiconHits(
        positive_strong=tuple(positive_strong),
        positive_moderate=tuple(positive_moderate),
        positive_phrases=tuple(positive_phrases),
        anger_strong=tuple(anger_strong),
        anger_moderate=tuple(anger_moderate),
        anger_phrases=tuple(anger_phrases),
        crypto_negative=tuple(crypto_negative),
        negations=tuple(negations),
        intensifiers=tuple(intensifiers),
    )
    return LexiconSignal(
        positive_delta=min(positive_delta, POSITIVE_CAP),
        anger_delta=min(anger_delta, ANGER_CAP),
        negative_delta=min(negative_delta, NEGATIVE_CAP),
        hits=hits,
    )


def _scan_markers(lower: str, markers: Sequence[str]) -> List[str]:
    return [marker for marker in markers if marker in lower]


def analyze_hope(text: str) -> HopeSignal:
    """Score future-oriented, hopeful and despairing language, each in [0, 1]."""
    lower = (text or "").lower()
    future = _scan_markers(lower, FUTURE_MARKERS)
    hope = _scan_markers(lower, HOPE_MARKERS)
    despair = _scan_markers(lower, DESPAIR_MARKERS)

    return HopeSignal(
        future_score=min(len(future) * FUTURE_INCREMENT, 1.0),
        hope_score=min(len(hope) * HOPE_INCREMENT, 1.0),
        despair_score=min(len(despair) * DESPAIR_INCREMENT, 1.0),
        markers=HopeMarkers(future=tuple(future), hope=tuple(hope), despair=tuple(despair)),
    )


def analyze_agency(text: str) -> AgencySignal:
    """Score action verbs (whole tokens) and commitment phrases (substrings)."""
    lower = (text or "").lower()
    words = set(tokenize(lower))
    actions = [verb for verb in ACTION_VERBS if verb in words]
    commitments = _scan_markers(lower, COMMITMENT_PHRASES)

    return AgencySignal(
        action_score=min(len(actions) * ACTION_INCREMENT, 1.0),
        commitment_score=min(len(commitments) * COMMITMENT_INCREMENT, 1.0),
        markers=AgencyMarkers(actions=tuple(actions), commitments=tuple(commitments)),
    )


def has_action_signal(text: str) -> bool:
    """True when a reply reports or promises an action ("done", "count me in")."""
    return any(pattern.search(text or "") for pattern in ACTION_SIGNAL_PATTERNS)


def detect_sarcasm(text: str) -> bool:
    return any(pattern.search(text or "") for pattern in SARCASM_PATTERNS)
