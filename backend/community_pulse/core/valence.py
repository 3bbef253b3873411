"""
Baseline valence scorer.

A compact lexicon-and-grammar sentiment model in the VADER tradition
(https://github.com/cjhutto/vaderSentiment): per-word valence weights are
adjusted for negation, boosters/dampeners and capitalised emphasis, summed,
amplified by punctuation and squashed into a compound score in [-1, 1].
The word table adds crypto/web3 slang that general-purpose lexicons miss.
"""
from __future__ import annotations

import math
from types import MappingProxyType
from typing import List, Mapping, Sequence

from community_pulse.core.tokenizer import tokenize
from community_pulse.models import NEUTRAL_VALENCE, BaselineValence
from community_pulse.utils import round3

# Word valence, roughly -4 (most negative) .. +4 (most positive)
VALENCE_LEXICON: Mapping[str, float] = MappingProxyType({
    # Strong positive
    "amazing": 3.1,
    "awesome": 3.1,
    "excellent": 3.2,
    "fantastic": 3.0,
    "incredible": 3.0,
    "wonderful": 3.1,
    "brilliant": 2.9,
    "outstanding": 3.0,
    "superb": 2.9,
    "perfect": 3.0,
    "love": 3.2,
    "loved": 3.1,
    "loving": 2.9,
    "beautiful": 2.9,
    "best": 3.0,
    "great": 2.4,
    "good": 1.9,
    "nice": 1.8,
    "happy": 2.7,
    "glad": 2.1,
    "pleased": 2.0,
    "delighted": 2.8,
    "thrilled": 2.9,
    "excited": 2.6,
    "exciting": 2.5,
    "joy": 2.8,
    "joyful": 2.8,
    "fun": 2.3,
    "funny": 2.1,
    "cool": 1.9,
    "helpful": 2.0,
    "kind": 2.1,
    "generous": 2.3,
    "impressive": 2.4,
    "inspired": 2.3,
    "inspiring": 2.4,
    "optimistic": 2.3,
    "positive": 2.0,
    "success": 2.4,
    "successful": 2.3,
    "win": 2.4,
    "winner": 2.3,
    "winning": 2.3,
    "won": 2.3,
    "thank": 1.8,
    "thanks": 1.9,
    "thankful": 2.2,
    "grateful": 2.4,
    "appreciate": 2.1,
    "appreciated": 2.0,

    # Moderate positive
    "like": 1.3,
    "liked": 1.4,
    "enjoy": 1.8,
    "enjoyed": 1.7,
    "enjoying": 1.7,
    "pleasant": 1.8,
    "okay": 0.9,
    "ok": 0.8,
    "fine": 1.0,
    "fair": 0.9,
    "solid": 1.4,
    "decent": 1.2,
    "reasonable": 1.1,
    "interesting": 1.5,
    "useful": 1.6,
    "valuable": 1.7,
    "smart": 1.8,
    "clever": 1.6,

    # Crypto/web3 positive slang
    "bullish": 2.2,
    "wagmi": 2.5,
    "gm": 1.5,
    "gn": 1.3,
    "lfg": 2.4,
    "based": 1.8,
    "dope": 2.0,
    "fire": 2.1,
    "lit": 1.9,
    "goat": 2.6,
    "chad": 1.7,
    "alpha": 1.5,
    "moon": 1.8,
    "mooning": 2.0,
    "pumping": 1.6,
    "diamond": 1.5,
    "rocket": 1.6,

    # Strong negative
    "terrible": -2.9,
    "horrible": -3.0,
    "awful": -2.8,
    "worst": -3.1,
    "hate": -3.2,
    "hated": -3.1,
    "hating": -3.0,
    "disgusting": -2.9,
    "disgusted": -2.8,
    "pathetic": -2.6,
    "stupid": -2.4,
    "idiotic": -2.7,
    "dumb": -2.2,
    "ridiculous": -2.3,
    "absurd": -2.2,
    "outrageous": -2.5,
    "furious": -3.0,
    "enraged": -3.1,
    "infuriating": -2.9,
    "angry": -2.4,
    "mad": -2.1,
    "pissed": -2.5,
    "annoyed": -1.9,
    "annoying": -2.0,
    "irritated": -1.9,
    "irritating": -2.0,
    "frustrated": -2.1,
    "frustrating": -2.2,
    "disappointed": -2.0,
    "disappointing": -2.1,
    "sad": -2.1,
    "depressed": -2.6,
    "depressing": -2.5,
    "miserable": -2.7,
    "painful": -2.2,
    "hurt": -2.0,
    "hurts": -2.0,
    "suffering": -2.4,
    "fail": -2.1,
    "failed": -2.2,
    "failure": -2.4,
    "failing": -2.1,
    "sucks": -2.3,
    "suck": -2.2,
    "bad": -2.1,
    "wrong": -1.8,
    "broken": -1.9,
    "ruined": -2.4,
    "destroyed": -2.5,
    "worthless": -2.6,
    "useless": -2.3,
    "waste": -2.0,
    "wasted": -2.1,

    # Profanity
    "fuck": -3.0,
    "fucking": -3.2,
    "fucked": -3.1,
    "shit": -2.5,
    "shitty": -2.7,
    "bullshit": -2.8,
    "damn": -1.8,
    "damned": -2.0,
    "ass": -1.5,
    "asshole": -2.8,
    "bitch": -2.6,
    "crap": -2.0,
    "crappy": -2.2,
    "hell": -1.6,
    "wtf": -2.2,

    # Crypto/web3 negative slang
    "ngmi": -2.3,
    "rekt": -2.2,
    "rugged": -2.8,
    "scam": -2.9,
    "scammer": -3.0,
    "rug": -2.5,
    "dump": -1.8,
    "dumping": -1.9,
    "bearish": -1.8,
    "crashed": -2.2,
    "crashing": -2.0,
    "dead": -2.0,
    "dying": -2.1,

    # Negation words carry little valence of their own
    "never": -0.5,
    "nothing": -0.5,
    "none": -0.3,
    "without": -0.2,
})

# Increments added in the direction of the valence they modify
BOOSTER_INCREMENT = 0.293
BOOSTER_DICT: Mapping[str, float] = MappingProxyType({
    **{
        word: BOOSTER_INCREMENT
        for word in (
            "absolutely", "amazingly", "awfully", "completely", "considerably",
            "decidedly", "deeply", "enormously", "entirely", "especially",
            "exceptionally", "extremely", "fabulously", "fully", "greatly",
            "highly", "hugely", "incredibly", "intensely", "majorly", "more",
            "most", "particularly", "purely", "quite", "really", "remarkably",
            "so", "substantially", "thoroughly", "totally", "tremendously",
            "uber", "unbelievably", "unusually", "utterly", "very", "super",
            "insanely", "mega", "hella",
        )
    },
    "crazy": 0.15,
    # Dampeners
    **{
        word: -BOOSTER_INCREMENT
        for word in (
            "almost", "barely", "hardly", "just", "kinda", "kindof", "less",
            "little", "marginally", "occasionally", "partly", "scarcely",
            "slightly", "somewhat", "sorta", "sortof",
        )
    },
})

NEGATIONS = frozenset({
    "not", "no", "never", "neither", "nobody", "nothing", "nowhere", "none",
    "without", "hardly", "rarely", "seldom", "scarcely", "n't", "isn't",
    "aren't", "wasn't", "weren't", "won't", "wouldn't", "couldn't",
    "shouldn't", "doesn't", "don't", "didn't", "hasn't", "haven't", "hadn't",
    "can't", "cannot",
})

CAPS_INCREMENT = 0.733
NEGATION_SCALAR = -0.74
CONTEXT_WINDOW = 3
BOOSTER_DECAY_PER_STEP = 0.15
EXCLAMATION_INCREMENT = 0.292
MAX_EXCLAMATIONS = 4
QUESTION_DECREMENT = 0.18
NORMALIZATION_ALPHA = 15.0


def normalize_score(score: float, alpha: float = NORMALIZATION_ALPHA) -> float:
    """Squash an unbounded valence sum into (-1, 1)."""
    return score / math.sqrt(score * score + alpha)


def _is_emphasized(token: str) -> bool:
    return len(token) > 1 and token.isupper()


def _token_valence(words: Sequence[str], raw_words: Sequence[str], index: int) -> float:
    """
    Valence of the token at `index` after emphasis, booster and negation rules.

    Preceding tokens are scanned nearest first. A negation stops the scan after
    flipping and dampening the valence, so only the nearest negation counts and
    boosters further away than it are ignored.
    """
    valence = VALENCE_LEXICON.get(words[index], 0.0)
    if valence == 0.0:
        return 0.0

    if _is_emphasized(raw_words[index]):
        valence += CAPS_INCREMENT if valence > 0 else -CAPS_INCREMENT

    for distance in range(1, CONTEXT_WINDOW + 1):
        position = index - distance
        if position < 0:
            break
        preceding = words[position]

        if preceding in NEGATIONS:
            valence *= NEGATION_SCALAR
            break

        boost = BOOSTER_DICT.get(preceding)
        if boost is not None:
            scaled = boost * (1 - BOOSTER_DECAY_PER_STEP * distance)
            valence += scaled if valence > 0 else -scaled

    return valence


def _punctuation_adjusted(total: float, text: str) -> float:
    exclamations = min(text.count("!"), MAX_EXCLAMATIONS)
    if exclamations:
        amplifier = exclamations * EXCLAMATION_INCREMENT
        if total > 0:
            total += amplifier
        elif total < 0:
            total -= amplifier

    # Questions hedge positive statements but never make them negative
    questions = text.count("?")
    if questions and total > 0:
        total = max(0.0, total - questions * QUESTION_DECREMENT)

    return total


def score(text: str) -> BaselineValence:
    """
    Compute the baseline valence of a text.

    Args:
        text: Raw text

    Returns:
        BaselineValence with compound in [-1, 1] and pos/neg/neu proportions
    """
    words = tokenize(text)
    if not words:
        return NEUTRAL_VALENCE

    raw_words = tokenize(text, lowercase=False)
    if len(raw_words) != len(words):
        # Lowercasing changed token boundaries (rare non-ASCII case folding);
        # fall back to no emphasis detection rather than misaligning tokens.
        raw_words = words

    sentiments: List[float] = []
    for index in range(len(words)):
        valence = _token_valence(words, raw_words, index)
        if valence != 0.0:
            sentiments.append(valence)

    if not sentiments:
        return NEUTRAL_VALENCE

    total = _punctuation_adjusted(sum(sentiments), text)
    compound = normalize_score(total)

    pos_sum = sum(s + 1 for s in sentiments if s > 0)
    neg_sum = sum(abs(s) + 1 for s in sentiments if s < 0)
    denominator = pos_sum + neg_sum + len(sentiments)

    pos = round3(pos_sum / denominator)
    neg = round3(neg_sum / denominator)
    neu = round3(1 - (pos + neg))

    return BaselineValence(
        compound=round3(compound),
        pos=max(0.0, pos),
        neg=max(0.0, neg),
        neu=max(0.0, neu),
    )
