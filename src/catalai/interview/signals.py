"""Lexical signals read from user answers and candidate questions."""

from __future__ import annotations

import re
from collections.abc import Iterable

# Phrase families that indicate the user is losing patience.
FRUSTRATION_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "direct": (
        re.compile(
            r"\b(this is|that'?s|so) (so |really |getting )?"
            r"(frustrating|annoying|ridiculous|tedious|pointless)\b"
        ),
        re.compile(
            r"\bi'?m (getting |so |really )?(frustrated|annoyed|fed up)\b"
        ),
        re.compile(r"\b(waste|wasting) of (my )?time\b"),
        re.compile(r"\b(enough|too many) questions\b"),
        re.compile(r"\bstop asking\b"),
    ),
    "repetition": (
        re.compile(
            r"\balready (answered|told you|said|mentioned|explained)\b"
        ),
        re.compile(r"\b(same|that) question again\b"),
        re.compile(r"\byou (already )?asked (me )?(that|this)\b"),
        re.compile(r"\b(repeating yourself|going in circles)\b"),
        re.compile(r"\bas i (just )?said\b"),
    ),
    "dismissive": (
        re.compile(r"^(whatever|fine|who cares)\W*$"),
        re.compile(r"\b(i )?(don'?t|do not) care\b"),
        re.compile(r"\bjust (classify|decide|pick|choose)\b"),
        re.compile(r"\bcan we (just )?move on\b"),
    ),
    "sarcasm": (
        re.compile(
            r"\boh (great|wonderful|brilliant|perfect),? (another|more)\b"
        ),
        re.compile(r"\byeah,? right\b"),
        re.compile(r"\bthanks for nothing\b"),
        re.compile(r"\bwow,? (another|more) questions?\b"),
    ),
}

_UNKNOWN_PHRASES = re.compile(
    r"\b(i )?(don'?t|do not|dont) know\b|\bno idea\b|\bnot sure\b"
    r"|\bdunno\b|\bidk\b|\bunsure\b|\b(can'?t|cannot) say\b"
    r"|\bno clue\b"
)
_UNKNOWN_WHOLE = re.compile(r"^(n/?a|unknown|none|pass|no answer|[?\-.]+)$")

_STOPWORDS = frozenset(
    "a an and any are as at be by can could do does did for from have "
    "how i if in is it its me much many of on or our so that the their "
    "them there these this to us was we were what when where which who "
    "why will with would you your".split()
)
_TOKEN = re.compile(r"[a-z0-9]+")


def _clean(text: str) -> str:
    return " ".join(text.lower().replace("’", "'").split())


def frustration_kinds(answer: str) -> list[str]:
    """Names of the phrase families present in ``answer``."""
    text = _clean(answer)
    return [
        kind
        for kind, patterns in FRUSTRATION_PATTERNS.items()
        if any(p.search(text) for p in patterns)
    ]


def is_frustrated(answer: str) -> bool:
    return bool(frustration_kinds(answer))


def is_unknown_answer(answer: str) -> bool:
    """Empty answers and "I don't know"-style non-answers."""
    text = _clean(answer).strip(" !")
    if not text:
        return True
    return bool(_UNKNOWN_WHOLE.match(text) or _UNKNOWN_PHRASES.search(text))


def normalize_question(question: str) -> str:
    """Case-, whitespace- and punctuation-insensitive form for exact
    duplicate checks."""
    return " ".join(_TOKEN.findall(question.lower()))


def keywords(text: str) -> frozenset[str]:
    return frozenset(
        t for t in _TOKEN.findall(text.lower()) if t not in _STOPWORDS
    )


def similarity(a: str, b: str) -> float:
    """Keyword Jaccard overlap in [0, 1]."""
    ka, kb = keywords(a), keywords(b)
    if not ka or not kb:
        return 0.0
    return len(ka & kb) / len(ka | kb)


def max_similarity(question: str, others: Iterable[str]) -> float:
    return max((similarity(question, o) for o in others), default=0.0)
