"""Pure text heuristics: self-reported confidence and reasoning extraction.

Both functions only look at the answer text. They never call out to a model,
so the same text always yields the same confidence and the same reasoning.
"""

import re
from dataclasses import dataclass

MIN_SUBSTANTIAL_LENGTH = 50
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0

_NO_REASONING = "No explicit reasoning provided."


@dataclass(frozen=True)
class MarkerGroup:
    """Regex patterns sharing one confidence delta."""

    patterns: tuple[str, ...]
    delta: float
    flags: int = re.IGNORECASE

    def count(self, text: str) -> int:
        return sum(len(re.findall(p, text, self.flags)) for p in self.patterns)

    def matches(self, text: str) -> bool:
        return any(re.search(p, text, self.flags) for p in self.patterns)


@dataclass(frozen=True)
class ConfidenceProfile:
    """Provider-specific starting point and adjustments.

    ``markers`` apply once per occurrence; ``boosts`` apply once if any of
    their patterns is present.
    """

    base: float
    short_text: float
    markers: tuple[MarkerGroup, ...] = ()
    boosts: tuple[MarkerGroup, ...] = ()


_UNCERTAINTY = (
    r"I think", r"maybe", r"possibly", r"might", r"could be",
    r"not sure", r"uncertain", r"unclear",
)

PROFILES: dict[str, ConfidenceProfile] = {
    "openai": ConfidenceProfile(
        base=0.8,
        short_text=0.3,
        markers=(MarkerGroup(_UNCERTAINTY, -0.1),),
        boosts=(MarkerGroup((r"because", r"therefore"), 0.1, flags=0),),
    ),
    "gemini": ConfidenceProfile(
        base=0.75,
        short_text=0.3,
        markers=(
            MarkerGroup(_UNCERTAINTY + (r"I believe",), -0.1),
            MarkerGroup(
                (r"definitely", r"certainly", r"clearly", r"obviously",
                 r"without doubt", r"confident", r"sure"),
                0.05,
            ),
        ),
        boosts=(
            MarkerGroup((r"because", r"therefore", r"since"), 0.1, flags=0),
            MarkerGroup((r"^\d+\.", r"First,", r"Second,"), 0.05, re.MULTILINE),
        ),
    ),
    "anthropic": ConfidenceProfile(
        base=0.8,
        short_text=0.4,
        markers=(
            MarkerGroup(
                (r"I'm confident", r"clearly", r"definitely", r"certainly",
                 r"without question", r"undoubtedly", r"precisely"),
                0.05,
            ),
            MarkerGroup(
                (r"likely", r"probably", r"generally", r"typically",
                 r"in most cases", r"usually"),
                0.02,
            ),
            MarkerGroup(
                (r"might", r"could", r"possibly", r"perhaps", r"maybe",
                 r"it seems", r"appears to", r"suggests"),
                -0.1,
            ),
        ),
        boosts=(
            MarkerGroup((r"analysis", r"considering", r"factors"), 0.05, flags=0),
            MarkerGroup((r"step \d+", r"first.*second.*third"), 0.1),
        ),
    ),
}

DEFAULT_PROFILE = PROFILES["openai"]


def profile_for(sdk: str) -> ConfidenceProfile:
    """Return the confidence profile for an SDK family, defaulting to openai's."""
    return PROFILES.get(sdk, DEFAULT_PROFILE)


def estimate_confidence(text: str, profile: ConfidenceProfile = DEFAULT_PROFILE) -> float:
    """Score how sure an answer sounds, clamped to [0.1, 1.0]."""
    if not text or len(text) < MIN_SUBSTANTIAL_LENGTH:
        return profile.short_text

    confidence = profile.base
    for group in profile.markers:
        confidence += group.count(text) * group.delta
    for group in profile.boosts:
        if group.matches(text):
            confidence += group.delta

    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))


_SECTION_RE = re.compile(
    r"^[ \t]*(?:reasoning|rationale|explanation|analysis)[ \t]*:[ \t]*(.+?)(?:\n[ \t]*\n|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_CONNECTOR_RE = re.compile(
    r"\b(?:because|since|given that|due to|therefore|thus|consequently|as a result)\s+(.+?)(?:[.\n]|$)",
    re.IGNORECASE,
)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def extract_reasoning(text: str) -> str:
    """Pull the justification out of an answer. Never returns an empty string."""
    stripped = (text or "").strip()
    if not stripped:
        return _NO_REASONING

    for match in _SECTION_RE.finditer(stripped):
        section = match.group(1).strip()
        if section:
            return section

    clauses = [m.group(1).strip() for m in _CONNECTOR_RE.finditer(stripped)]
    clauses = [c for c in clauses if c]
    if clauses:
        return ". ".join(clauses) + "."

    for paragraph in _PARAGRAPH_SPLIT_RE.split(stripped):
        paragraph = paragraph.strip()
        if len(paragraph) > MIN_SUBSTANTIAL_LENGTH:
            return paragraph[:200] + ("..." if len(paragraph) > 200 else "")

    first_sentence = _SENTENCE_SPLIT_RE.split(stripped)[0].strip()
    if len(first_sentence) > 10:
        return first_sentence + "."

    return stripped[:150] + ("..." if len(stripped) > 150 else "")
