"""Approximate matching of free-text names against known counterparties."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from rapidfuzz.distance import Levenshtein

from gstbooks.domain.errors import ValidationError
from gstbooks.domain.import_types import DEFAULT_MATCH_THRESHOLD, MatchResult

# normalized alias -> canonical vendor name
VENDOR_ALIASES = {
    # Internet and phone
    "telstra": "Telstra",
    "iinet": "iiNet",
    "ii net": "iiNet",
    "optus": "Optus",
    "tpg": "TPG",
    "aussie": "Aussie Broadband",
    "aussie broadband": "Aussie Broadband",
    # Cloud and tech
    "google": "Google",
    "google cloud": "Google Cloud",
    "google ads": "Google Ads",
    "aws": "AWS",
    "amazon": "Amazon",
    "amazon web services": "AWS",
    "azure": "Microsoft Azure",
    "microsoft": "Microsoft",
    "github": "GitHub",
    "gitlab": "GitLab",
    "digitalocean": "DigitalOcean",
    "digital ocean": "DigitalOcean",
    "netlify": "Netlify",
    "vercel": "Vercel",
    "heroku": "Heroku",
    "cloudflare": "Cloudflare",
    # Software and subscriptions
    "adobe": "Adobe",
    "zoom": "Zoom",
    "slack": "Slack",
    "notion": "Notion",
    "dropbox": "Dropbox",
    "figma": "Figma",
    "canva": "Canva",
    "jetbrains": "JetBrains",
    # Office
    "officeworks": "Officeworks",
    "bunnings": "Bunnings",
    "ikea": "IKEA",
    # Fuel
    "bp": "BP",
    "shell": "Shell",
    "caltex": "Caltex",
    "ampol": "Ampol",
    "7eleven": "7-Eleven",
    "7 eleven": "7-Eleven",
}

_SUFFIX_PATTERNS = [
    re.compile(r"\bpty\.?\s*ltd\.?", re.IGNORECASE),
    re.compile(r"\b(?:inc|llc|ltd|corporation|corp|company|co)\b\.?", re.IGNORECASE),
    re.compile(r"\b(?:australia|au)\b", re.IGNORECASE),
]
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

MIN_CONTAINMENT_LENGTH = 3

# (pattern, category keywords); first group of the expense category fallback
_CATEGORY_KEYWORDS = [
    (re.compile(r"cloud|aws|azure|hosting|server"), ("hosting", "cloud")),
    (re.compile(r"software|subscription|saas|\bapp\b"), ("software",)),
    (re.compile(r"internet|broadband|nbn|wifi"), ("internet",)),
    (re.compile(r"phone|mobile|telstra|optus"), ("phone",)),
    (re.compile(r"office|stationery|supplies"), ("office",)),
    (re.compile(r"furniture|desk|chair"), ("furniture",)),
    (re.compile(r"fuel|petrol|diesel|\bbp\b|shell|caltex|ampol"), ("fuel", "vehicle")),
    (re.compile(r"\bcar\b|vehicle|rego|insurance"), ("vehicle",)),
    (re.compile(r"accountant|bookkeep|\btax\b"), ("accounting",)),
    (re.compile(r"legal|lawyer|solicitor"), ("legal",)),
]


class Counterparty(Protocol):
    id: int
    name: str


@dataclass(frozen=True)
class _Candidate:
    id: int
    name: str
    lowered: str
    normalized: str


def normalize_name(value: str) -> str:
    """Normalize a counterparty name for comparison.

    Lowercases, strips business suffixes (Pty Ltd, Inc, LLC, ...) and
    country tags, removes punctuation and collapses whitespace.

    Example:
        normalize_name("Acme Pty. Ltd.") -> "acme"
        normalize_name("Ventra IP") -> "ventra ip"
    """
    result = value.lower()
    for pattern in _SUFFIX_PATTERNS:
        result = pattern.sub(" ", result)
    result = _NON_ALNUM.sub("", result)
    return _WHITESPACE.sub(" ", result).strip()


def containment_score(a: str, b: str) -> float:
    """Score one normalized name containing the other, 0.0 if neither does."""
    shorter, longer = sorted((a, b), key=len)
    if len(shorter) < MIN_CONTAINMENT_LENGTH or shorter not in longer:
        return 0.0
    return min(0.95, 0.8 + 0.15 * len(shorter) / len(longer))


def similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] of two normalized names.

    The larger of the normalized Levenshtein similarity and the
    containment score.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return max(Levenshtein.normalized_similarity(a, b), containment_score(a, b))


def extract_keywords(name: str) -> list[str]:
    """Extract category keywords from a counterparty or item name.

    Example:
        extract_keywords("AWS Cloud Hosting") -> ["hosting", "cloud"]
    """
    lowered = name.lower()
    keywords: list[str] = []
    for pattern, words in _CATEGORY_KEYWORDS:
        if pattern.search(lowered):
            for word in words:
                if word not in keywords:
                    keywords.append(word)
    return keywords


def validate_threshold(threshold: float) -> float:
    """Check a match threshold lies in [0, 1].

    Raises:
        ValidationError: If it does not
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValidationError(f"Match threshold must be between 0 and 1 (got {threshold})")
    return threshold


class CounterpartyMatcher:
    """Matches names against a read-only snapshot of vendors or clients.

    The snapshot is captured at construction; find_best_match is a pure
    function of (name, snapshot, threshold) and safe to call from several
    threads at once.
    """

    def __init__(self, counterparties: Iterable[Counterparty], use_aliases: bool = True):
        """Initialize matcher.

        Args:
            counterparties: Known vendors or clients (anything with id and name)
            use_aliases: Whether to consult the vendor alias table
        """
        self._candidates = tuple(
            _Candidate(
                id=c.id,
                name=c.name,
                lowered=c.name.strip().lower(),
                normalized=normalize_name(c.name),
            )
            for c in counterparties
        )
        self._use_aliases = use_aliases

    def __len__(self) -> int:
        return len(self._candidates)

    def find_best_match(
        self, name: Optional[str], threshold: float = DEFAULT_MATCH_THRESHOLD
    ) -> MatchResult:
        """Find the best known counterparty for a free-text name.

        Tiers, first match wins:
        1. case-insensitive exact name -> score 1.0
        2. alias of a known vendor -> score 1.0
        3. best similarity at or above threshold -> that similarity
        4. no match -> score 0, no counterparty

        Ties go to the higher score, then the lexicographically first name.

        Args:
            name: Name as it appears in the file
            threshold: Minimum similarity in [0, 1]

        Returns:
            MatchResult

        Raises:
            ValidationError: If threshold is outside [0, 1]
        """
        validate_threshold(threshold)
        if not name or not name.strip() or not self._candidates:
            return MatchResult.no_match()

        lowered = name.strip().lower()
        exact = [c for c in self._candidates if c.lowered == lowered]
        if exact:
            return self._result(min(exact, key=lambda c: c.name), 1.0, "exact")

        normalized = normalize_name(name) or lowered

        if self._use_aliases:
            canonical = VENDOR_ALIASES.get(normalized) or VENDOR_ALIASES.get(
                normalized.replace(" ", "")
            )
            if canonical:
                target = normalize_name(canonical)
                aliased = [c for c in self._candidates if c.normalized == target]
                if aliased:
                    return self._result(min(aliased, key=lambda c: c.name), 1.0, "alias")

        best: Optional[_Candidate] = None
        best_score = 0.0
        best_type = "fuzzy"
        for candidate in self._candidates:
            other = candidate.normalized or candidate.lowered
            score = similarity(normalized, other)
            if score <= 0.0 or score < threshold:
                continue
            if (
                best is None
                or score > best_score
                or (score == best_score and candidate.name < best.name)
            ):
                best = candidate
                best_score = score
                best_type = "partial" if score == containment_score(normalized, other) else "fuzzy"

        if best is None:
            return MatchResult.no_match()
        return self._result(best, best_score, best_type)

    @staticmethod
    def _result(candidate: _Candidate, score: float, match_type: str) -> MatchResult:
        return MatchResult(
            counterparty_id=candidate.id,
            counterparty_name=candidate.name,
            score=score,
            match_type=match_type,
        )
