"""Text normalization shared by every prompt classifier.

Two forms are produced from one input:

- ``text``: lower-cased, diacritics stripped, whitespace collapsed.
  Punctuation is kept so hyphenated vocabulary (``multi-cloud``,
  ``docker-compose``) and paths (``ci/cd``) still match as written.
- ``strict``: ``text`` with punctuation replaced by spaces. Intent
  keywords are matched against this form, so ``multi-cloud`` and
  ``multi cloud`` score the same.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

from cortexops.constants import SHORT_TERM_MAX_LENGTH

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")

STOP_WORDS: frozenset[str] = frozenset({
    # French
    "le", "la", "les", "un", "une", "des", "de", "du",
    "et", "ou", "mais", "donc", "or", "ni", "car",
    "je", "tu", "il", "elle", "nous", "vous", "ils", "elles",
    "mon", "ma", "mes", "ton", "ta", "tes", "son", "sa", "ses",
    "ce", "cette", "ces", "pour", "par", "avec", "sans", "sur",
    "sous", "dans", "en", "a", "au", "aux", "chez",
    # English
    "the", "an", "and", "or", "of", "to", "for", "with", "on",
    "in", "at", "by", "from", "into", "my", "our", "is", "are",
    "be", "it", "this", "that",
})


@dataclass(frozen=True)
class NormalizedText:
    """A prompt in its normalized forms."""

    raw: str
    text: str
    strict: str
    tokens: tuple[str, ...]

    @property
    def is_blank(self) -> bool:
        return not self.text

    @property
    def words(self) -> frozenset[str]:
        """Every whitespace-separated word, punctuation split, stop-words kept."""
        return frozenset(self.strict.split())


def fold(text: str) -> str:
    """Lower-case, strip combining marks and collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(
        ch for ch in decomposed if not unicodedata.combining(ch)
    )
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def strip_punctuation(text: str) -> str:
    """Replace punctuation (including ``-`` and ``/``) with spaces."""
    spaced = _PUNCTUATION_RE.sub(" ", text).replace("_", " ")
    return _WHITESPACE_RE.sub(" ", spaced).strip()


def tokenize(strict_text: str) -> tuple[str, ...]:
    """Split strict text, dropping stop-words and single characters."""
    return tuple(
        token
        for token in strict_text.split()
        if len(token) > 1 and token not in STOP_WORDS
    )


def normalize(text: str | None) -> NormalizedText:
    """Build the normalized forms of ``text``.

    Never fails: ``None`` and blank input yield empty forms.
    """
    raw = text or ""
    folded = fold(raw)
    strict = strip_punctuation(folded)
    return NormalizedText(
        raw=raw,
        text=folded,
        strict=strict,
        tokens=tokenize(strict),
    )


def normalize_term(term: str, *, strict: bool = False) -> str:
    """Normalize a vocabulary entry the same way prompts are."""
    folded = fold(term)
    return strip_punctuation(folded) if strict else folded


def contains_term(
    haystack: str,
    term: str,
    words: frozenset[str] | None = None,
) -> bool:
    """Substring test with a whole-word rule for very short terms.

    ``term`` must already be normalized. Terms of
    SHORT_TERM_MAX_LENGTH characters or fewer ("do", "ha", "k8s")
    match only as a whole word, otherwise "do" would hit "docker".
    """
    if not term:
        return False
    if len(term) <= SHORT_TERM_MAX_LENGTH and " " not in term:
        pool = (
            words
            if words is not None
            else frozenset(strip_punctuation(haystack).split())
        )
        return strip_punctuation(term) in pool or term in haystack.split()
    return term in haystack
