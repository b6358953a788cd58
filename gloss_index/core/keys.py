"""Key derivation: folding, query normalization, and keyword extraction.

WHY: The index is keyed by normalized glosses. The builder derives keys
from French subtitle text, the readers derive them from gloss strings
produced by the translator. If the two derivations drift apart, lookups
silently miss. Both therefore go through one folding function here.

HOW: fold_token() is the single canonical form: Unicode NFD, combining
marks stripped, ligatures expanded, non-alphanumerics removed, uppercase.
normalize_key() folds a whole gloss (dropping elided French particles
like the L' in "L'été") into one key. extract_keys() splits running text
into tokens, folds each one, and keeps only index-worthy tokens. Both
split words with the same tokenizer, so an apostrophe inside a word
("aujourd'hui") never yields different keys on the two sides.

RULES:
- normalize_key() is idempotent: normalize_key(normalize_key(x)) == normalize_key(x)
- Every key returned by extract_keys() is a fixed point of normalize_key()
- extract_keys() drops tokens of length <= 2 and STOP_WORDS
- Single-token keys only — no stemming, no phrase detection
- Results are ASCII uppercase letters and digits only
"""

from __future__ import annotations

import re
import unicodedata

# ---------------------------------------------------------------------------
# Word lists
# ---------------------------------------------------------------------------

STOP_WORDS: frozenset[str] = frozenset({
    # articles and determiners
    "LES", "DES", "UNE", "CES", "CET", "CETTE", "SES", "MES", "TES",
    "LEUR", "LEURS", "NOS", "VOS", "NOTRE", "VOTRE",
    # prepositions
    "POUR", "AVEC", "DANS", "SUR", "SOUS", "PAR", "AUX", "CHEZ", "VERS",
    "ENTRE", "SANS",
    # pronouns
    "QUE", "QUI", "QUOI", "DONT", "NOUS", "VOUS", "ILS", "ELLE", "ELLES",
    "LUI", "EUX", "MOI", "TOI",
    # conjunctions and fillers
    "MAIS", "DONC", "CAR", "PUIS", "AINSI", "AUSSI",
    # very common auxiliaries
    "EST", "SONT", "ETAIT", "ONT", "AVAIT",
})
"""French function words never indexed (stored in folded form)."""

ELIDED_PARTICLES: frozenset[str] = frozenset({
    "C", "D", "J", "L", "M", "N", "S", "T", "QU",
    "JUSQU", "LORSQU", "PUISQU", "QUOIQU",
})
"""Elided particles dropped by normalize_key() when another token follows."""

MIN_KEY_LENGTH = 3

_LIGATURES = {
    "œ": "oe", "Œ": "OE",
    "æ": "ae", "Æ": "AE",
    "ß": "ss",
}

# Apostrophes (straight and typographic) only split off an elided particle
_WHITESPACE_RE = re.compile(r"\s+")
_APOSTROPHE_RE = re.compile(r"['’ʼ`]")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


def fold_token(token: str) -> str:
    """Fold one token to its canonical key form.

    WHY: "été", "ÉTÉ" and "ete" must all be the same key, whichever side
    (builder or reader) derived it.

    HOW: NFD decomposition splits "é" into "e" + combining acute; the
    combining marks are dropped; ligatures are expanded; anything that is
    not an ASCII letter or digit is removed; the rest is uppercased.

    RULES:
    - Pure and deterministic, independent of locale
    - Hyphens and punctuation inside a token are removed ("peut-être" → "PEUTETRE")
    """
    decomposed = unicodedata.normalize("NFD", token)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    expanded = "".join(_LIGATURES.get(ch, ch) for ch in stripped)
    return _NON_ALNUM_RE.sub("", expanded).upper()


def _fold_tokens(text: str) -> list[str]:
    """Split text into folded tokens.

    HOW: Splits on whitespace, then on apostrophes inside each word.
    Leading pieces that are ELIDED_PARTICLES become tokens of their own
    ("l'été" → L, ETE); the remaining pieces stay one word
    ("aujourd'hui" → AUJOURDHUI, "d'aujourd'hui" → D, AUJOURDHUI).
    Empty results are dropped.

    RULES:
    - Shared by normalize_key() and extract_keys() so both sides agree
    """
    tokens: list[str] = []
    for word in _WHITESPACE_RE.split(text):
        pieces = [fold_token(piece) for piece in _APOSTROPHE_RE.split(word)]
        pieces = [piece for piece in pieces if piece]
        while len(pieces) > 1 and pieces[0] in ELIDED_PARTICLES:
            tokens.append(pieces.pop(0))
        if pieces:
            tokens.append("".join(pieces))
    return tokens


def normalize_key(text: str) -> str:
    """Normalize a display-form gloss to its lookup key.

    WHY: Glosses arrive as "L'été", "pomme de terre" or "Ministre" and
    must hit the same keys the builder produced from subtitle text.

    HOW: Folds every token from _fold_tokens(), drops elided
    particles that precede another token, and concatenates the rest.

    RULES:
    - normalize_key("L'été") == normalize_key("l ete") == "ETE"
    - Multi-word glosses collapse into one key ("pomme de terre" → "POMMEDETERRE")
    - A lone particle is kept ("L" → "L")
    - Blank or punctuation-only input returns ""

    Args:
        text: Display-form gloss string.

    Returns:
        The normalized key (possibly empty).
    """
    tokens = _fold_tokens(text)
    kept = [
        token
        for i, token in enumerate(tokens)
        if not (token in ELIDED_PARTICLES and i < len(tokens) - 1)
    ]
    return "".join(kept)


def extract_keys(text: str) -> list[str]:
    """Extract index keys from a caption's display text.

    WHY: Subtitle text is the only signal of what is being signed at a
    given moment. Each meaningful word becomes a key pointing at that
    moment in the video.

    HOW: Tokenizes with _fold_tokens(), the same split normalize_key()
    uses, and keeps tokens longer than 2 characters that are not stop
    words. Order is preserved and duplicates are kept — each
    occurrence is an independent candidate.

    RULES:
    - extract_keys("la voiture roule vite") == ["VOITURE", "ROULE", "VITE"]
    - "l'été" yields ["ETE"]: the elided L is too short to be a key
    - "aujourd'hui" yields ["AUJOURDHUI"], the same key normalize_key() gives
    """
    return [
        token
        for token in _fold_tokens(text)
        if len(token) >= MIN_KEY_LENGTH and token not in STOP_WORDS
    ]
