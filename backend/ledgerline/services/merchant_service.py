"""
Merchant name normalization.

Raw statement descriptions carry reference numbers, transaction-type noise,
locations and embedded dates. Everything here is a pure function of the
description so that keys are stable across imports.
"""

import re
from typing import List

UNKNOWN_MERCHANT = "UNKNOWN MERCHANT"
UNKNOWN_MERCHANT_KEY = "UNKNOWN_MERCHANT"
MERCHANT_KEY_MAX_LENGTH = 100
DISPLAY_NAME_MAX_WORDS = 5

TRANSACTION_STOPWORDS = [
    "POS", "ONLINE", "RECURRING", "PAYMENT", "PURCHASE",
    "DEBIT", "CREDIT", "ACH", "CHECK", "TRANSFER",
]

_DIGIT_RUN_RE = re.compile(r"\d{4,}")
_STOPWORD_RE = re.compile(r"\b(?:" + "|".join(TRANSACTION_STOPWORDS) + r")\b", re.IGNORECASE)
_STATE_ZIP_RE = re.compile(r"\b[A-Za-z]{2}\s*\d{5}(?:-\d{4})?\b")
_DATE_TOKEN_RE = re.compile(r"\b\d{1,2}/\d{1,2}(?:/(?:\d{4}|\d{2}))?\b")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_KEY_CHARS_RE = re.compile(r"[^A-Z0-9]+")


def clean_merchant_name(description: str) -> str:
    """
    Strip noise from a raw description and return canonical uppercase text.

    Returns UNKNOWN_MERCHANT when nothing identifying is left.
    """
    cleaned = description or ""
    cleaned = _DIGIT_RUN_RE.sub("", cleaned)
    cleaned = _STOPWORD_RE.sub("", cleaned)
    cleaned = _STATE_ZIP_RE.sub("", cleaned)
    cleaned = _DATE_TOKEN_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip().upper()

    return cleaned or UNKNOWN_MERCHANT


def generate_merchant_key(description: str) -> str:
    """
    Derive the merchant key used for grouping and fingerprinting.

    Punctuation separates words, so "NETFLIX.COM" keys as "NETFLIX_COM".
    """
    cleaned = clean_merchant_name(description)
    key = _NON_KEY_CHARS_RE.sub("_", cleaned).strip("_")
    key = key[:MERCHANT_KEY_MAX_LENGTH].rstrip("_")

    return key or UNKNOWN_MERCHANT_KEY


def extract_merchant_display_name(description: str) -> str:
    """Human-friendly merchant name: first five cleaned words, title-cased."""
    words = clean_merchant_name(description).split()
    if not words:
        return "Unknown"

    return " ".join(
        word[0] + word[1:].lower()
        for word in words[:DISPLAY_NAME_MAX_WORDS]
    )


def _key_words(key: str) -> List[str]:
    return [word for word in key.split("_") if word]


def calculate_merchant_similarity(first: str, second: str) -> float:
    """
    Similarity of two descriptions in [0, 1].

    1.0 when the merchant keys match, otherwise the Jaccard index of the
    key words. Two empty word sets score 0.0.
    """
    key1 = generate_merchant_key(first)
    key2 = generate_merchant_key(second)

    if key1 == key2:
        return 1.0

    words1 = set(_key_words(key1))
    words2 = set(_key_words(key2))
    union = words1 | words2
    if not union:
        return 0.0

    return len(words1 & words2) / len(union)
