"""
Cache key derivation.

Pure functions shared by the read and the write path, so a key computed at
lookup time always equals the key computed when the entry was saved.
"""

import hashlib
import re
import unicodedata

# ASCII and Arabic sentence punctuation, quotes and brackets
PUNCTUATION = "?!.,;:\"'`()[]{}«»؟،؛…"

_PUNCTUATION_TABLE = str.maketrans("", "", PUNCTUATION)
_WHITESPACE = re.compile(r"\s+")


def normalize_question(question: str, max_chars: int = 200) -> str:
    """
    Normalize a question into an exact-match cache key.

    Args:
        question: Raw question text
        max_chars: Maximum length of the key

    Returns:
        NFKC-normalized, lowercased text without the fixed punctuation set,
        with whitespace collapsed, trimmed and truncated to max_chars
    """
    text = unicodedata.normalize("NFKC", question).lower()
    text = text.translate(_PUNCTUATION_TABLE)
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:max_chars].rstrip()


def context_fingerprint(context: str | None, prefix_chars: int = 2000) -> str:
    """
    Derive the partition key for a lecture context.

    Args:
        context: Lecture context (None is treated as empty)
        prefix_chars: Only this many leading characters take part

    Returns:
        SHA-256 hex digest of the context prefix
    """
    prefix = (context or "")[:prefix_chars]
    return hashlib.sha256(prefix.encode("utf-8")).hexdigest()


def storage_key(index_name: str, partition_key: str, normalized: str) -> str:
    """
    Build the physical store key for an exact-match entry.

    Args:
        index_name: Key prefix
        partition_key: Context fingerprint
        normalized: Output of normalize_question

    Returns:
        Key of the form ``{index}:exact:{partition}:{sha256}``
    """
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return f"{index_name}:exact:{partition_key}:{digest}"
