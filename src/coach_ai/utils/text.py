"""Text normalization used by the semantic cache and the knowledge store."""

import re

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "dare", "ought",
    "used", "this", "that", "these", "those", "it", "its", "they", "them",
    "their", "what", "which", "who", "whom", "how", "when", "where", "why",
    "your", "you", "we", "our", "my", "me", "he", "she", "his", "her",
})

_NON_WORD = re.compile(r"[^a-z0-9\s]")


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation, drop short tokens and stop words.

    Args:
        text: Free text

    Returns:
        Tokens in order of appearance (duplicates kept)
    """
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [t for t in cleaned.split() if len(t) > 2 and t not in STOP_WORDS]
