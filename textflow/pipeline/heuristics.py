"""
Local text algorithms.

``clean_text`` is the always-local step. The remaining functions are
deterministic stand-ins for the AI-backed steps, used when provider calls are
exhausted and local fallback is enabled. None of them touch the network.
"""

import re
from typing import Callable, Dict, List

from .steps import StepType

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_NON_TITLE_CHARS_RE = re.compile(r"[^\w\s-]")

SUMMARY_MIN_SENTENCES = 3
SUMMARY_MAX_SENTENCES = 5
SUMMARY_TRUNCATE_CHARS = 400
KEY_POINTS_MAX = 5
KEY_POINT_TRUNCATE_CHARS = 160
TITLE_MAX_WORDS = 8

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Technology": ["software", "ai", "tech", "app", "digital", "code", "data"],
    "Business": ["market", "revenue", "business", "customer", "sales", "company"],
    "Finance": ["budget", "finance", "investment", "profit", "cost", "money"],
    "Health": ["health", "medical", "wellness", "patient", "treatment"],
    "Education": ["education", "learning", "school", "student", "course", "training"],
}

POSITIVE_WORDS = ["good", "great", "excellent", "positive", "happy", "success", "improve"]
NEGATIVE_WORDS = ["bad", "poor", "negative", "sad", "fail", "problem", "issue"]

CONTRACTIONS: Dict[str, str] = {
    "can't": "cannot",
    "won't": "will not",
    "shan't": "shall not",
    "don't": "do not",
    "doesn't": "does not",
    "didn't": "did not",
    "isn't": "is not",
    "aren't": "are not",
    "wasn't": "was not",
    "weren't": "were not",
    "haven't": "have not",
    "hasn't": "has not",
    "hadn't": "had not",
    "wouldn't": "would not",
    "shouldn't": "should not",
    "couldn't": "could not",
    "mustn't": "must not",
    "i'm": "I am",
    "i've": "I have",
    "i'll": "I will",
    "i'd": "I would",
    "you're": "you are",
    "you've": "you have",
    "you'll": "you will",
    "we're": "we are",
    "we've": "we have",
    "we'll": "we will",
    "they're": "they are",
    "they've": "they have",
    "they'll": "they will",
    "it's": "it is",
    "that's": "that is",
    "there's": "there is",
    "what's": "what is",
    "let's": "let us",
}

_CONTRACTION_RE = re.compile(
    r"\b(" + "|".join(re.escape(c).replace("'", "['’]") for c in CONTRACTIONS) + r")\b",
    re.IGNORECASE,
)


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run, newlines included, to one space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """Local clean-up step. Idempotent."""
    return normalize_whitespace(text)


def split_sentences(text: str) -> List[str]:
    """
    Split normalized text into sentences after ``.``, ``!`` or ``?``.

    Returns an empty list when the text has no sentence-ending punctuation.
    """
    pieces = [piece.strip() for piece in _SENTENCE_SPLIT_RE.split(text)]
    pieces = [piece for piece in pieces if piece]
    if not any(piece[-1] in ".!?" for piece in pieces):
        return []
    return pieces


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def summarize_locally(text: str) -> str:
    normalized = normalize_whitespace(text)
    if not normalized:
        return ""

    sentences = split_sentences(normalized)
    if not sentences:
        if len(normalized) > SUMMARY_TRUNCATE_CHARS:
            return f"{normalized[:SUMMARY_TRUNCATE_CHARS].strip()}..."
        return normalized

    count = min(SUMMARY_MAX_SENTENCES, max(SUMMARY_MIN_SENTENCES, len(sentences)))
    return " ".join(sentences[:count])


def extract_key_points_locally(text: str) -> str:
    normalized = normalize_whitespace(text)
    if not normalized:
        return "- No key points found."

    points = split_sentences(normalized)[:KEY_POINTS_MAX]
    if not points:
        points = [normalized[:KEY_POINT_TRUNCATE_CHARS].strip()]
    return "\n".join(f"- {point}" for point in points)


def tag_category_locally(text: str) -> str:
    lowered = text.lower()
    matched = [
        category
        for category, keywords in CATEGORY_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]
    return ", ".join(matched) if matched else "General"


def sentiment_analysis_locally(text: str) -> str:
    lowered = text.lower()
    positive_score = sum(lowered.count(word) for word in POSITIVE_WORDS)
    negative_score = sum(lowered.count(word) for word in NEGATIVE_WORDS)

    if positive_score > negative_score:
        return "Positive"
    if negative_score > positive_score:
        return "Negative"
    return "Neutral"


def _expand_contraction(match: "re.Match") -> str:
    found = match.group(0)
    expansion = CONTRACTIONS[found.lower().replace("’", "'")]
    if found[0].isupper():
        return _capitalize_first(expansion)
    return expansion


def rewrite_professional_locally(text: str) -> str:
    normalized = normalize_whitespace(_CONTRACTION_RE.sub(_expand_contraction, text))
    if not normalized:
        return ""
    return _capitalize_first(normalized)


def generate_title_locally(text: str) -> str:
    cleaned = normalize_whitespace(_NON_TITLE_CHARS_RE.sub("", text))
    if not cleaned:
        return "Untitled"

    title = " ".join(cleaned.split(" ")[:TITLE_MAX_WORDS])
    return _capitalize_first(title)


LOCAL_HEURISTICS: Dict[StepType, Callable[[str], str]] = {
    StepType.SUMMARIZE: summarize_locally,
    StepType.EXTRACT_KEY_POINTS: extract_key_points_locally,
    StepType.TAG_CATEGORY: tag_category_locally,
    StepType.SENTIMENT_ANALYSIS: sentiment_analysis_locally,
    StepType.REWRITE_PROFESSIONAL: rewrite_professional_locally,
    StepType.GENERATE_TITLE: generate_title_locally,
}
