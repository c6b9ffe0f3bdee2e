from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

# Function words, contractions without apostrophes, social-media and web filler.
STOP_WORDS = frozenset(
    {
        # Function words
        "a", "about", "above", "after", "again", "all", "also", "am", "an", "and",
        "another", "any", "are", "as", "at", "be", "because", "been", "before",
        "being", "below", "between", "both", "but", "by", "came", "can", "cannot",
        "come", "could", "did", "do", "does", "doing", "during", "each", "few",
        "for", "from", "further", "get", "got", "had", "has", "have", "having",
        "he", "her", "here", "hers", "herself", "him", "himself", "his", "how",
        "i", "if", "in", "into", "is", "it", "its", "itself", "just", "like",
        "make", "many", "me", "might", "more", "most", "much", "must", "my",
        "myself", "never", "no", "nor", "not", "now", "of", "off", "on", "once",
        "only", "or", "other", "our", "ours", "ourselves", "out", "over", "own",
        "said", "same", "see", "she", "should", "since", "so", "some", "still",
        "such", "take", "than", "that", "the", "their", "theirs", "them",
        "themselves", "then", "there", "these", "they", "this", "those",
        "through", "to", "too", "under", "until", "up", "very", "was", "way",
        "we", "well", "were", "what", "when", "where", "which", "while", "who",
        "whom", "why", "will", "with", "would", "you", "your", "yours",
        "yourself", "yourselves", "us",
        # Prepositions
        "across", "against", "along", "among", "around", "behind", "beneath",
        "beside", "besides", "beyond", "down", "except", "inside", "near", "onto",
        "outside", "per", "throughout", "till", "toward", "upon", "within",
        "without",
        # Conjunctions and relatives
        "although", "though", "unless", "whereas", "wherever", "whether",
        "whichever", "whoever", "whose", "whatever", "whenever", "either",
        "neither", "else", "however", "therefore", "thus", "hence", "yet",
        # Adverbs and modals
        "already", "always", "ever", "every", "even", "least", "less", "often",
        "sometimes", "usually", "may", "shall", "yes",
        # Social media
        "rt", "via", "cc", "bcc", "fwd", "lol", "omg", "wtf", "btw", "imo",
        "imho", "dm", "pm", "est", "pst", "gmt", "utc",
        # Web
        "http", "https", "www", "com", "org", "net", "edu", "gov", "html", "php",
        "asp", "jsp", "url", "link", "click", "read",
        # Contractions
        "dont", "wont", "cant", "shouldnt", "wouldnt", "couldnt", "isnt", "arent",
        "wasnt", "werent", "hasnt", "havent", "hadnt", "didnt", "doesnt", "im",
        "youre", "hes", "shes", "theyre", "ive", "youve", "weve", "theyve", "ill",
        "youll", "hell", "shell", "theyll",
        # Numbers and ordinals
        "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
        "ten", "hundred", "thousand", "million", "billion", "first", "second",
        "third", "last", "next", "previous", "new", "old",
        # Filler
        "really", "actually", "basically", "literally", "totally", "definitely",
        "probably", "maybe", "perhaps", "quite", "rather", "pretty",
        # Time
        "today", "tomorrow", "yesterday", "soon", "later", "early", "late",
        "morning", "afternoon", "evening", "night", "day", "week", "month",
        "year", "time", "times", "moment", "moments", "monday", "tuesday",
        "wednesday", "thursday", "friday", "saturday", "sunday", "weekend",
    }
)

# Simplified Porter rules. Only the first matching rule is applied to a word.
STEMMING_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern + "$"), replacement)
    for pattern, replacement in (
        # plurals
        ("sses", "ss"),
        ("ies", "i"),
        ("ss", "ss"),
        ("s", ""),
        # verb endings
        ("eed", "ee"),
        ("(?:ed|ing)", ""),
        # derivational
        ("ational", "ate"),
        ("tional", "tion"),
        ("enci", "ence"),
        ("anci", "ance"),
        ("izer", "ize"),
        ("abli", "able"),
        ("alli", "al"),
        ("entli", "ent"),
        ("eli", "e"),
        ("ousli", "ous"),
        ("ization", "ize"),
        ("ation", "ate"),
        ("ator", "ate"),
        ("alism", "al"),
        ("iveness", "ive"),
        ("fulness", "ful"),
        ("ousness", "ous"),
        ("aliti", "al"),
        ("iviti", "ive"),
        ("biliti", "ble"),
        ("icate", "ic"),
        ("ative", ""),
        ("alize", "al"),
        ("iciti", "ic"),
        ("ical", "ic"),
        ("ful", ""),
        ("ness", ""),
        # generic suffixes
        ("(?:al|ance|ence|er|ic|able|ible|ant|ement|ment|ent|ion|ou|ism|ate|iti|ous|ive|ize)", ""),
        ("e", ""),
        ("ll", "l"),
    )
)

_URL_RE = re.compile(r"https?://\S+")
_WWW_RE = re.compile(r"www\.\S+")
_EMAIL_RE = re.compile(r"[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}")
_HASHTAG_RE = re.compile(r"#([a-z0-9_]+)")
_MENTION_RE = re.compile(r"@([a-z0-9_]+)")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_DIGITS_RE = re.compile(r"\d+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_NON_ALPHA_RE = re.compile(r"[^a-z\s]")


@dataclass(frozen=True)
class NormalizeOptions:
    remove_stop_words: bool = True
    apply_stemming: bool = True
    min_word_length: int = 3
    remove_numbers: bool = True
    remove_urls: bool = True
    remove_punctuation: bool = True


DEFAULT_OPTIONS = NormalizeOptions()


def is_stop_word(word: str) -> bool:
    return word.lower() in STOP_WORDS


def stem_word(word: str) -> str:
    """Strip one suffix using the first matching rule in STEMMING_RULES."""
    if len(word) <= 2:
        return word

    stemmed = word.lower()
    for pattern, replacement in STEMMING_RULES:
        if pattern.search(stemmed):
            return pattern.sub(replacement, stemmed, count=1)
    return stemmed


def normalize(text: str, options: Optional[NormalizeOptions] = None) -> list[str]:
    """
    Clean, tokenize and filter text into unique tokens.

    Steps (fixed order): lowercase, strip URLs/emails, unwrap hashtags and
    mentions, drop punctuation, split, length filter, number filter,
    stop-word filter, stemming. Duplicates are removed keeping the first
    occurrence.

    Non-string or empty input -> [].
    """
    if not text or not isinstance(text, str):
        return []

    opts = options or DEFAULT_OPTIONS
    processed = text.lower()

    if opts.remove_urls:
        processed = _URL_RE.sub(" ", processed)
        processed = _WWW_RE.sub(" ", processed)
        processed = _EMAIL_RE.sub(" ", processed)

    processed = _HASHTAG_RE.sub(r"\1", processed)
    processed = _MENTION_RE.sub(r"\1", processed)

    if opts.remove_punctuation:
        processed = _NON_ALNUM_RE.sub(" ", processed)

    words = [w for w in processed.split() if len(w) >= opts.min_word_length]

    if opts.remove_numbers:
        words = [w for w in words if not _DIGITS_RE.fullmatch(w)]

    if opts.remove_stop_words:
        words = [w for w in words if not is_stop_word(w)]

    if opts.apply_stemming:
        # stems can fall under the minimum length; those are dropped too
        words = [stem_word(w) for w in words]
        words = [w for w in words if len(w) >= opts.min_word_length]

    return list(dict.fromkeys(w for w in words if w))


def extract_top_phrases(text: str, max_phrases: int = 5) -> list[str]:
    """
    Extract 2-4 word phrases from the sentences of a text.

    Phrases starting with a stop word or with 5 characters or fewer are
    skipped. Longest phrases first; ties keep discovery order.
    """
    if not text or not isinstance(text, str):
        return []

    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text)]
    sentences = [s for s in sentences if len(s) > 10]

    phrases: dict[str, None] = {}
    for sentence in sentences:
        words = sentence.lower().split()
        for i in range(len(words) - 1):
            if is_stop_word(words[i]):
                continue
            for length in range(2, min(4, len(words) - i) + 1):
                phrase = " ".join(words[i : i + length])
                if len(phrase) <= 5:
                    continue
                cleaned = _NON_ALPHA_RE.sub("", phrase).strip()
                if len(cleaned) > 5:
                    phrases.setdefault(cleaned, None)

    ranked = sorted(phrases, key=len, reverse=True)
    return ranked[:max_phrases]


def extract_word_counts(
        texts: Iterable[str],
        max_words: int = 100,
        options: Optional[NormalizeOptions] = None,
) -> dict[str, int]:
    """
    Count normalized tokens across texts (one count per text and token).

    Returns the max_words most frequent tokens, most frequent first.
    """
    counts: Counter[str] = Counter()
    for text in texts:
        if not isinstance(text, str):
            continue
        counts.update(normalize(text, options))
    return dict(counts.most_common(max_words))
