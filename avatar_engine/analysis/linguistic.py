"""Linguistic Analysis Module

Extracts emotion cues from text: lexicon sentiment, subjectivity, emotion
keywords and regex patterns, punctuation and capitalisation intensity, and
emoticons. All heuristics are explicit word lists and patterns so they can be
inspected and replaced.
"""

import logging
import re
from typing import Dict, List, Pattern

from avatar_engine.models.enums import EmotionIntensity, EmotionType
from avatar_engine.models.features import TextualFeatures

logger = logging.getLogger(__name__)


EMOTION_KEYWORDS: Dict[EmotionType, List[str]] = {
    EmotionType.HAPPY: ['happy', 'joy', 'delighted', 'pleased', 'cheerful', 'glad', 'elated', 'content'],
    EmotionType.SAD: ['sad', 'depressed', 'melancholy', 'sorrowful', 'dejected', 'despondent', 'downhearted'],
    EmotionType.ANGRY: ['angry', 'furious', 'rage', 'mad', 'irate', 'livid', 'outraged', 'incensed'],
    EmotionType.SURPRISED: ['surprised', 'astonished', 'amazed', 'shocked', 'stunned', 'bewildered'],
    EmotionType.FEARFUL: ['afraid', 'scared', 'frightened', 'terrified', 'anxious', 'worried', 'nervous'],
    EmotionType.DISGUSTED: ['disgusted', 'revolted', 'repulsed', 'sickened', 'nauseated'],
    EmotionType.EXCITED: ['excited', 'thrilled', 'exhilarated', 'energetic', 'enthusiastic', 'eager'],
    EmotionType.CALM: ['calm', 'peaceful', 'serene', 'tranquil', 'relaxed', 'composed'],
    EmotionType.FRUSTRATED: ['frustrated', 'annoyed', 'irritated', 'vexed', 'exasperated'],
    EmotionType.CONFUSED: ['confused', 'puzzled', 'perplexed', 'baffled', 'bewildered', 'unclear'],
    EmotionType.CONFIDENT: ['confident', 'assured', 'certain', 'sure', 'self-assured', 'positive'],
    EmotionType.CURIOUS: ['curious', 'interested', 'intrigued', 'wondering', 'inquisitive'],
}

# Case-sensitive patterns (shouting, repeated punctuation) are compiled without IGNORECASE
EMOTION_PATTERNS: Dict[EmotionType, List[Pattern]] = {
    EmotionType.HAPPY: [
        re.compile(r"\b(haha|hehe|lol)\b", re.IGNORECASE),
        re.compile(r":\)|:D|:-\)"),
        re.compile(r"\b(awesome|great|wonderful)\b", re.IGNORECASE),
    ],
    EmotionType.SAD: [
        re.compile(r":\(|:-\("),
        re.compile(r"\b(terrible|awful|horrible)\b", re.IGNORECASE),
        re.compile(r"\b(cry|tears)\b", re.IGNORECASE),
    ],
    EmotionType.ANGRY: [
        re.compile(r"!{2,}"),
        re.compile(r"\b(damn|hell|stupid)\b", re.IGNORECASE),
        re.compile(r"\b[A-Z]{3,}\b"),
    ],
    EmotionType.SURPRISED: [
        re.compile(r"\bwow\b", re.IGNORECASE),
        re.compile(r"\b(omg|oh my god)\b", re.IGNORECASE),
        re.compile(r"!+\?+"),
    ],
    EmotionType.CONFUSED: [
        re.compile(r"\?\?\?+"),
        re.compile(r"\b(what|huh|how)\b.*\?", re.IGNORECASE),
        re.compile(r"\b(unclear|confusing)\b", re.IGNORECASE),
    ],
}

POSITIVE_WORDS = frozenset([
    'good', 'great', 'excellent', 'amazing', 'wonderful', 'fantastic', 'awesome',
    'love', 'like', 'enjoy', 'happy', 'pleased', 'delighted', 'perfect', 'best',
])

NEGATIVE_WORDS = frozenset([
    'bad', 'terrible', 'awful', 'horrible', 'disgusting', 'hate', 'dislike',
    'sad', 'angry', 'frustrated', 'disappointed', 'worst', 'fail', 'wrong',
])

SUBJECTIVE_MARKERS = [
    'feel', 'think', 'believe', 'opinion', 'personally', 'i think', 'i feel',
    'seems', 'appears', 'probably', 'maybe', 'perhaps', 'likely', 'assume',
]

EMOTICON_PATTERNS = [
    re.compile(r":\)|:-\)|:D|:-D|;\)|;-\)"),   # happy
    re.compile(r":\(|:-\(|:'\("),              # sad
    re.compile(r":P|:-P|:p|:-p"),              # playful
    re.compile(r":o|:-o|:O|:-O"),              # surprised
    re.compile(r":\||:-\|"),                   # neutral
    re.compile(r"<3"),                         # love
]

# Word/phrase indicators per level; punctuation and caps thresholds are handled separately
INTENSITY_WORDS: Dict[EmotionIntensity, List[str]] = {
    EmotionIntensity.VERY_HIGH: ['extremely', 'incredibly', 'absolutely'],
    EmotionIntensity.HIGH: ['very', 'really', 'quite'],
    EmotionIntensity.MODERATE: ['somewhat', 'fairly'],
    EmotionIntensity.LOW: ['a bit', 'slightly', 'kind of'],
    EmotionIntensity.VERY_LOW: ['barely', 'hardly', 'scarcely'],
}
INTENSITY_EXCLAMATIONS = [
    (3, EmotionIntensity.VERY_HIGH),
    (2, EmotionIntensity.HIGH),
    (1, EmotionIntensity.MODERATE),
]
INTENSITY_CAPS = [
    (0.3, EmotionIntensity.VERY_HIGH),
    (0.15, EmotionIntensity.HIGH),
    (0.05, EmotionIntensity.MODERATE),
]

_WORD_RE = re.compile(r"[a-z]+(?:['-][a-z]+)*")


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens with surrounding punctuation stripped"""
    return _WORD_RE.findall(text.lower())


def _contains_phrase(text_lower: str, phrase: str) -> bool:
    return re.search(r"\b" + re.escape(phrase) + r"\b", text_lower) is not None


def caps_ratio(text: str) -> float:
    """Uppercase letters divided by text length"""
    if not text:
        return 0.0
    return sum(1 for c in text if 'A' <= c <= 'Z') / len(text)


def analyze_emotion_intensity(text: str) -> EmotionIntensity:
    """Intensity implied by intensifier words, exclamation marks and shouting

    The strongest indicator found wins. Text without any indicator is
    moderate.
    """
    if not text:
        return EmotionIntensity.MODERATE

    text_lower = text.lower()
    found = []
    for level, words in INTENSITY_WORDS.items():
        if any(_contains_phrase(text_lower, word) for word in words):
            found.append(level)

    exclamations = text.count('!')
    for minimum, level in INTENSITY_EXCLAMATIONS:
        if exclamations >= minimum:
            found.append(level)
            break

    ratio = caps_ratio(text)
    for threshold, level in INTENSITY_CAPS:
        if ratio > threshold:
            found.append(level)
            break

    if not found:
        return EmotionIntensity.MODERATE
    return max(found, key=lambda level: level.level)


class TextualFeatureExtractor:
    """Extracts TextualFeatures from a piece of text

    Attributes:
        keywords: Keyword lists per emotion
        patterns: Compiled regex patterns per emotion
        positive_words: Lexicon of positive words
        negative_words: Lexicon of negative words
    """

    def __init__(
        self,
        keywords: Dict[EmotionType, List[str]] = None,
        patterns: Dict[EmotionType, List[Pattern]] = None,
        positive_words=POSITIVE_WORDS,
        negative_words=NEGATIVE_WORDS,
    ):
        self.keywords = keywords if keywords is not None else EMOTION_KEYWORDS
        self.patterns = patterns if patterns is not None else EMOTION_PATTERNS
        self.positive_words = frozenset(positive_words)
        self.negative_words = frozenset(negative_words)

    def _sentiment(self, tokens: List[str]) -> float:
        positive = sum(1 for t in tokens if t in self.positive_words)
        negative = sum(1 for t in tokens if t in self.negative_words)
        total = positive + negative
        if total == 0:
            return 0.0
        return (positive - negative) / total

    @staticmethod
    def _subjectivity(text_lower: str) -> float:
        count = sum(1 for marker in SUBJECTIVE_MARKERS if _contains_phrase(text_lower, marker))
        return min(1.0, count / 10.0)

    def _find_keywords(self, tokens: List[str]) -> List[str]:
        present = set(tokens)
        found = []
        for words in self.keywords.values():
            for word in words:
                if word in present and word not in found:
                    found.append(word)
        return found

    def _pattern_matches(self, text: str) -> Dict[str, int]:
        matches = {}
        for emotion, patterns in self.patterns.items():
            count = sum(1 for pattern in patterns if pattern.search(text))
            if count:
                matches[emotion.value] = count
        return matches

    @staticmethod
    def _punctuation_intensity(text: str) -> float:
        if not text:
            return 0.0
        exclamations = text.count('!')
        questions = text.count('?')
        ellipses = len(re.findall(r"\.\.\.", text))
        multi = len(re.findall(r"[!?]{2,}", text))
        weighted = exclamations * 0.3 + questions * 0.2 + ellipses * 0.1 + multi * 0.5
        return weighted / len(text) * 100.0

    @staticmethod
    def _emoticons(text: str) -> List[str]:
        found = []
        for pattern in EMOTICON_PATTERNS:
            found.extend(pattern.findall(text))
        return found

    def extract(self, text: str) -> TextualFeatures:
        """Extract textual emotion features

        Args:
            text: Any text; empty text yields all-neutral features

        Returns:
            TextualFeatures describing the text
        """
        text = text or ""
        tokens = tokenize(text)
        features = TextualFeatures(
            sentiment=self._sentiment(tokens),
            subjectivity=self._subjectivity(text.lower()),
            keywords=self._find_keywords(tokens),
            punctuation_intensity=self._punctuation_intensity(text),
            caps_usage=caps_ratio(text),
            emoticons=self._emoticons(text),
            exclamation_count=text.count('!'),
            question_count=text.count('?'),
            pattern_matches=self._pattern_matches(text),
            intensity=analyze_emotion_intensity(text).value,
        )
        logger.debug(
            f"Textual features: sentiment={features.sentiment:.2f}, "
            f"keywords={features.keywords}, patterns={features.pattern_matches}"
        )
        return features
