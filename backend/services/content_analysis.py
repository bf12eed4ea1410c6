from typing import List, Optional, Sequence, Tuple

from models import ContentMetadata, ContentTags, ContentTone
from utils.text_metrics import (
    count_paragraphs,
    count_semantic_units,
    count_sentences,
    estimate_reading_minutes,
)


class ContentClassifier:
    """Derives key-element tags and a tone label from generated prose."""

    name = "base"

    def classify(self, text: str) -> ContentTags:
        raise NotImplementedError


# Checklist order is the output order.
KEY_ELEMENT_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("对话丰富", ('"', "“", "”", "说", "道")),
    ("场景描述", ("描述", "环境", "场景", "风景")),
    ("心理描写", ("心理", "想到", "感到", "内心")),
    ("行为描写", ("动作", "走", "看", "跑")),
    ("冲突情节", ("冲突", "战斗", "争论", "对抗")),
)

# Scanned in order; the first category with a hit wins.
TONE_KEYWORDS: Tuple[Tuple[ContentTone, Tuple[str, ...]], ...] = (
    (ContentTone.POSITIVE, ("喜悦", "快乐", "兴奋")),
    (ContentTone.NEGATIVE, ("悲伤", "痛苦", "绝望")),
    (ContentTone.TENSE, ("紧张", "危险", "惊险")),
)


class KeywordClassifier(ContentClassifier):
    name = "keyword"

    def __init__(
        self,
        key_elements: Sequence[Tuple[str, Sequence[str]]] = KEY_ELEMENT_KEYWORDS,
        tones: Sequence[Tuple[ContentTone, Sequence[str]]] = TONE_KEYWORDS,
    ):
        self.key_elements = key_elements
        self.tones = tones

    def classify(self, text: str) -> ContentTags:
        content = text or ""
        elements: List[str] = [
            label
            for label, keywords in self.key_elements
            if any(keyword in content for keyword in keywords)
        ]

        tone = ContentTone.NEUTRAL
        for candidate, keywords in self.tones:
            if any(keyword in content for keyword in keywords):
                tone = candidate
                break

        return ContentTags(key_elements=elements, tone=tone.value)


_default_classifier = KeywordClassifier()


def analyze(text: str, classifier: Optional[ContentClassifier] = None) -> ContentMetadata:
    content = text if isinstance(text, str) else ""
    word_count = count_semantic_units(content)
    tags = (classifier or _default_classifier).classify(content)
    return ContentMetadata(
        word_count=word_count,
        estimated_reading_time=estimate_reading_minutes(word_count),
        key_elements=tags.key_elements,
        tone=tags.tone,
        sentence_count=count_sentences(content),
        paragraph_count=count_paragraphs(content),
    )
