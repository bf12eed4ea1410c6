"""
Offline placeholder prose used when the generation provider is unavailable.

Samples are drawn at random from a small corpus and fitted to the requested
length: padded with further samples until long enough, then trimmed back
sentence by sentence when the result overshoots by more than 20%.
"""

import random
from typing import Optional, Sequence

from models import GenerationSettings
from utils.text_metrics import SENTENCE_SPLIT_RE, count_semantic_units

FALLBACK_CORPUS: tuple[str, ...] = (
    "夜幕降临，城市中的霓虹灯开始闪烁。李明走在熟悉的街道上，心中却涌起一股莫名的不安。今晚注定不会平静。"
    "他停下脚步，回头望了一眼，确认没有人跟踪后，快步走向那栋老旧的公寓楼。",
    "古老的书卷在微风中轻轻翻动，上面记载着失落已久的法术。艾莉亚小心翼翼地伸出手，触碰那泛着微光的文字。"
    "瞬间，一股暖流从指尖传遍全身，她感到体内有什么东西正在觉醒。",
    "会议室里一片寂静，所有人的目光都聚焦在那份刚刚递过来的报告上。张总缓缓抬起头，眼中闪过一丝不易察觉的担忧。"
    "“各位，”他的声音低沉而有力，“我们面临的不仅仅是一次商业挑战。”",
    "山谷中回荡着剑刃碰撞的声音，两个身影在月光下交错而过。林风紧握手中的长剑，汗水顺着脸颊滴落。"
    "对面的黑衣人实力深不可测，这场决斗将决定整个王国的命运。",
)

SAMPLE_SEPARATOR = "\n\n"
TRIM_THRESHOLD = 1.2
SENTENCE_END = "。"


def _trim_to_target(content: str, target: int) -> str:
    sentences = [s for s in SENTENCE_SPLIT_RE.split(content) if s.strip()]
    kept = []
    running = 0
    for sentence in sentences:
        units = count_semantic_units(sentence)
        if running + units > target:
            break
        kept.append(sentence + SENTENCE_END)
        running += units

    if not kept and sentences:
        # Even the first sentence is over target; keep it whole rather than
        # return nothing.
        return sentences[0] + SENTENCE_END
    return "".join(kept)


def synthesize(
    settings: GenerationSettings,
    rng: Optional[random.Random] = None,
    corpus: Sequence[str] = FALLBACK_CORPUS,
) -> str:
    if not corpus:
        raise ValueError("fallback corpus is empty")
    if any(count_semantic_units(sample) <= 0 for sample in corpus):
        # The fill loop below only terminates if every sample adds length.
        raise ValueError("every fallback sample must contain countable text")

    picker = rng or random
    target = max(int(settings.target_word_count), 1)

    content = picker.choice(corpus)
    units = count_semantic_units(content)
    while units < target:
        sample = picker.choice(corpus)
        content += SAMPLE_SEPARATOR + sample
        units += count_semantic_units(sample)

    if units > target * TRIM_THRESHOLD:
        content = _trim_to_target(content, target)
    return content
