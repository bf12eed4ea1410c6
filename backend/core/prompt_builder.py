"""Assembles the single instruction string sent to the generation model."""

from typing import Dict, List, Optional

from models import (
    Character,
    GenerationKind,
    GenerationSettings,
    NarrativeContext,
    TargetScene,
    WorldSetting,
)
from utils.text_metrics import truncate_chars

SYSTEM_FRAMING = "你是一个专业的小说创作助手。请根据以下要求生成高质量的中文小说内容。"

RECAP_CHAPTER_COUNT = 2
RECAP_EXCERPT_CHARS = 300

ROLE_LABELS: Dict[str, str] = {
    "protagonist": "主角",
    "antagonist": "反派",
    "supporting": "配角",
    "minor": "次要角色",
}

KIND_LABELS: Dict[str, str] = {
    "chapter": "章节",
    "scene": "场景",
    "character_description": "角色描述",
    "dialogue": "对话",
    "revision": "修订",
}

PERSPECTIVE_LABELS: Dict[str, str] = {
    "first_person": "第一人称",
    "second_person": "第二人称",
    "third_person_limited": "第三人称限知",
    "third_person_omniscient": "第三人称全知",
}

TENSE_LABELS: Dict[str, str] = {
    "past": "过去时",
    "present": "现在时",
    "future": "将来时",
}

DESCRIPTION_LEVEL_LABELS: Dict[str, str] = {
    "minimal": "简洁",
    "moderate": "适中",
    "detailed": "详细",
}

PACING_LABELS: Dict[str, str] = {
    "fast": "快节奏",
    "medium": "中等节奏",
    "slow": "慢节奏",
}


def label_for(table: Dict[str, str], value) -> str:
    """Display label for ``value``; unknown values are returned unchanged."""
    key = value.value if hasattr(value, "value") else value
    return table.get(key, key)


def world_setting_section(world: WorldSetting) -> str:
    lines = [
        "## 世界设定",
        f"名称: {world.name}",
        f"描述: {world.description}",
        f"时代: {world.era}",
        f"科技水平: {world.technology_level}",
    ]
    if world.magic_system:
        lines.append(f"魔法体系: {world.magic_system}")
    lines.extend(
        [
            f"地理环境: {world.geography}",
            f"政治制度: {world.politics}",
            f"经济体系: {world.economy}",
            f"文化特色: {world.culture}",
            f"历史背景: {world.history}",
        ]
    )
    return "\n".join(lines) + "\n\n"


def character_block(character: Character) -> str:
    lines = [
        f"### {character.name} ({label_for(ROLE_LABELS, character.role)})",
        f"外貌: {character.appearance}",
        f"性格: {character.personality}",
        f"背景: {character.background}",
        f"目标: {character.goals}",
        f"当前状态: {character.current_status}",
    ]
    if character.skills:
        lines.append(f"技能: {', '.join(character.skills)}")
    return "\n".join(lines) + "\n\n"


def characters_section(characters: List[Character]) -> str:
    return "## 主要角色\n" + "".join(character_block(character) for character in characters)


def target_scene_section(scene: TargetScene) -> str:
    lines = [
        "## 目标场景",
        f"标题: {scene.title}",
        f"描述: {scene.description}",
        f"地点: {scene.location}",
        f"时间: {scene.time}",
        f"目的: {scene.purpose}",
        f"情绪氛围: {scene.mood}",
    ]
    if scene.conflicts:
        lines.append(f"冲突元素: {', '.join(scene.conflicts)}")
    if scene.outcomes:
        lines.append(f"预期结果: {', '.join(scene.outcomes)}")
    return "\n".join(lines) + "\n\n"


def previous_chapters_section(previous_chapters: List[str]) -> str:
    """
    Recap of the most recent prior chapters.

    Only the last two chapters are shown, but headings carry their real
    chapter numbers: with five prior chapters the recap reads 第 4 / 第 5.
    """
    total = len(previous_chapters)
    recent = previous_chapters[-RECAP_CHAPTER_COUNT:]
    parts = ["## 前文回顾\n"]
    for index, chapter in enumerate(recent):
        number = total - len(recent) + index + 1
        parts.append(f"### 第 {number} 章节摘要\n")
        parts.append(f"{truncate_chars(chapter, RECAP_EXCERPT_CHARS)}\n\n")
    return "".join(parts)


def requirements_section(kind: str, settings: GenerationSettings) -> str:
    lines = [
        "## 写作要求",
        f"类型: {label_for(KIND_LABELS, kind)}",
        f"视角: {label_for(PERSPECTIVE_LABELS, settings.perspective)}",
        f"时态: {label_for(TENSE_LABELS, settings.tense)}",
        f"风格: {settings.style}",
        f"语调: {settings.tone}",
        f"目标字数: {settings.target_word_count}",
        f"描述程度: {label_for(DESCRIPTION_LEVEL_LABELS, settings.description_level)}",
        f"节奏: {label_for(PACING_LABELS, settings.pacing)}",
        f"是否包含对话: {'是' if settings.include_dialogue else '否'}",
    ]
    if settings.focus_elements:
        lines.append(f"重点元素: {', '.join(settings.focus_elements)}")
    return "\n".join(lines) + "\n"


def closing_instruction(kind: str, source_content: Optional[str]) -> str:
    if kind == GenerationKind.REVISION and source_content:
        return (
            f"\n## 原始内容\n{source_content}\n"
            "\n请根据上述要求对原始内容进行修订和改进。\n"
        )
    return (
        f"\n请根据上述设定和要求创作{label_for(KIND_LABELS, kind)}内容。"
        "要求语言流畅、情节连贯、人物形象鲜明。\n"
    )


def build_prompt(
    kind: str,
    settings: GenerationSettings,
    context: NarrativeContext,
    source_content: Optional[str] = None,
) -> str:
    parts: List[str] = [f"{SYSTEM_FRAMING}\n\n"]

    if context.world_setting:
        parts.append(world_setting_section(context.world_setting))
    if context.characters:
        parts.append(characters_section(context.characters))
    if context.target_scene:
        parts.append(target_scene_section(context.target_scene))
    if context.previous_chapters:
        parts.append(previous_chapters_section(context.previous_chapters))

    parts.append(requirements_section(kind, settings))

    if context.custom_instructions:
        parts.append(f"\n## 特殊要求\n{context.custom_instructions}\n")

    parts.append(closing_instruction(kind, source_content))
    return "".join(parts)
