"""
Builders for the specialised generation requests.

Each builder takes base settings/context plus a few named inputs and returns
a new ``GenerationRequest``; the inputs are never modified.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from models import (
    Character,
    GenerationKind,
    GenerationRequest,
    GenerationSettings,
    NarrativeContext,
    StyleTemplate,
    TargetScene,
)

CHARACTER_DESCRIPTION_MAX_WORDS = 500
DIALOGUE_MAX_WORDS = 800

CHARACTER_DESCRIPTION_FOCUS = ["appearance", "personality", "background", "goals", "skills"]
DIALOGUE_FOCUS = ["character_voice", "conflict", "revelation"]

UNKNOWN_VALUE = "未知"


def _join(values: Iterable[str]) -> str:
    return ", ".join(values)


def _lines(*lines: str) -> str:
    return "\n".join(lines)


def with_settings(settings: GenerationSettings, **overrides) -> GenerationSettings:
    return settings.model_copy(update=overrides)


def with_context(context: NarrativeContext, **overrides) -> NarrativeContext:
    return context.model_copy(update=overrides)


def build_scene_request(
    scene: TargetScene,
    context: NarrativeContext,
    settings: GenerationSettings,
) -> GenerationRequest:
    focus = [scene.purpose, scene.mood, *scene.conflicts, *scene.outcomes]
    instructions = _lines(
        f"场景: {scene.title}",
        f"地点: {scene.location}",
        f"时间: {scene.time}",
        f"目的: {scene.purpose}",
        f"情绪: {scene.mood}",
        f"冲突: {_join(scene.conflicts)}",
        f"结果: {_join(scene.outcomes)}",
        f"参与角色: {_join(scene.characters)}",
    )
    return GenerationRequest(
        kind=GenerationKind.SCENE.value,
        settings=with_settings(settings, focus_elements=[item for item in focus if item]),
        context=with_context(context, target_scene=scene, custom_instructions=instructions),
    )


def build_character_description_request(
    character: Character,
    context: NarrativeContext,
    settings: GenerationSettings,
) -> GenerationRequest:
    instructions = _lines(
        f"角色名称: {character.name}",
        f"角色定位: {character.role}",
        f"年龄: {character.age if character.age is not None else UNKNOWN_VALUE}",
        f"性别: {character.gender or UNKNOWN_VALUE}",
        f"外貌: {character.appearance}",
        f"性格: {character.personality}",
        f"背景: {character.background}",
        f"目标: {character.goals}",
        f"技能: {_join(character.skills)}",
        f"当前状态: {character.current_status}",
    )
    return GenerationRequest(
        kind=GenerationKind.CHARACTER_DESCRIPTION.value,
        settings=with_settings(
            settings,
            target_word_count=min(settings.target_word_count, CHARACTER_DESCRIPTION_MAX_WORDS),
            focus_elements=list(CHARACTER_DESCRIPTION_FOCUS),
        ),
        context=with_context(context, custom_instructions=instructions),
    )


def build_dialogue_request(
    participants: List[Character],
    situation: str,
    context: NarrativeContext,
    settings: GenerationSettings,
) -> GenerationRequest:
    instructions = _lines(
        f"对话情况: {situation}",
        f"参与者: {_join(f'{p.name} ({p.role})' for p in participants)}",
        f"角色特点: {'; '.join(f'{p.name}: {p.personality}' for p in participants)}",
    )
    return GenerationRequest(
        kind=GenerationKind.DIALOGUE.value,
        settings=with_settings(
            settings,
            include_dialogue=True,
            target_word_count=min(settings.target_word_count, DIALOGUE_MAX_WORDS),
            focus_elements=list(DIALOGUE_FOCUS),
        ),
        context=with_context(context, custom_instructions=instructions),
    )


def build_revision_request(
    original_content: str,
    revision_goals: List[str],
    context: NarrativeContext,
    settings: GenerationSettings,
) -> GenerationRequest:
    instructions = _lines(
        f"修订目标: {_join(revision_goals)}",
        "请基于以下目标对内容进行修订，保持原有的核心情节和人物设定。",
    )
    return GenerationRequest(
        kind=GenerationKind.REVISION.value,
        settings=with_settings(settings, focus_elements=list(revision_goals)),
        context=with_context(context, custom_instructions=instructions),
        source_content=original_content,
    )


def build_styled_request(request: GenerationRequest, template: StyleTemplate) -> GenerationRequest:
    traits = template.characteristics
    existing: Optional[str] = request.context.custom_instructions
    style_block = _lines(
        "请模仿以下写作风格:",
        f"风格名称: {template.name}",
        f"风格描述: {template.description}",
        f"词汇水平: {traits.vocabulary_level}",
        f"句式结构: {traits.sentence_structure}",
        f"描述风格: {traits.descriptive_style}",
        f"对话风格: {traits.dialogue_style}",
        f"叙述声音: {traits.narrative_voice}",
        "",
        "参考文本片段:",
        template.sample_text,
    )
    instructions = f"{existing}\n\n{style_block}" if existing else style_block
    return request.model_copy(
        update={
            "settings": with_settings(request.settings, style=template.name),
            "context": with_context(request.context, custom_instructions=instructions),
        }
    )
