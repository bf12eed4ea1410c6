from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List, Optional

from models import GenerationSettings


_PRESETS: List[Dict[str, Any]] = [
    {
        "id": "fast_draft",
        "name": "快速草稿",
        "description": "简洁描写、快节奏推进，适合先把情节骨架写出来。",
        "settings": {
            "style": "simple",
            "tone": "neutral",
            "perspective": "third_person_limited",
            "tense": "past",
            "include_dialogue": True,
            "description_level": "minimal",
            "pacing": "fast",
            "focus_elements": ["plot_advancement", "action"],
        },
    },
    {
        "id": "detailed_narrative",
        "name": "细腻叙事",
        "description": "全知视角与详细描写，兼顾人物成长与世界观铺陈。",
        "settings": {
            "style": "literary",
            "tone": "immersive",
            "perspective": "third_person_omniscient",
            "tense": "past",
            "include_dialogue": True,
            "description_level": "detailed",
            "pacing": "medium",
            "focus_elements": ["character_development", "world_building", "atmosphere"],
        },
    },
    {
        "id": "dialogue_heavy",
        "name": "对话驱动",
        "description": "以人物互动推动冲突与揭示，现在时更有临场感。",
        "settings": {
            "style": "conversational",
            "tone": "dynamic",
            "perspective": "third_person_limited",
            "tense": "present",
            "include_dialogue": True,
            "description_level": "moderate",
            "pacing": "fast",
            "focus_elements": ["character_interaction", "conflict", "revelation"],
        },
    },
    {
        "id": "atmospheric",
        "name": "氛围渲染",
        "description": "无对话的慢节奏描写，突出环境、情绪与象征。",
        "settings": {
            "style": "descriptive",
            "tone": "moody",
            "perspective": "third_person_omniscient",
            "tense": "past",
            "include_dialogue": False,
            "description_level": "detailed",
            "pacing": "slow",
            "focus_elements": ["setting", "mood", "symbolism", "internal_thoughts"],
        },
    },
]


def list_generation_presets() -> List[Dict[str, Any]]:
    return deepcopy(_PRESETS)


def get_generation_preset(preset_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not preset_id:
        return None
    candidate = preset_id.strip().lower()
    for item in _PRESETS:
        if item["id"] == candidate:
            return deepcopy(item)
    return None


def apply_generation_preset(settings: GenerationSettings, preset_id: str) -> GenerationSettings:
    """Return ``settings`` with the preset's style fields applied; target length is kept."""
    preset = get_generation_preset(preset_id)
    if not preset:
        raise KeyError(f"unknown generation preset: {preset_id}")
    return settings.model_copy(update=preset["settings"])
