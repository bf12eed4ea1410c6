import unittest

from core.prompt_builder import (
    SYSTEM_FRAMING,
    build_prompt,
    label_for,
    ROLE_LABELS,
)
from models import Character, GenerationSettings, NarrativeContext, TargetScene, WorldSetting


def _settings(**overrides):
    base = {
        "style": "冷峻",
        "tone": "压抑",
        "perspective": "first_person",
        "tense": "past",
        "target_word_count": 800,
        "description_level": "detailed",
        "pacing": "slow",
        "include_dialogue": True,
        "focus_elements": [],
    }
    base.update(overrides)
    return GenerationSettings(**base)


class PromptSectionTest(unittest.TestCase):
    def test_minimal_prompt_has_framing_requirements_and_closing(self):
        prompt = build_prompt("scene", _settings(), NarrativeContext())
        self.assertTrue(prompt.startswith(SYSTEM_FRAMING + "\n\n"))
        self.assertIn("## 写作要求\n类型: 场景\n视角: 第一人称\n时态: 过去时\n", prompt)
        self.assertIn("描述程度: 详细\n节奏: 慢节奏\n是否包含对话: 是\n", prompt)
        self.assertTrue(
            prompt.endswith("\n请根据上述设定和要求创作场景内容。要求语言流畅、情节连贯、人物形象鲜明。\n")
        )
        for heading in ("## 世界设定", "## 主要角色", "## 目标场景", "## 前文回顾", "## 特殊要求"):
            self.assertNotIn(heading, prompt)

    def test_world_setting_omits_missing_magic_system(self):
        context = NarrativeContext(world_setting=WorldSetting(name="北境", era="中世纪"))
        prompt = build_prompt("chapter", _settings(), context)
        self.assertIn("## 世界设定\n名称: 北境\n", prompt)
        self.assertIn("时代: 中世纪", prompt)
        self.assertNotIn("魔法体系", prompt)

        context = NarrativeContext(world_setting=WorldSetting(name="北境", magic_system="符文"))
        self.assertIn("魔法体系: 符文", build_prompt("chapter", _settings(), context))

    def test_character_roles_are_labelled(self):
        context = NarrativeContext(
            characters=[
                Character(name="李明", role="protagonist", personality="谨慎", skills=["剑术", "医术"]),
                Character(name="阿福", role="sidekick"),
            ]
        )
        prompt = build_prompt("chapter", _settings(), context)
        self.assertIn("## 主要角色\n### 李明 (主角)\n", prompt)
        self.assertIn("技能: 剑术, 医术", prompt)
        self.assertIn("### 阿福 (sidekick)\n", prompt)

    def test_target_scene_lists_conflicts_and_outcomes(self):
        scene = TargetScene(title="雪夜", mood="肃杀", conflicts=["背叛"], outcomes=["出逃"])
        prompt = build_prompt("scene", _settings(), NarrativeContext(target_scene=scene))
        self.assertIn("## 目标场景\n标题: 雪夜\n", prompt)
        self.assertIn("冲突元素: 背叛", prompt)
        self.assertIn("预期结果: 出逃", prompt)

    def test_recap_shows_last_two_chapters_with_real_numbers(self):
        chapters = [f"第{i}章内容" for i in range(1, 6)]
        prompt = build_prompt("chapter", _settings(), NarrativeContext(previous_chapters=chapters))
        self.assertIn("## 前文回顾\n### 第 4 章节摘要\n第4章内容...\n\n### 第 5 章节摘要\n第5章内容...\n\n", prompt)
        self.assertNotIn("第 3 章节摘要", prompt)

    def test_recap_excerpt_is_truncated(self):
        prompt = build_prompt("chapter", _settings(), NarrativeContext(previous_chapters=["字" * 500]))
        self.assertIn("### 第 1 章节摘要\n" + "字" * 300 + "...\n\n", prompt)

    def test_sections_appear_in_order(self):
        context = NarrativeContext(
            world_setting=WorldSetting(name="北境"),
            characters=[Character(name="李明")],
            target_scene=TargetScene(title="雪夜"),
            previous_chapters=["前情"],
            custom_instructions="不要出现现代词汇",
        )
        prompt = build_prompt("chapter", _settings(), context)
        positions = [
            prompt.index(heading)
            for heading in ("## 世界设定", "## 主要角色", "## 目标场景", "## 前文回顾", "## 写作要求", "## 特殊要求")
        ]
        self.assertEqual(positions, sorted(positions))
        self.assertIn("\n## 特殊要求\n不要出现现代词汇\n", prompt)

    def test_focus_elements_and_no_dialogue(self):
        prompt = build_prompt(
            "chapter",
            _settings(include_dialogue=False, focus_elements=["悬念", "伏笔"]),
            NarrativeContext(),
        )
        self.assertIn("是否包含对话: 否\n重点元素: 悬念, 伏笔\n", prompt)

    def test_unknown_enum_values_pass_through(self):
        prompt = build_prompt("chapter", _settings(perspective="omniscient_narrator", pacing="erratic"), NarrativeContext())
        self.assertIn("视角: omniscient_narrator", prompt)
        self.assertIn("节奏: erratic", prompt)
        self.assertEqual(label_for(ROLE_LABELS, "mentor"), "mentor")


class RevisionPromptTest(unittest.TestCase):
    def test_revision_embeds_source_content(self):
        prompt = build_prompt("revision", _settings(), NarrativeContext(), source_content="原文段落")
        self.assertIn("类型: 修订", prompt)
        self.assertTrue(prompt.endswith("\n## 原始内容\n原文段落\n\n请根据上述要求对原始内容进行修订和改进。\n"))
        self.assertNotIn("创作修订内容", prompt)

    def test_source_content_ignored_for_other_kinds(self):
        prompt = build_prompt("dialogue", _settings(), NarrativeContext(), source_content="原文段落")
        self.assertNotIn("## 原始内容", prompt)
        self.assertIn("创作对话内容", prompt)


if __name__ == "__main__":
    unittest.main()
