import unittest

from core.request_builders import (
    CHARACTER_DESCRIPTION_FOCUS,
    DIALOGUE_FOCUS,
    build_character_description_request,
    build_dialogue_request,
    build_revision_request,
    build_scene_request,
    build_styled_request,
)
from models import (
    Character,
    GenerationSettings,
    NarrativeContext,
    StyleCharacteristics,
    StyleTemplate,
    TargetScene,
)


class RequestBuilderTest(unittest.TestCase):
    def setUp(self):
        self.settings = GenerationSettings(target_word_count=1000, include_dialogue=False, focus_elements=["旧重点"])
        self.context = NarrativeContext(project_id="p1", custom_instructions="原有说明")
        self.hero = Character(name="李明", role="protagonist", personality="沉稳", skills=["剑术"])
        self.rival = Character(name="王五", role="antagonist", personality="狡诈")

    def test_scene_request(self):
        scene = TargetScene(
            title="雪夜",
            location="城门",
            purpose="揭示背叛",
            mood="",
            conflicts=["对峙"],
            outcomes=["出逃"],
            characters=["李明", "王五"],
        )
        request = build_scene_request(scene, self.context, self.settings)
        self.assertEqual(request.kind, "scene")
        self.assertEqual(request.context.target_scene, scene)
        self.assertEqual(request.settings.focus_elements, ["揭示背叛", "对峙", "出逃"])
        self.assertIn("场景: 雪夜", request.context.custom_instructions)
        self.assertIn("参与角色: 李明, 王五", request.context.custom_instructions)
        self.assertEqual(request.context.project_id, "p1")

    def test_character_description_caps_length(self):
        request = build_character_description_request(self.hero, self.context, self.settings)
        self.assertEqual(request.kind, "character_description")
        self.assertEqual(request.settings.target_word_count, 500)
        self.assertEqual(request.settings.focus_elements, CHARACTER_DESCRIPTION_FOCUS)
        self.assertIn("年龄: 未知", request.context.custom_instructions)
        self.assertIn("性别: 未知", request.context.custom_instructions)
        self.assertIn("技能: 剑术", request.context.custom_instructions)

    def test_character_description_keeps_shorter_target(self):
        settings = GenerationSettings(target_word_count=300)
        hero = Character(name="李明", age=28, gender="男")
        request = build_character_description_request(hero, self.context, settings)
        self.assertEqual(request.settings.target_word_count, 300)
        self.assertIn("年龄: 28", request.context.custom_instructions)
        self.assertIn("性别: 男", request.context.custom_instructions)

    def test_dialogue_forces_dialogue_on(self):
        request = build_dialogue_request([self.hero, self.rival], "城门前的对质", self.context, self.settings)
        self.assertEqual(request.kind, "dialogue")
        self.assertTrue(request.settings.include_dialogue)
        self.assertEqual(request.settings.target_word_count, 800)
        self.assertEqual(request.settings.focus_elements, DIALOGUE_FOCUS)
        self.assertIn("参与者: 李明 (protagonist), 王五 (antagonist)", request.context.custom_instructions)
        self.assertIn("角色特点: 李明: 沉稳; 王五: 狡诈", request.context.custom_instructions)

    def test_revision_carries_source(self):
        request = build_revision_request("旧稿", ["加强冲突", "精简对白"], self.context, self.settings)
        self.assertEqual(request.kind, "revision")
        self.assertEqual(request.source_content, "旧稿")
        self.assertEqual(request.settings.focus_elements, ["加强冲突", "精简对白"])
        self.assertIn("修订目标: 加强冲突, 精简对白", request.context.custom_instructions)

    def test_inputs_are_not_modified(self):
        build_dialogue_request([self.hero], "对话", self.context, self.settings)
        build_character_description_request(self.hero, self.context, self.settings)
        self.assertEqual(self.settings.target_word_count, 1000)
        self.assertFalse(self.settings.include_dialogue)
        self.assertEqual(self.settings.focus_elements, ["旧重点"])
        self.assertEqual(self.context.custom_instructions, "原有说明")


class StyledRequestTest(unittest.TestCase):
    def setUp(self):
        self.template = StyleTemplate(
            name="古龙体",
            description="短句、留白",
            sample_text="刀光一闪。",
            characteristics=StyleCharacteristics(sentence_structure="short"),
        )

    def test_style_block_appended_to_existing_instructions(self):
        base = build_revision_request("旧稿", ["精简"], NarrativeContext(), GenerationSettings())
        styled = build_styled_request(base, self.template)
        self.assertEqual(styled.settings.style, "古龙体")
        self.assertTrue(styled.context.custom_instructions.startswith(base.context.custom_instructions + "\n\n请模仿以下写作风格:"))
        self.assertIn("句式结构: short", styled.context.custom_instructions)
        self.assertTrue(styled.context.custom_instructions.endswith("参考文本片段:\n刀光一闪。"))
        self.assertEqual(styled.source_content, "旧稿")

    def test_style_block_alone_without_existing_instructions(self):
        base = build_revision_request("旧稿", [], NarrativeContext(), GenerationSettings())
        base = base.model_copy(update={"context": NarrativeContext()})
        styled = build_styled_request(base, self.template)
        self.assertTrue(styled.context.custom_instructions.startswith("请模仿以下写作风格:"))


if __name__ == "__main__":
    unittest.main()
