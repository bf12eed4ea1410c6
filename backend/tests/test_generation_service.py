import random
import unittest

from core.llm_client import GenerationClient, GenerationOutcome, ProviderConfig
from models import GenerationRequest
from services.generation import GenerationFailedError, run_generation


class _FixedClient:
    def __init__(self, text, used_fallback=False):
        self.outcome = GenerationOutcome(text=text, used_fallback=used_fallback)
        self.prompts = []

    def generate_with_outcome(self, prompt, settings, config):
        self.prompts.append(prompt)
        return self.outcome


def _request(kind="chapter", **extra):
    payload = {
        "kind": kind,
        "settings": {"targetWordCount": 200, "perspective": "first_person"},
        "context": {"projectId": "p1", "customInstructions": "保持悬念"},
    }
    payload.update(extra)
    return GenerationRequest.model_validate(payload)


class RunGenerationTest(unittest.TestCase):
    def setUp(self):
        self.config = ProviderConfig.build(api_key="k")

    def test_returns_content_metadata_and_prompt(self):
        client = _FixedClient("他感到一阵紧张。\n\n门开了。")
        result = run_generation(_request(), client, self.config)

        self.assertEqual(result.content, "他感到一阵紧张。\n\n门开了。")
        self.assertEqual(result.metadata.word_count, 10)
        self.assertEqual(result.metadata.paragraph_count, 2)
        self.assertEqual(result.metadata.tone, "tense")
        self.assertFalse(result.metadata.used_fallback)
        self.assertIn("视角: 第一人称", result.prompt)
        self.assertIn("保持悬念", client.prompts[0])

    def test_fallback_flag_is_propagated(self):
        result = run_generation(_request(), _FixedClient("备用内容。", used_fallback=True), self.config)
        self.assertTrue(result.metadata.used_fallback)

    def test_blank_content_raises(self):
        with self.assertRaises(GenerationFailedError):
            run_generation(_request(), _FixedClient("   "), self.config)

    def test_offline_client_produces_fallback(self):
        client = GenerationClient(rng=random.Random(3))
        result = run_generation(_request("dialogue"), client, ProviderConfig.build(api_key=None))
        self.assertTrue(result.metadata.used_fallback)
        self.assertGreater(result.metadata.word_count, 0)
        self.assertLessEqual(result.metadata.word_count, 240)

    def test_revision_prompt_includes_source(self):
        client = _FixedClient("修订后的内容。")
        run_generation(_request("revision", sourceContent="旧稿"), client, self.config)
        self.assertIn("## 原始内容\n旧稿", client.prompts[0])


if __name__ == "__main__":
    unittest.main()
