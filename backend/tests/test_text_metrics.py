import unittest

from utils.text_metrics import (
    count_paragraphs,
    count_semantic_units,
    count_sentences,
    estimate_reading_minutes,
    truncate_chars,
)


class SemanticUnitTest(unittest.TestCase):
    def test_mixed_text_counts_each_kind_of_unit(self):
        self.assertEqual(count_semantic_units("abc 123 你好"), 4)

    def test_punctuation_is_not_counted(self):
        self.assertEqual(count_semantic_units("Hello, world! 2024年。"), 4)

    def test_adjacent_runs_count_separately(self):
        # "abc" and "123" are different runs even without a space.
        self.assertEqual(count_semantic_units("abc123"), 2)

    def test_empty_and_non_string_input(self):
        self.assertEqual(count_semantic_units(""), 0)
        self.assertEqual(count_semantic_units(None), 0)
        self.assertEqual(count_semantic_units(42), 0)

    def test_reading_time_rounds_up(self):
        self.assertEqual(estimate_reading_minutes(0), 0)
        self.assertEqual(estimate_reading_minutes(1), 1)
        self.assertEqual(estimate_reading_minutes(300), 1)
        self.assertEqual(estimate_reading_minutes(301), 2)


class StructureCountTest(unittest.TestCase):
    def test_sentences_follow_terminators(self):
        self.assertEqual(count_sentences("一。二！三？"), 3)
        self.assertEqual(count_sentences("First. Second!"), 2)

    def test_text_without_terminator_has_no_sentences(self):
        self.assertEqual(count_sentences("没有标点"), 0)
        self.assertEqual(count_sentences(""), 0)

    def test_paragraphs_split_on_blank_lines(self):
        self.assertEqual(count_paragraphs("第一段\n\n第二段\n  \n第三段"), 3)
        self.assertEqual(count_paragraphs("同一段\n换行"), 1)

    def test_blank_text_has_no_paragraphs(self):
        self.assertEqual(count_paragraphs(""), 0)
        self.assertEqual(count_paragraphs("   \n  "), 0)

    def test_truncate_always_appends_suffix(self):
        self.assertEqual(truncate_chars("abcdef", 3), "abc...")
        self.assertEqual(truncate_chars("ab", 3), "ab...")


if __name__ == "__main__":
    unittest.main()
