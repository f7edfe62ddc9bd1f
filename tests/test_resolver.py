"""
Tests for fuzzy contact-name resolution
"""
import unittest

from apple_mcp.resolver import fold_repeats, normalize_name, resolve_name, resolve_numbers


class TestResolver(unittest.TestCase):
    """Tests for the resolver strategies"""

    def setUp(self):
        self.directory = {
            "Jon Smith": ["+15551234567"],
            "Alice Walker": ["+15559876543"],
        }

    def test_normalize_name(self):
        self.assertEqual(normalize_name("  Mom ❤️  "), "mom")
        self.assertEqual(normalize_name("Jon   Smith"), "jon smith")
        self.assertEqual(normalize_name(""), "")

    def test_fold_repeats(self):
        self.assertEqual(fold_repeats("jonnn"), "jon")

    def test_jon_smith_queries(self):
        """Each query variant resolves to Jon Smith"""
        for query in ["jon", "Jon", "jonn", "smith", "JonSmith", "Jon Smith"]:
            with self.subTest(query=query):
                self.assertEqual(resolve_numbers(query, self.directory), ["+15551234567"])

    def test_word_boundary_rejects_substring(self):
        """'dad' must not match 'Trinidad'"""
        self.assertEqual(resolve_numbers("dad", {"Trinidad": ["+15550000000"]}), [])

    def test_word_boundary_accepts_word(self):
        directory = {"Trinidad": ["+15550000000"], "My Dad": ["+15551111111"]}
        self.assertEqual(resolve_name("dad", directory), "My Dad")

    def test_exact_beats_prefix(self):
        directory = {"Alexander": ["1"], "Alex": ["2"]}
        self.assertEqual(resolve_name("alex", directory), "Alex")

    def test_first_in_snapshot_order_wins(self):
        directory = {"Sam Brown": ["1"], "Sam Green": ["2"]}
        self.assertEqual(resolve_name("sam", directory), "Sam Brown")

    def test_emoji_only_names_are_skipped(self):
        directory = {"❤️": ["1"], "Mom": ["2"]}
        self.assertEqual(resolve_name("mom", directory), "Mom")

    def test_empty_query(self):
        self.assertIsNone(resolve_name("   ", self.directory))
        self.assertEqual(resolve_numbers("", self.directory), [])

    def test_no_match(self):
        self.assertIsNone(resolve_name("zebra", self.directory))


if __name__ == '__main__':
    unittest.main()
