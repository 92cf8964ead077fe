"""
Tests for cache key derivation.
"""

import hashlib

from lecture_assistant.utils import context_fingerprint, normalize_question, storage_key


class TestNormalizeQuestion:
    def test_case_punctuation_and_whitespace(self):
        assert normalize_question("  What   is a CELL?! ") == "what is a cell"

    def test_equivalent_questions_share_a_key(self):
        assert normalize_question("What is a cell?") == normalize_question("what is a cell")

    def test_arabic_punctuation(self):
        assert normalize_question("ما هي الخلية؟") == "ما هي الخلية"
        assert normalize_question("الخلية، والنسيج؛") == "الخلية والنسيج"

    def test_nfkc_folding(self):
        # Fullwidth letters fold to ASCII
        assert normalize_question("ＣＥＬＬ") == "cell"

    def test_truncates(self):
        key = normalize_question("a" * 500, max_chars=200)
        assert len(key) == 200

    def test_truncation_does_not_leave_trailing_space(self):
        assert normalize_question("abc def", max_chars=4) == "abc"

    def test_punctuation_only_is_empty(self):
        assert normalize_question("?!...") == ""


class TestContextFingerprint:
    def test_is_sha256_of_prefix(self):
        context = "x" * 3000
        expected = hashlib.sha256(("x" * 2000).encode("utf-8")).hexdigest()
        assert context_fingerprint(context) == expected

    def test_differs_by_context(self):
        assert context_fingerprint("Biology") != context_fingerprint("Chemistry")

    def test_tail_beyond_prefix_is_ignored(self):
        head = "h" * 2000
        assert context_fingerprint(head + "one") == context_fingerprint(head + "two")

    def test_none_is_empty(self):
        assert context_fingerprint(None) == context_fingerprint("")


def test_storage_key_layout():
    key = storage_key("lecture_cache", "abc", "what is a cell")
    digest = hashlib.sha256(b"what is a cell").hexdigest()
    assert key == f"lecture_cache:exact:abc:{digest}"
