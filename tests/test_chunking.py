"""
Test chunking strategies.

These tests verify that:
- Semantic chunker respects paragraph boundaries and size bounds
- Sliding windows overlap by whole sentences
- Hierarchical chunks link parents and children
- Section types are detected from leading text
"""

import pytest

from hybrid_rag.chunking import (
    detect_section_type,
    hierarchical_chunk,
    semantic_chunk,
    sliding_window_chunk,
    smart_chunk,
    split_paragraphs,
    split_sentences,
)
from hybrid_rag.exceptions import ConfigurationError


def numbered_sentences(n):
    # Each sentence is 22 characters
    return " ".join(f"Sentence {i:02d} has words." for i in range(n))


class TestSplitting:
    """Tests for paragraph and sentence splitting."""

    def test_split_paragraphs_offsets(self):
        text = "First para\nstill first.\n\n  Second para.  \n\n\nThird."
        paragraphs = split_paragraphs(text)

        assert [p[0] for p in paragraphs] == ["First para still first.", "Second para.", "Third."]
        for _, start, end in paragraphs:
            assert not text[start].isspace()
            assert not text[end - 1].isspace()

    def test_split_paragraphs_single_character(self):
        assert [p[0] for p in split_paragraphs("A\n\nB")] == ["A", "B"]

    def test_split_sentences(self):
        sentences = split_sentences("Dr. smith arrived. He left! Did he? Yes 3.5 times.")
        assert [s[0] for s in sentences] == ["Dr. smith arrived.", "He left!", "Did he?", "Yes 3.5 times."]

    def test_split_empty(self):
        assert split_paragraphs("   \n\n ") == []
        assert split_sentences("") == []


class TestSectionDetection:
    """Tests for section type heuristics."""

    @pytest.mark.parametrize("text,expected", [
        ("Abstract: We propose a method.", "abstract"),
        ("Introduction\nDeep learning has grown.", "introduction"),
        ("Materials and Methods: samples were", "methods"),
        ("Results: accuracy rose.", "results"),
        ("Discussion of the findings follows.", "discussion"),
        ("Conclusion: it works.", "conclusion"),
        ("References\n[1] Smith 2020.", "references"),
    ])
    def test_section_patterns(self, text, expected):
        assert detect_section_type(text) == expected

    def test_title_heuristic(self):
        assert detect_section_type("Attention Is All You Need") == "title"

    def test_unmatched_is_none(self):
        assert detect_section_type("the model was trained for ten epochs.") is None
        assert detect_section_type("Too short") is None


class TestSemanticChunk:
    """Tests for paragraph-based semantic chunking."""

    def test_three_tiny_paragraphs_make_three_chunks(self):
        chunks = semantic_chunk("A.\n\nB.\n\nC.", target_size=2, min_size=1, max_size=3)

        assert [c.text for c in chunks] == ["A.", "B.", "C."]
        assert [c.id for c in chunks] == ["chunk_0", "chunk_1", "chunk_2"]
        assert [c.chunk_index for c in chunks] == [0, 1, 2]

    def test_oversized_paragraph_is_one_chunk(self):
        text = " ".join(["oversized"] * 300)
        chunks = semantic_chunk(text, target_size=100, min_size=50, max_size=150)

        assert len(chunks) == 1
        assert chunks[0].text == text

    def test_paragraphs_accumulate_until_target(self, sample_text):
        chunks = semantic_chunk(sample_text, target_size=250, min_size=125, max_size=375)

        assert 1 < len(chunks) < len(split_paragraphs(sample_text))
        for chunk in chunks:
            assert chunk.text.strip() == chunk.text
            assert chunk.start_char < chunk.end_char

    def test_flush_before_exceeding_max(self):
        paragraph = " ".join(["word"] * 20)  # 99 characters
        chunks = semantic_chunk("\n\n".join([paragraph] * 3), target_size=1000, min_size=0, max_size=150)

        assert len(chunks) == 3

    def test_sections_tagged(self, sample_text):
        chunks = semantic_chunk(sample_text, target_size=10, min_size=5, max_size=15)
        sections = [c.section_type for c in chunks]

        assert sections == ["abstract", "introduction", "methods", "results", "conclusion"]
        assert all(not c.has_title for c in chunks)

    def test_empty_input(self):
        assert semantic_chunk("") == []
        assert semantic_chunk("  \n\n\t ") == []

    def test_invalid_sizes(self):
        with pytest.raises(ConfigurationError):
            semantic_chunk("text", target_size=0)
        with pytest.raises(ConfigurationError):
            semantic_chunk("text", target_size=100, min_size=200, max_size=150)

    def test_never_splits_words(self, sample_text):
        words = set(sample_text.split())
        for chunk in semantic_chunk(sample_text, target_size=50, min_size=25, max_size=75):
            assert set(chunk.text.split()) <= words


class TestSlidingWindowChunk:
    """Tests for sentence-window chunking."""

    def test_windows_overlap_by_one_sentence(self):
        text = numbered_sentences(10)
        chunks = sliding_window_chunk(text, window_size=50, overlap=23, min_final_size=10)

        assert len(chunks) == 5
        assert chunks[0].text.startswith("Sentence 00")
        assert chunks[0].text.endswith("Sentence 02 has words.")
        assert chunks[1].text.startswith("Sentence 02")
        for chunk in chunks:
            assert chunk.sentence_count in (2, 3)

    def test_small_final_window_dropped(self):
        text = numbered_sentences(10)
        chunks = sliding_window_chunk(text, window_size=50, overlap=23, min_final_size=100)

        assert len(chunks) == 4
        assert chunks[-1].text.endswith("Sentence 08 has words.")

    def test_no_overlap(self):
        text = numbered_sentences(6)
        chunks = sliding_window_chunk(text, window_size=50, overlap=0, min_final_size=0)

        assert [c.sentence_count for c in chunks] == [3, 3]
        assert chunks[1].text.startswith("Sentence 03")

    def test_short_text_below_floor_is_dropped(self):
        assert sliding_window_chunk("Tiny doc.", window_size=1000, overlap=200, min_final_size=100) == []

    def test_short_text_above_floor_is_kept(self):
        chunks = sliding_window_chunk("Only one sentence.", window_size=1000, min_final_size=10)
        assert len(chunks) == 1
        assert chunks[0].text == "Only one sentence."

    def test_empty_input(self):
        assert sliding_window_chunk("   ") == []

    def test_invalid_arguments(self):
        with pytest.raises(ConfigurationError):
            sliding_window_chunk("text", window_size=0)
        with pytest.raises(ConfigurationError):
            sliding_window_chunk("text", overlap=-1)


class TestHierarchicalChunk:
    """Tests for parent/child chunking."""

    @pytest.fixture
    def four_paragraphs(self):
        paragraph = " ".join(["alpha"] * 10)  # 59 characters
        return "\n\n".join([paragraph] * 4)

    def test_parent_child_structure(self, four_paragraphs):
        chunks = hierarchical_chunk(four_paragraphs, parent_size=130, child_size=65)

        parents = [c for c in chunks if c.level == 0]
        children = [c for c in chunks if c.level == 1]

        assert [p.id for p in parents] == ["parent_0", "parent_1"]
        assert parents[0].child_ids == ["parent_0_child_0", "parent_0_child_1", "parent_0_child_2"]
        assert parents[1].child_ids == ["parent_1_child_0"]
        assert len(children) == 4
        for child in children:
            assert child.id.startswith(child.parent_id + "_child_")

    def test_flattened_order(self, four_paragraphs):
        chunks = hierarchical_chunk(four_paragraphs, parent_size=130, child_size=65)

        assert [c.id for c in chunks][:2] == ["parent_0", "parent_0_child_0"]
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))

    def test_children_stay_inside_parent(self, four_paragraphs):
        chunks = hierarchical_chunk(four_paragraphs, parent_size=130, child_size=65)
        by_id = {c.id: c for c in chunks}

        for child in (c for c in chunks if c.level == 1):
            parent = by_id[child.parent_id]
            assert parent.start_char <= child.start_char < child.end_char <= parent.end_char

    def test_empty_input(self):
        assert hierarchical_chunk("") == []


class TestSmartChunk:
    """Tests for the strategy dispatcher."""

    def test_default_is_semantic(self, sample_text):
        assert smart_chunk(sample_text) == semantic_chunk(sample_text, 800, 400, 1200)

    def test_unknown_strategy_falls_back(self, sample_text):
        assert smart_chunk(sample_text, "bogus", {"target_size": 100}) == semantic_chunk(sample_text, 100, 50, 150)

    def test_sliding(self):
        text = numbered_sentences(10)
        options = {"target_size": 50, "overlap": 23, "min_final_size": 10}
        assert smart_chunk(text, "sliding", options) == sliding_window_chunk(text, 50, 23, 10)

    def test_sliding_default_overlap(self):
        text = numbered_sentences(10)
        assert smart_chunk(text, "sliding", {"target_size": 50}) == sliding_window_chunk(text, 50, 150, 100)

    def test_hierarchical_uses_double_parent_size(self, sample_text):
        chunks = smart_chunk(sample_text, "hierarchical", {"target_size": 100})
        assert chunks == hierarchical_chunk(sample_text, 200, 100)
        assert {c.level for c in chunks} == {0, 1}
