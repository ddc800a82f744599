"""Tests for splitting uploads into knowledge entries."""

from backend.clinic.knowledge.sections import (
    DEFAULT_TAGS,
    build_upload_entries,
    extract_tags,
    section_title,
    split_sections,
)
from backend.clinic.models.knowledge import KnowledgeSource

PARAGRAPH = (
    "Microneedling with PRP stimulates collagen production and improves texture "
    "over three to six sessions with minimal downtime."
)


def test_paragraphs_used_when_three_or_more():
    text = "\n\n".join([PARAGRAPH, PARAGRAPH.replace("PRP", "RF"), PARAGRAPH.upper()])
    sections = split_sections(text)

    assert len(sections) == 3
    assert sections[0] == PARAGRAPH


def test_sentence_grouping_when_few_paragraphs():
    sentence = "Chemical peels treat shallow scars and uneven discoloration gently. "
    text = sentence * 20
    sections = split_sections(text, section_chars=300)

    assert len(sections) >= 3
    assert all(len(s) > 50 for s in sections)


def test_fixed_slices_as_last_resort():
    text = "x" * 1600
    sections = split_sections(text)

    assert [len(s) for s in sections] == [500, 500, 500, 100]


def test_title_is_first_sentence_without_bullets():
    assert section_title("## Laser resurfacing basics. More text.", "guide.md", 0) == (
        "Laser resurfacing basics"
    )


def test_short_title_falls_back_to_file_part():
    assert section_title("Hi. Then more.", "clinic guide.pdf", 2) == "clinic guide - Part 3"


def test_tags_are_most_frequent_meaningful_words():
    tags = extract_tags("Laser laser laser scars scars downtime which which which the")

    assert tags == ["laser", "scars", "downtime"]


def test_tags_default_when_nothing_meaningful():
    assert extract_tags("a an the 123 it") == DEFAULT_TAGS


def test_build_upload_entries_caps_count_and_sets_metadata():
    text = "\n\n".join(f"{PARAGRAPH} Variant number {i}." for i in range(30))
    entries = build_upload_entries(text, "faq.md", "FAQs", max_sections=20)

    assert len(entries) == 20
    first = entries[0]
    assert first.category == "FAQs"
    assert first.source == KnowledgeSource.upload
    assert first.file_name == "faq.md"
    assert len(first.content) <= 3000
    assert first.tags
