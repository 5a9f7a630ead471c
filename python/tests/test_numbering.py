import pytest

from folio_text.doc.entities import (
    ChapterDef,
    SectionDef,
    SubSectionDef,
    SubSubSectionDef,
)
from folio_text.parse.numbering import DocCounter, HeadingStack, ParseCounters, number_path


def make_stack():
    counters = ParseCounters()
    chapter = ChapterDef(label=None, line=1, number=4)
    return HeadingStack(chapter, counters), counters, chapter


def test_counter_hands_out_value_before_increment():
    c = DocCounter("figures")
    assert c.value == 1
    assert c.take() == 1
    assert c.take() == 2
    assert c.value == 3


def test_counter_take_resets_subcounters():
    inner = DocCounter("inner")
    outer = DocCounter("outer", [inner])
    inner.take()
    inner.take()
    assert inner.value == 3
    outer.take()
    assert inner.value == 1


def test_flat_counters_start_at_one():
    counters = ParseCounters()
    for c in (counters.definitions, counters.figures, counters.code_blocks):
        assert c.value == 1
        assert c.subcounters == []


def test_new_section_resets_subsection_and_subsubsection():
    stack, counters, _ = make_stack()
    stack.open(SectionDef, None, 1, [])
    stack.open(SubSectionDef, None, 2, [])
    stack.open(SubSectionDef, None, 3, [])
    stack.open(SubSubSectionDef, None, 4, [])
    assert counters.subsection.value == 3
    assert counters.subsubsection.value == 2

    second = stack.open(SectionDef, None, 5, [])
    assert second.number == 2
    assert counters.subsection.value == 1
    assert counters.subsubsection.value == 1
    # The old subsection and subsubsection are no longer open
    assert stack.open_at(2) is None
    assert stack.open_at(3) is None
    assert stack.current is second


def test_new_subsection_resets_only_subsubsection():
    stack, counters, _ = make_stack()
    stack.open(SectionDef, None, 1, [])
    stack.open(SubSectionDef, None, 2, [])
    stack.open(SubSubSectionDef, None, 3, [])
    stack.open(SubSubSectionDef, None, 4, [])
    stack.open(SubSectionDef, None, 5, [])
    assert counters.section.value == 2
    assert counters.subsection.value == 3
    assert counters.subsubsection.value == 1


def test_headings_attach_to_enclosing_level():
    stack, _, chapter = make_stack()
    s1 = stack.open(SectionDef, "intro", 1, [])
    ss1 = stack.open(SubSectionDef, None, 2, [])
    sss1 = stack.open(SubSubSectionDef, None, 3, [])
    ss2 = stack.open(SubSectionDef, None, 4, [])

    assert s1.parent is chapter
    assert ss1.parent is s1
    assert sss1.parent is ss1
    assert ss2.parent is s1
    assert chapter.subsegments == [s1]
    assert s1.subsegments == [ss1, ss2]
    assert ss1.subsegments == [sss1]
    assert number_path(sss1) == [4, 1, 1, 1]
    assert number_path(ss2) == [4, 1, 2]


def test_heading_stack_rejects_skipped_levels():
    stack, _, _ = make_stack()
    with pytest.raises(ValueError):
        stack.open(SubSectionDef, None, 1, [])
    stack.open(SectionDef, None, 1, [])
    with pytest.raises(ValueError):
        stack.open(SubSubSectionDef, None, 2, [])


def test_heading_stack_rejects_second_chapter():
    stack, _, _ = make_stack()
    with pytest.raises(ValueError):
        stack.open(ChapterDef, None, 1, [])
