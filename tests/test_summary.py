from pathlib import Path

import pytest

from mdshelf.items import Link, PartTitle, SectionNumber, Separator, Summary
from mdshelf.summary import SummaryParseError, SummaryParser, parse_summary


def numbered(name, location, numbers, nested=None):
    return Link(
        name=name,
        location=Path(location),
        number=SectionNumber(list(numbers)),
        nested_items=list(nested or []),
    )


def affix(name, location):
    return Link(name=name, location=Path(location))


def test_parse_initial_title():
    assert SummaryParser("# Summary").parse_title() == "Summary"


def test_no_initial_title():
    parser = SummaryParser("[Link]()")
    assert parser.parse_title() is None
    assert parser.parse_affix(True) == [Link(name="Link", location=None)]


def test_parse_title_with_styling():
    assert SummaryParser("# My **Awesome** Summary").parse_title() == "My Awesome Summary"


def test_convert_markdown_events_to_a_string():
    src = "# Hello *World*, `this` is some text [and a link](./path/to/link)"
    assert SummaryParser(src).parse_title() == "Hello World, this is some text and a link"


def test_parse_some_prefix_items():
    parser = SummaryParser("[First](./first.md)\n[Second](./second.md)\n")
    assert parser.parse_affix(True) == [
        affix("First", "./first.md"),
        affix("Second", "./second.md"),
    ]


def test_parse_prefix_items_with_a_separator():
    parser = SummaryParser("[First](./first.md)\n\n---\n\n[Second](./second.md)\n")
    got = parser.parse_affix(True)
    assert len(got) == 3
    assert got[1] == Separator()


def test_suffix_items_cannot_be_followed_by_a_list():
    parser = SummaryParser("[First](./first.md)\n- [Second](./second.md)\n")
    with pytest.raises(SummaryParseError, match="line 2"):
        parser.parse_affix(False)


def test_parse_a_link():
    parser = SummaryParser("[First](./first.md)")
    assert parser.parse_affix(True) == [affix("First", "./first.md")]


def test_parse_a_numbered_chapter():
    parser = SummaryParser("- [First](./first.md)\n")
    assert parser.parse_numbered() == [numbered("First", "./first.md", [1])]


def test_parse_nested_numbered_chapters():
    src = "- [First](./first.md)\n  - [Nested](./nested.md)\n- [Second](./second.md)"
    expected = [
        numbered("First", "./first.md", [1], [numbered("Nested", "./nested.md", [1, 1])]),
        numbered("Second", "./second.md", [2]),
    ]
    assert SummaryParser(src).parse_numbered() == expected


def test_parse_numbered_chapters_separated_by_comment():
    src = "- [First](./first.md)\n<!-- this is a comment -->\n- [Second](./second.md)"
    expected = [
        numbered("First", "./first.md", [1]),
        numbered("Second", "./second.md", [2]),
    ]
    assert SummaryParser(src).parse_numbered() == expected


def test_parse_titled_parts():
    src = (
        "- [First](./first.md)\n- [Second](./second.md)\n"
        "# Title 2\n- [Third](./third.md)\n\t- [Fourth](./fourth.md)"
    )
    expected = [
        numbered("First", "./first.md", [1]),
        numbered("Second", "./second.md", [2]),
        PartTitle("Title 2"),
        numbered("Third", "./third.md", [3], [numbered("Fourth", "./fourth.md", [3, 1])]),
    ]
    assert SummaryParser(src).parse_parts() == expected


def test_can_have_a_subheader_between_nested_items():
    src = "- [First](./first.md)\n\n## Subheading\n\n- [Second](./second.md)\n"
    expected = [
        numbered("First", "./first.md", [1]),
        numbered("Second", "./second.md", [2]),
    ]
    assert SummaryParser(src).parse_numbered() == expected


def test_an_empty_link_location_is_a_draft_chapter():
    got = SummaryParser("- [Empty]()\n").parse_numbered()
    assert got == [Link(name="Empty", location=None, number=SectionNumber([1]))]


def test_keep_numbering_after_separator():
    src = "- [First](./first.md)\n---\n- [Second](./second.md)\n---\n- [Third](./third.md)\n"
    expected = [
        numbered("First", "./first.md", [1]),
        Separator(),
        numbered("Second", "./second.md", [2]),
        Separator(),
        numbered("Third", "./third.md", [3]),
    ]
    assert SummaryParser(src).parse_numbered() == expected


def test_add_space_for_multi_line_chapter_names():
    got = SummaryParser("- [Chapter\ntitle](./chapter.md)").parse_numbered()
    assert got == [numbered("Chapter title", "./chapter.md", [1])]


def test_allow_space_in_link_destination():
    src = "- [test1](./test%20link1.md)\n- [test2](<./test link2.md>)"
    expected = [
        numbered("test1", "./test link1.md", [1]),
        numbered("test2", "./test link2.md", [2]),
    ]
    assert SummaryParser(src).parse_numbered() == expected


SKIP_HTML_SRC = """<!--
# Title - En
-->
# Title - Local

<!--
[Prefix 00-01 - En](ch00-01.md)
[Prefix 00-02 - En](ch00-02.md)
-->
[Prefix 00-01 - Local](ch00-01.md)
[Prefix 00-02 - Local](ch00-02.md)

<!--
## Section Title - En
-->
## Section Title - Localized

<!--
- [Ch 01-00 - En](ch01-00.md)
    - [Ch 01-01 - En](ch01-01.md)
    - [Ch 01-02 - En](ch01-02.md)
-->
- [Ch 01-00 - Local](ch01-00.md)
    - [Ch 01-01 - Local](ch01-01.md)
    - [Ch 01-02 - Local](ch01-02.md)

<!--
- [Ch 02-00 - En](ch02-00.md)
-->
- [Ch 02-00 - Local](ch02-00.md)

<!--
[Appendix A - En](appendix-01.md)
[Appendix B - En](appendix-02.md)
-->`
[Appendix A - Local](appendix-01.md)
[Appendix B - Local](appendix-02.md)
"""


def test_skip_html_comments():
    parser = SummaryParser(SKIP_HTML_SRC)

    assert parser.parse_title() == "Title - Local"

    assert parser.parse_affix(True) == [
        affix("Prefix 00-01 - Local", "ch00-01.md"),
        affix("Prefix 00-02 - Local", "ch00-02.md"),
    ]

    ch01_nested = [
        numbered("Ch 01-01 - Local", "ch01-01.md", [1, 1]),
        numbered("Ch 01-02 - Local", "ch01-02.md", [1, 2]),
    ]
    assert parser.parse_parts() == [
        numbered("Ch 01-00 - Local", "ch01-00.md", [1], ch01_nested),
        numbered("Ch 02-00 - Local", "ch02-00.md", [2]),
    ]

    assert parser.parse_affix(False) == [
        affix("Appendix A - Local", "appendix-01.md"),
        affix("Appendix B - Local", "appendix-02.md"),
    ]


def test_parse_summary_whole_document():
    src = "# Summary\n\n[Intro](intro.md)\n\n- [One](one.md)\n\n[Outro](outro.md)\n"
    assert parse_summary(src) == Summary(
        title="Summary",
        prefix_chapters=[affix("Intro", "intro.md")],
        numbered_chapters=[numbered("One", "one.md", [1])],
        suffix_chapters=[affix("Outro", "outro.md")],
    )


def test_nested_item_must_be_a_link():
    with pytest.raises(SummaryParseError, match="line 1, column 0: The link items"):
        SummaryParser("- Foo\n").parse_numbered()


def test_parse_summary_reports_context_on_error():
    with pytest.raises(SummaryParseError, match="numbered chapters"):
        parse_summary("# Summary\n\n- Not a link\n")


def test_parse_summary_of_empty_text():
    assert parse_summary("") == Summary()