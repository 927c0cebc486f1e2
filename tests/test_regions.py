"""
Tests for locating and rewriting list regions.
"""

import pytest

from tagflow.regions import (
    Location,
    current_body,
    delete_region,
    insert_anchor_pair,
    line_offset,
    locate,
    write_region,
)

TAG = "#alpha"
ID = 1700000000000
START = f"<!--tag-list {TAG} {ID}-->"
END = f"<!--end-tag-list {TAG} {ID}-->"


class TestLocate:

    def test_both_anchors(self):
        text = f"intro\n{START}\n- [[X]]\n{END}\noutro"
        loc = locate(text, TAG, ID)
        assert loc.start == text.index(START)
        assert loc.end == text.index(END)
        assert loc.complete

    def test_absent(self):
        assert locate("nothing here", TAG, ID) == Location(-1, -1)

    def test_start_only(self):
        text = f"{START}\nrest"
        loc = locate(text, TAG, ID)
        assert loc.start == 0
        assert loc.end == -1
        assert loc.has_start and not loc.complete

    def test_end_before_start_is_absent(self):
        text = f"{END}\n{START}\n"
        loc = locate(text, TAG, ID)
        assert loc.start == len(END) + 1
        assert loc.end == -1

    def test_other_id_not_matched(self):
        text = f"<!--tag-list {TAG} 1-->\n<!--end-tag-list {TAG} 1-->"
        assert locate(text, TAG, ID) == Location(-1, -1)

    def test_missing_start_ignores_end(self):
        assert locate(f"text {END}", TAG, ID) == Location(-1, -1)


class TestCurrentBody:

    def test_body_between_anchors(self):
        text = f"{START}\n- [[X]]\n- [[Y]]\n{END}"
        assert current_body(text, TAG, ID, locate(text, TAG, ID)) == "- [[X]]\n- [[Y]]"

    def test_fresh_pair_is_empty(self):
        text = f"{START}\n{END}\n"
        assert current_body(text, TAG, ID, locate(text, TAG, ID)) == ""

    def test_none_without_end(self):
        text = f"{START}\n- [[X]]\n"
        assert current_body(text, TAG, ID, locate(text, TAG, ID)) is None

    def test_byte_exact(self):
        text = f"{START}\n- [[X]] \n\n{END}"
        assert current_body(text, TAG, ID, locate(text, TAG, ID)) == "- [[X]] \n"


class TestWriteRegion:

    def test_replace_keeps_surroundings(self):
        text = f"# Title\n\n{START}\n- [[Old]]\n{END}\n\nTrailing text #tag\n"
        new = write_region(text, TAG, ID, locate(text, TAG, ID), "- [[X]]\n- [[Y]]")
        assert new == f"# Title\n\n{START}\n- [[X]]\n- [[Y]]\n{END}\n\nTrailing text #tag\n"

    def test_round_trip_both_anchors(self):
        text = f"a\n{START}\n{END}\nb"
        body = "- [[X]]\n- [[Y]]"
        new = write_region(text, TAG, ID, locate(text, TAG, ID), body)
        assert current_body(new, TAG, ID, locate(new, TAG, ID)) == body

    def test_repair_missing_end_anchor(self):
        text = f"a\n{START}\nb\n"
        body = "- [[X]]"
        new = write_region(text, TAG, ID, locate(text, TAG, ID), body)
        assert new == f"a\n{START}\n- [[X]]\n{END}\nb\n"
        assert current_body(new, TAG, ID, locate(new, TAG, ID)) == body
        assert new.count(START) == 1

    def test_no_start_anchor_unchanged(self):
        text = "no anchors"
        assert write_region(text, TAG, ID, locate(text, TAG, ID), "- [[X]]") == text

    def test_empty_body_deletes(self):
        text = f"a\n{START}\n- [[X]]\n{END}\nb"
        assert write_region(text, TAG, ID, locate(text, TAG, ID), "") == "a\n\nb"

    def test_other_region_untouched(self):
        other = "<!--tag-list #beta 5-->\n- [[Z]]\n<!--end-tag-list #beta 5-->"
        text = f"{other}\n{START}\n{END}\n"
        new = write_region(text, TAG, ID, locate(text, TAG, ID), "- [[X]]")
        assert new.startswith(other + "\n")


class TestDeleteRegion:

    def test_delete_complete_region(self):
        text = f"keep\n{START}\n- [[X]]\n{END}\nalso keep"
        assert delete_region(text, TAG, ID, locate(text, TAG, ID)) == "keep\n\nalso keep"

    def test_delete_start_line_only(self):
        text = f"keep\n{START}\n- [[X]]\n"
        assert delete_region(text, TAG, ID, locate(text, TAG, ID)) == "keep\n- [[X]]\n"

    def test_delete_start_at_end_of_text(self):
        text = f"keep\n{START}"
        assert delete_region(text, TAG, ID, locate(text, TAG, ID)) == "keep\n"

    def test_delete_absent(self):
        assert delete_region("text", TAG, ID, Location(-1, -1)) == "text"


class TestInsertAnchorPair:

    def test_append_to_end(self):
        assert insert_anchor_pair("body\n", TAG, ID) == f"body\n{START}\n{END}\n"

    def test_append_without_trailing_newline(self):
        assert insert_anchor_pair("body", TAG, ID) == f"body\n{START}\n{END}\n"

    def test_insert_at_offset(self):
        text = "line1\nline2\n"
        new = insert_anchor_pair(text, TAG, ID, offset=line_offset(text, 2))
        assert new == f"line1\n{START}\n{END}\nline2\n"

    def test_empty_note(self):
        assert insert_anchor_pair("", TAG, ID) == f"{START}\n{END}\n"


@pytest.mark.parametrize("line,expected", [(0, 0), (1, 0), (2, 2), (3, 4), (9, 5)])
def test_line_offset(line, expected):
    assert line_offset("a\nb\nc", line) == expected
