"""
Tests for the JSON output document.
"""

import json

import pytest

from yt_comment_tree.models import Reply, TopLevelComment, VideoCommentsRecord
from yt_comment_tree.output import atomic_write_json, load_document, write_document


def sample_document():
    return [
        VideoCommentsRecord(
            title="T1",
            video_id="V1",
            comments=[
                TopLevelComment(
                    text="line one\nline two &amp; more",
                    author_name="A",
                    replies=[Reply("first", "B", comment_id="R1"), Reply("ünïcödé 👍", "C", comment_id="R2")],
                    comment_id="C1",
                ),
                TopLevelComment(text="no replies", author_name="D"),
            ],
        ),
        VideoCommentsRecord(title="T2", video_id="V2"),
    ]


class TestWriteDocument:
    """Test serialization of the output document"""

    def test_json_shape(self, tmp_path):
        path = tmp_path / "comments.json"
        write_document(path, sample_document())

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data[0]["title"] == "T1"
        assert data[0]["id"] == "V1"
        first = data[0]["comments"][0]
        assert set(first) == {"text", "author_name", "children"}
        assert first["children"][0] == {"text": "first", "author_name": "B"}
        assert data[0]["comments"][1]["children"] == []
        assert data[1] == {"title": "T2", "id": "V2", "comments": []}

    def test_non_ascii_is_written_verbatim(self, tmp_path):
        path = tmp_path / "comments.json"
        write_document(path, sample_document())

        assert "ünïcödé 👍" in path.read_text(encoding="utf-8")

    def test_round_trip(self, tmp_path):
        path = tmp_path / "comments.json"
        original = sample_document()

        write_document(path, original)
        loaded = load_document(path)

        # comment_id is not part of the document and not compared
        assert loaded == original
        assert [r.text for r in loaded[0].comments[0].replies] == ["first", "ünïcödé 👍"]

    def test_empty_document(self, tmp_path):
        path = tmp_path / "comments.json"
        write_document(path, [])

        assert json.loads(path.read_text(encoding="utf-8")) == []
        assert load_document(path) == []


class TestAtomicWrite:
    """Test atomic replacement of the target file"""

    def test_replaces_existing_file(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("old", encoding="utf-8")

        atomic_write_json(path, {"a": 1})

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]

    def test_failed_write_leaves_target_untouched(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("[1]", encoding="utf-8")

        with pytest.raises(TypeError):
            atomic_write_json(path, {"bad": object()})

        assert path.read_text(encoding="utf-8") == "[1]"
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]
