"""Unit tests for export utilities - no internet."""

import json
from datetime import datetime, timezone

import pytest

from xinsight.core.exporter import (
    export_filename,
    flatten_record,
    raw_to_csv,
    save_export,
    to_csv,
    to_json,
)
from xinsight.models.row import NormalizedRow


class TestToCsv:
    """Test CSV conversion."""

    def test_empty_returns_empty_string(self):
        assert to_csv([]) == ""

    def test_two_sorted_columns(self):
        csv = to_csv([NormalizedRow(post_text="a,b", like_count=5)])
        header, line = csv.splitlines()
        assert header == "likeCount,postText"
        assert line == '5,"a,b"'

    def test_quotes_are_doubled(self):
        csv = to_csv([NormalizedRow(post_text='say "hi"', like_count=5)])
        assert csv.splitlines()[1] == '5,"say ""hi"""'

    def test_every_line_newline_terminated(self):
        csv = to_csv([NormalizedRow(post_text="x"), NormalizedRow(post_text="y")])
        assert csv == 'postText\n"x"\n"y"\n'

    def test_missing_values_are_empty(self):
        rows = [NormalizedRow(post_text="x", like_count=1), NormalizedRow(post_text="y")]
        assert to_csv(rows).splitlines()[2] == ',"y"'

    def test_columns_sampled_from_first_five_rows(self):
        rows = [NormalizedRow(post_text=f"post {i}") for i in range(5)]
        rows.append(NormalizedRow(post_text="post 5", view_count=99))

        lines = to_csv(rows).splitlines()

        assert lines[0] == "postText"
        assert "viewCount" not in lines[0]
        assert lines[6] == '"post 5"'

    def test_column_within_sample_window_included(self):
        rows = [NormalizedRow(post_text=f"post {i}") for i in range(4)]
        rows.append(NormalizedRow(post_text="post 4", view_count=99))

        lines = to_csv(rows).splitlines()

        assert lines[0] == "postText,viewCount"
        assert lines[1] == '"post 0",'
        assert lines[5] == '"post 4",99'

    def test_plain_mappings(self):
        csv = to_csv([{"b": True, "a": [1, "x"], "c": None}])
        header, line = csv.splitlines()
        assert header == "a,b"
        assert line == '"[1,""x""]",true'

    def test_newline_inside_text_is_quoted(self):
        csv = to_csv([NormalizedRow(post_text="line1\nline2")])
        assert csv == 'postText\n"line1\nline2"\n'


class TestToJson:
    """Test JSON conversion."""

    def test_empty_returns_empty_string(self):
        assert to_json([]) == ""

    def test_uses_export_names_and_omits_absent(self):
        parsed = json.loads(to_json([NormalizedRow(account_bio="bio", like_count=3)]))
        assert parsed == [{"accountBio": "bio", "likeCount": 3}]

    def test_two_space_indent(self):
        text = to_json([NormalizedRow(post_text="x")])
        assert text == '[\n  {\n    "postText": "x"\n  }\n]'

    def test_non_ascii_preserved(self):
        text = to_json([NormalizedRow(post_text="привет")])
        assert "привет" in text

    def test_deterministic(self):
        rows = [NormalizedRow(post_text="x", view_count=1), NormalizedRow(share_count=2)]
        assert to_json(rows) == to_json(rows)


class TestRawExport:
    """Test raw record flattening."""

    def test_flatten_prefixes_user_fields(self):
        flat = flatten_record({
            "text": "hi",
            "media": [{"url": "m"}],
            "user": {"username": "a", "description": "bio"},
        })
        assert flat == {"text": "hi", "user_username": "a", "user_description": "bio"}

    def test_flatten_without_user(self):
        assert flatten_record({"text": "hi"}) == {"text": "hi"}

    def test_raw_to_csv(self):
        csv = raw_to_csv([{"text": "hi", "likes": 2, "user": {"description": "bio"}}])
        assert csv.splitlines() == ["likes,text,user_description", '2,"hi","bio"']

    def test_raw_to_csv_empty(self):
        assert raw_to_csv([]) == ""


class TestExportFiles:
    """Test filename generation and saving."""

    def test_filename_pattern(self):
        now = datetime(2024, 5, 1, 10, 20, 30, 123000, tzinfo=timezone.utc)
        assert export_filename("csv", now) == "twitter-data-2024-05-01T10-20-30-123Z.csv"

    def test_filename_converts_to_utc(self):
        from datetime import timedelta
        now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert export_filename("json", now) == "twitter-data-2024-05-01T10-00-00-000Z.json"

    def test_save_export(self, tmp_path):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        path = save_export("a\n", tmp_path / "nested", "csv", now)

        assert path.parent == tmp_path / "nested"
        assert path.name == "twitter-data-2024-05-01T00-00-00-000Z.csv"
        assert path.read_text(encoding="utf-8") == "a\n"


class TestToDataframe:
    """Test optional pandas view."""

    def test_dataframe_has_all_columns(self):
        pd = pytest.importorskip("pandas")
        from xinsight.core.exporter import to_dataframe

        rows = [NormalizedRow(post_text=f"p{i}") for i in range(6)]
        rows.append(NormalizedRow(post_text="p6", view_count=5))
        df = to_dataframe(rows)

        assert isinstance(df, pd.DataFrame)
        assert len(df) == 7
        assert "viewCount" in df.columns
