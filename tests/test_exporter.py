"""Tests for exporter module."""

from __future__ import annotations

import csv
import io

from conftest import MockFileSystem, session_dict

from game_time_tracker.exporter import CSV_COLUMNS, export_csv, import_csv
from game_time_tracker.models import GameSession, KovaaksMetadata, ValorantMetadata

CSV_PATH = "/exports/sessions.csv"

HEADER = ",".join(CSV_COLUMNS)


def rows(mock_fs: MockFileSystem) -> list[dict[str, str]]:
    return list(csv.DictReader(io.StringIO(mock_fs.get_file(CSV_PATH) or "")))


class TestExportCsv:
    """Tests for writing the collection to CSV."""

    def test_header_and_rows(self, mock_fs: MockFileSystem) -> None:
        sessions = [
            GameSession.from_dict(session_dict("valorant", duration=30, id="a")),
            GameSession.from_dict(session_dict("kovaaks", duration=45, id="b")),
        ]

        assert export_csv(sessions, CSV_PATH, filesystem=mock_fs) == 2

        content = mock_fs.get_file(CSV_PATH) or ""
        assert content.splitlines()[0] == HEADER
        assert [r["id"] for r in rows(mock_fs)] == ["a", "b"]
        assert rows(mock_fs)[1]["durationMinutes"] == "45"

    def test_metadata_cell_holds_json(self, mock_fs: MockFileSystem) -> None:
        session = GameSession.from_dict(
            session_dict("valorant", metadata={"matchTypes": {"competitive": 2}})
        )
        export_csv([session], CSV_PATH, filesystem=mock_fs)
        assert rows(mock_fs)[0]["metadata"] == '{"matchTypes": {"competitive": 2}}'

    def test_absent_values_are_empty_cells(self, mock_fs: MockFileSystem) -> None:
        session = GameSession("x", "valorant", "2024-01-01", "2024-01-01T10:00:00+00:00")
        export_csv([session], CSV_PATH, filesystem=mock_fs)
        row = rows(mock_fs)[0]
        assert row["endTime"] == ""
        assert row["metadata"] == ""

    def test_empty_collection_writes_header(self, mock_fs: MockFileSystem) -> None:
        assert export_csv([], CSV_PATH, filesystem=mock_fs) == 0
        assert (mock_fs.get_file(CSV_PATH) or "").strip() == HEADER


class TestImportCsv:
    """Tests for reading sessions back from spreadsheet-style CSV.

    Categories:
    1. Round trip with the exporter
    2. Loose textual dates and timestamps
    3. Unreadable rows and cells
    """

    def test_round_trip(self, mock_fs: MockFileSystem) -> None:
        original = [
            GameSession.from_dict(
                session_dict("valorant", metadata={"matchTypes": {"unrated": 1}}, id="a")
            ),
            GameSession.from_dict(session_dict("kovaaks", metadata={"aimType": "tracking"}, id="b")),
        ]
        export_csv(original, CSV_PATH, filesystem=mock_fs)

        sessions, skipped = import_csv(CSV_PATH, filesystem=mock_fs)

        assert skipped == 0
        assert sessions == original
        assert sessions[0].metadata == ValorantMetadata({"unrated": 1})
        assert sessions[1].metadata == KovaaksMetadata("tracking")

    def test_loose_formats(self, mock_fs: MockFileSystem) -> None:
        """Verifies dates and timestamps typed by hand in a sheet are normalized.

        Business context:
        Older data was kept in a spreadsheet where cells hold whatever text
        the sheet displayed, including the browser's Date.toString() form.

        Arrangement:
        One row with a US-style date, a US-style start time and a
        Date.toString() end time.

        Assertion Strategy:
        Date becomes YYYY-MM-DD; timestamps become ISO 8601 with an offset.
        """
        mock_fs.set_file(
            CSV_PATH,
            f"{HEADER}\n"
            "r1,kovaaks,1/5/2024,01/05/2024 10:00,"
            "Fri Jan 05 2024 10:30:00 GMT+0000 (Coordinated Universal Time),30,\n",
        )

        sessions, skipped = import_csv(CSV_PATH, filesystem=mock_fs)

        assert skipped == 0
        session = sessions[0]
        assert session.date == "2024-01-05"
        assert session.start_time == "2024-01-05T10:00:00+00:00"
        assert session.end_time == "2024-01-05T10:30:00+00:00"
        assert session.duration_minutes == 30

    def test_unreadable_date_skips_row(self, mock_fs: MockFileSystem) -> None:
        mock_fs.set_file(
            CSV_PATH,
            f"{HEADER}\n"
            "r1,valorant,someday,,,10,\n"
            "r2,valorant,2024-01-01,,,20,\n",
        )
        sessions, skipped = import_csv(CSV_PATH, filesystem=mock_fs)
        assert skipped == 1
        assert [s.id for s in sessions] == ["r2"]

    def test_unreadable_timestamp_is_empty(self, mock_fs: MockFileSystem) -> None:
        mock_fs.set_file(CSV_PATH, f"{HEADER}\nr1,valorant,2024-01-01,lunchtime,,10,\n")
        sessions, _ = import_csv(CSV_PATH, filesystem=mock_fs)
        assert sessions[0].start_time == ""
        assert sessions[0].end_time is None

    def test_missing_id_assigned(self, mock_fs: MockFileSystem) -> None:
        mock_fs.set_file(CSV_PATH, f"{HEADER}\n,valorant,2024-01-01,,,10,\n")
        sessions, _ = import_csv(CSV_PATH, filesystem=mock_fs)
        assert sessions[0].id
