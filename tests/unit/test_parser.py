"""Tests for projection import parsing."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from wager_tracker.core.enums import WagerSide
from wager_tracker.core.errors import InvalidImportError
from wager_tracker.ingest.parser import parse_csv, parse_free_text, parse_line

PASTED = """\
Model output 2024-03-10
Flamengo x Palmeiras | Anderson Daronco | 24.5 | 26.5 | 1.85 | 8.1% | UNDER
Santos x Gremio | Raphael Claus | 27,0 | 25.5 | 1,90 | 5% | over 25.5

Corinthians x Bahia | Wilton Sampaio | 20 | 22.5
"""

CSV_EXPORT = """\
fixture_id,date,league,round,home,away,referee,venue,status,line,odd
101,2024-03-10T19:00:00Z,Serie A,R1,Flamengo,Palmeiras,Anderson Daronco,Maracana,NS,26.5,1.85
102,2024-03-10T21:30:00Z,Serie A,R1,Santos,Gremio,,Vila,NS,25.5,abc
103,short,row
"""


class TestParseLine:
    def test_full_line(self):
        m = parse_line("Flamengo x Palmeiras | Anderson Daronco | 24.5 | 26.5 | 1.85 | 8.1% | UNDER")
        assert m is not None
        assert m.home_team == "Flamengo"
        assert m.away_team == "Palmeiras"
        assert m.referee == "Anderson Daronco"
        assert m.model_prediction == 24.5
        assert m.bookie_line == 26.5
        assert m.odd == Decimal("1.85")
        assert m.edge == pytest.approx(8.1)
        assert m.side == WagerSide.UNDER

    def test_no_delimiter_ignored(self):
        assert parse_line("just a heading") is None

    def test_too_few_fields_dropped(self):
        assert parse_line("A x B | ref | 1 | 2") is None

    def test_non_numeric_dropped(self):
        assert parse_line("A x B | ref | n/a | 2 | 1.9 | 5% | UNDER") is None

    def test_odd_below_one_dropped(self):
        assert parse_line("A x B | ref | 1 | 2 | 0.8 | 5% | UNDER") is None

    def test_missing_away_team(self):
        m = parse_line("Flamengo | ref | 1 | 2 | 1.9 | 5% | OVER")
        assert m.home_team == "Flamengo"
        assert m.away_team == "Unknown"
        assert m.side == WagerSide.OVER


class TestParseFreeText:
    def test_keeps_readable_lines(self):
        now = datetime(2024, 3, 10, 12, tzinfo=timezone.utc)
        matches = parse_free_text(PASTED, now=now)
        assert len(matches) == 2
        assert matches[1].model_prediction == 27.0
        assert matches[1].odd == Decimal("1.9")
        assert matches[1].side == WagerSide.OVER
        assert all(m.listed_at == now for m in matches)

    def test_match_ids_unique(self):
        matches = parse_free_text(PASTED)
        assert len({m.match_id for m in matches}) == len(matches)

    @pytest.mark.parametrize("text", ["", "   \n", "no pipes here\nat all"])
    def test_nothing_parsed_raises(self, text):
        with pytest.raises(InvalidImportError, match="Invalid format"):
            parse_free_text(text)


class TestParseCsv:
    def test_reads_fixture_rows(self):
        matches = parse_csv(CSV_EXPORT)
        assert len(matches) == 1
        m = matches[0]
        assert m.fixture_id == "101"
        assert m.league == "Serie A"
        assert m.fixture == "Flamengo x Palmeiras"
        assert m.referee == "Anderson Daronco"
        assert m.bookie_line == 26.5
        assert m.odd == Decimal("1.85")
        assert m.model_prediction is None
        assert m.side == WagerSide.UNDER
        assert m.listed_at == datetime(2024, 3, 10, 19, tzinfo=timezone.utc)

    def test_header_only_raises(self):
        with pytest.raises(InvalidImportError):
            parse_csv("fixture_id,date,league\n")
