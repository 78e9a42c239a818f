"""Parse model projections into candidate matches.

Free-text format, one projection per line::

    Flamengo x Palmeiras | Anderson Daronco | 24.5 | 26.5 | 1.85 | 8.1% | UNDER

Fields: fixture, referee, model prediction, bookmaker line, odd, edge
percent, side. Lines without ``|`` are ignored; lines that have the
delimiter but cannot be read are dropped and logged.

CSV exports carry fixture metadata but no model prediction::

    fixture_id,date,league,round,home,away,referee,...,line,odd
"""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime
from decimal import InvalidOperation

from pydantic import ValidationError

from wager_tracker.core.clock import ensure_aware
from wager_tracker.core.enums import WagerSide
from wager_tracker.core.errors import InvalidImportError
from wager_tracker.core.ids import new_id, utc_now
from wager_tracker.core.models import CandidateMatch, to_decimal

logger = logging.getLogger(__name__)

FIXTURE_SEPARATOR = " x "
FREE_TEXT_FIELDS = 7

# Column positions in the CSV export
_CSV_FIXTURE_ID = 0
_CSV_DATE = 1
_CSV_LEAGUE = 2
_CSV_HOME = 4
_CSV_AWAY = 5
_CSV_REFEREE = 6
_CSV_LINE = 9
_CSV_ODD = 10


def _parse_number(raw: str) -> float:
    value = float(raw.strip().rstrip("%").replace(",", "."))
    if not math.isfinite(value):
        raise ValueError(f"not a finite number: {raw!r}")
    return value


def _parse_side(raw: str) -> WagerSide:
    return WagerSide.UNDER if "UNDER" in raw.upper() else WagerSide.OVER


def _split_fixture(raw: str) -> tuple[str, str]:
    teams = [t.strip() for t in raw.split(FIXTURE_SEPARATOR, 1)]
    home = teams[0] or "Unknown"
    away = teams[1] if len(teams) > 1 and teams[1] else "Unknown"
    return home, away


def parse_line(line: str, *, listed_at: datetime | None = None) -> CandidateMatch | None:
    """Parse one pipe-delimited projection, or None if it is unreadable."""
    if "|" not in line:
        return None
    parts = [p.strip() for p in line.split("|")]
    if len(parts) < FREE_TEXT_FIELDS:
        logger.warning("Dropping import line with %d fields: %r", len(parts), line)
        return None

    home, away = _split_fixture(parts[0])
    try:
        return CandidateMatch(
            match_id=new_id("match"),
            listed_at=listed_at or utc_now(),
            home_team=home,
            away_team=away,
            referee=parts[1],
            model_prediction=_parse_number(parts[2]),
            bookie_line=_parse_number(parts[3]),
            odd=to_decimal(_parse_number(parts[4])),
            edge=_parse_number(parts[5]),
            side=_parse_side(parts[6]),
        )
    except (ValueError, InvalidOperation, ValidationError) as exc:
        logger.warning("Dropping unreadable import line %r: %s", line, exc)
        return None


def parse_free_text(text: str, *, now: datetime | None = None) -> list[CandidateMatch]:
    """Parse pasted model output.

    Raises:
        InvalidImportError: no line could be parsed.
    """
    listed_at = ensure_aware(now) if now is not None else utc_now()
    matches = []
    for line in text.splitlines():
        if not line.strip():
            continue
        match = parse_line(line, listed_at=listed_at)
        if match is not None:
            matches.append(match)

    if not matches:
        raise InvalidImportError(
            "Invalid format: expected 'home x away | referee | prediction | "
            "line | odd | edge% | side' separated by '|'"
        )
    logger.info("Parsed %d candidate matches from free text", len(matches))
    return matches


def parse_csv(text: str) -> list[CandidateMatch]:
    """Parse a fixture CSV export (header row first).

    Model prediction is not part of the export and side defaults to
    UNDER; both are expected to be filled in before placing.

    Raises:
        InvalidImportError: no data row could be parsed.
    """
    rows = [r for r in csv.reader(io.StringIO(text)) if any(c.strip() for c in r)]
    matches = []
    for row in rows[1:]:
        if len(row) <= _CSV_ODD:
            logger.warning("Dropping short CSV row: %r", row)
            continue
        try:
            listed_at = datetime.fromisoformat(row[_CSV_DATE].strip().replace("Z", "+00:00"))
            matches.append(
                CandidateMatch(
                    match_id=row[_CSV_FIXTURE_ID].strip() or new_id("match"),
                    fixture_id=row[_CSV_FIXTURE_ID].strip() or None,
                    listed_at=ensure_aware(listed_at),
                    league=row[_CSV_LEAGUE].strip() or "Unknown",
                    home_team=row[_CSV_HOME].strip() or "Unknown",
                    away_team=row[_CSV_AWAY].strip() or "Unknown",
                    referee=row[_CSV_REFEREE].strip(),
                    model_prediction=None,
                    bookie_line=_parse_number(row[_CSV_LINE]),
                    odd=to_decimal(_parse_number(row[_CSV_ODD])),
                    edge=0.0,
                    side=WagerSide.UNDER,
                )
            )
        except (ValueError, InvalidOperation, ValidationError) as exc:
            logger.warning("Dropping unreadable CSV row %r: %s", row, exc)

    if not matches:
        raise InvalidImportError("CSV contained no readable fixture rows")
    logger.info("Parsed %d candidate matches from CSV", len(matches))
    return matches
