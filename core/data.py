from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.dates import parse_iso_date
from core.filters import FilterSpec, SortSpec, normalize_filters, normalize_sort
from core.query import get_distinct_years, get_filtered_sorted_records


logger = logging.getLogger(__name__)

RECENT_WINDOW = 5
UNKNOWN_LOCATION = "N/A"

REQUIRED_FIELDS = ("id", "name", "location", "year")
DATE_FIELDS = ("introduced_date", "sale_start_date", "removed_date")


class InvalidCapsuleError(ValueError):
    """Raised at load time when an embedded capsule row is malformed."""


@dataclass(frozen=True)
class CapsuleRecord:
    id: str
    name: str
    location: str
    year: int
    introduced_date: Optional[date] = None
    sale_start_date: Optional[date] = None
    removed_date: Optional[date] = None
    winner: Optional[str] = None
    logo_ref: Optional[str] = None

    @property
    def has_known_location(self) -> bool:
        return self.location != UNKNOWN_LOCATION


# Curated from Liquipedia, CSGOSKINS.GG and HLTV. Some dates may be inaccurate.
CAPSULE_ROWS: Tuple[Dict[str, Any], ...] = (
    # CS:GO Majors
    {"id": "katowice-2014", "name": "EMS One Katowice 2014", "location": "Katowice", "year": 2014,
     "introduced_date": "2014-03-06", "sale_start_date": "2014-03-15", "removed_date": "2014-03-17", "winner": "Virtus.pro"},
    {"id": "cologne-2014", "name": "ESL One Cologne 2014", "location": "Cologne", "year": 2014,
     "introduced_date": "2014-08-04", "sale_start_date": "2014-08-17", "removed_date": "2014-08-19", "winner": "Ninjas in Pyjamas"},
    {"id": "jonkoping-2014", "name": "DreamHack Winter 2014", "location": "Jonkoping", "year": 2014,
     "introduced_date": "2014-11-21", "sale_start_date": "2014-11-29", "removed_date": "2014-12-02", "winner": "Team LDLC.com"},
    {"id": "katowice-2015", "name": "ESL One Katowice 2015", "location": "Katowice", "year": 2015,
     "introduced_date": "2015-02-26", "sale_start_date": "2015-03-15", "removed_date": "2015-03-16", "winner": "Fnatic"},
    {"id": "cologne-2015", "name": "ESL One Cologne 2015", "location": "Cologne", "year": 2015,
     "introduced_date": "2015-08-14", "sale_start_date": "2015-08-23", "removed_date": "2015-08-24", "winner": "Fnatic"},
    {"id": "cluj-2015", "name": "DreamHack Cluj-Napoca 2015", "location": "Cluj-Napoca", "year": 2015,
     "introduced_date": "2015-10-20", "sale_start_date": "2015-11-01", "removed_date": "2015-11-04", "winner": "Team EnVyUs"},
    {"id": "columbus-2016", "name": "MLG Columbus 2016", "location": "Columbus", "year": 2016,
     "introduced_date": "2016-03-17", "sale_start_date": "2016-04-03", "removed_date": "2016-04-04", "winner": "Luminosity"},
    {"id": "cologne-2016", "name": "ESL One Cologne 2016", "location": "Cologne", "year": 2016,
     "introduced_date": "2016-06-24", "sale_start_date": "2016-07-10", "removed_date": "2016-07-12", "winner": "SK Gaming"},
    {"id": "atlanta-2017", "name": "ELEAGUE Atlanta 2017", "location": "Atlanta", "year": 2017,
     "introduced_date": "2017-01-12", "sale_start_date": "2017-01-29", "removed_date": "2017-01-31", "winner": "Astralis"},
    {"id": "krakow-2017", "name": "PGL Krakow 2017", "location": "Krakow", "year": 2017,
     "introduced_date": "2017-07-07", "sale_start_date": "2017-07-23", "removed_date": "2017-07-25", "winner": "Gambit Esports"},
    {"id": "boston-2018", "name": "ELEAGUE Boston 2018", "location": "Boston", "year": 2018,
     "introduced_date": "2018-01-10", "sale_start_date": "2018-01-26", "removed_date": "2018-01-30", "winner": "Cloud9"},
    {"id": "london-2018", "name": "FACEIT London 2018", "location": "London", "year": 2018,
     "introduced_date": "2018-09-05", "sale_start_date": "2018-09-22", "removed_date": "2018-09-26", "winner": "Astralis"},
    {"id": "katowice-2019", "name": "IEM Katowice 2019", "location": "Katowice", "year": 2019,
     "introduced_date": "2019-02-06", "sale_start_date": "2019-03-02", "removed_date": "2019-03-11", "winner": "Astralis"},
    {"id": "berlin-2019", "name": "StarLadder Berlin 2019", "location": "Berlin", "year": 2019,
     "introduced_date": "2019-08-14", "sale_start_date": "2019-09-07", "removed_date": "2019-09-26", "winner": "Astralis"},
    {"id": "RMR-2020", "name": "Regional Major Rankings 2020", "location": UNKNOWN_LOCATION, "year": 2020,
     "introduced_date": "2021-01-27", "sale_start_date": "2021-04-06", "removed_date": "2021-05-21", "winner": None},
    {"id": "stockholm-2021", "name": "PGL Stockholm 2021", "location": "Stockholm", "year": 2021,
     "introduced_date": "2021-10-21", "sale_start_date": "2021-11-30", "removed_date": "2022-01-18", "winner": "Natus Vincere"},
    {"id": "antwerp-2022", "name": "PGL Antwerp 2022", "location": "Antwerp", "year": 2022,
     "introduced_date": "2022-05-04", "sale_start_date": "2022-06-03", "removed_date": "2022-08-09", "winner": "FaZe Clan"},
    {"id": "rio-2022", "name": "IEM Rio 2022", "location": "Rio de Janeiro", "year": 2022,
     "introduced_date": "2022-10-21", "sale_start_date": "2022-12-14", "removed_date": "2023-02-20", "winner": "Outsiders"},
    {"id": "paris-2023", "name": "BLAST.tv Paris 2023", "location": "Paris", "year": 2023,
     "introduced_date": "2023-05-04", "sale_start_date": "2023-06-23", "removed_date": "2023-10-07", "winner": "Team Vitality"},
    # CS2 era
    {"id": "copenhagen-2024", "name": "PGL Copenhagen 2024", "location": "Copenhagen", "year": 2024,
     "introduced_date": "2024-03-21", "sale_start_date": "2024-04-26", "removed_date": "2024-08-20", "winner": "Natus Vincere"},
    {"id": "shanghai-2024", "name": "Perfect World Shanghai 2024", "location": "Shanghai", "year": 2024,
     "introduced_date": "2024-11-27", "sale_start_date": "2025-01-14", "removed_date": "2025-04-21", "winner": "Team Spirit"},
    {"id": "austin-2025", "name": "PGL Austin 2025", "location": "Austin", "year": 2025,
     "introduced_date": "2025-05-22", "sale_start_date": "2025-08-14", "removed_date": None, "winner": "Team Vitality"},
    {"id": "budapest-2025", "name": "StarLadder Budapest 2025", "location": "Budapest", "year": 2025,
     "introduced_date": None, "sale_start_date": None, "removed_date": None, "winner": None},
    {"id": "cologne-2026", "name": "IEM Cologne 2026", "location": "Cologne", "year": 2026,
     "introduced_date": None, "sale_start_date": None, "removed_date": None, "winner": None},
)


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_capsule_row(row: Mapping[str, Any]) -> CapsuleRecord:
    row_id = row.get("id", "<missing id>")
    for field_name in REQUIRED_FIELDS:
        value = row.get(field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidCapsuleError(f"Capsule {row_id!r}: missing required field {field_name!r}")

    year = row["year"]
    if isinstance(year, bool) or not isinstance(year, int):
        try:
            year = int(str(year).strip())
        except ValueError:
            raise InvalidCapsuleError(f"Capsule {row_id!r}: year must be an integer, got {row['year']!r}") from None

    dates: Dict[str, Optional[date]] = {}
    for field_name in DATE_FIELDS:
        try:
            dates[field_name] = parse_iso_date(row.get(field_name))
        except ValueError as exc:
            raise InvalidCapsuleError(f"Capsule {row_id!r}: invalid {field_name} {row.get(field_name)!r} ({exc})") from exc

    return CapsuleRecord(
        id=str(row["id"]).strip(),
        name=str(row["name"]).strip(),
        location=str(row["location"]).strip(),
        year=year,
        winner=_optional_str(row.get("winner")),
        logo_ref=_optional_str(row.get("logo_ref")),
        **dates,
    )


def load_capsules(rows: Iterable[Mapping[str, Any]]) -> Tuple[CapsuleRecord, ...]:
    """Validate raw rows and build the immutable record set.

    Fails fast on malformed rows so bad dates never reach the duration math.
    """
    records: List[CapsuleRecord] = []
    seen: set = set()
    for row in rows:
        record = parse_capsule_row(row)
        if record.id in seen:
            raise InvalidCapsuleError(f"Duplicate capsule id {record.id!r}")
        seen.add(record.id)
        records.append(record)

    undated = sum(1 for r in records if r.introduced_date is None)
    logger.info("Loaded %d capsule records (%d without an introduction date)", len(records), undated)
    return tuple(records)


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=1)
def load_dashboard_data() -> Dict[str, object]:
    records = load_capsules(CAPSULE_ROWS)
    return {
        "records": records,
        "by_id": {r.id: r for r in records},
        "years": get_distinct_years(records),
    }


def prepare_context(
    filters: dict | FilterSpec,
    sort: dict | SortSpec | None,
    data_ctx: Dict[str, object],
    now: date,
) -> Dict[str, object]:
    """Run one query pass over the loaded records with a single snapshot of ``now``."""
    filt = filters if isinstance(filters, FilterSpec) else normalize_filters(filters)
    sort_spec = sort if isinstance(sort, SortSpec) else normalize_sort(sort or {})
    records: Tuple[CapsuleRecord, ...] = data_ctx.get("records", ())  # type: ignore[assignment]

    filtered = get_filtered_sorted_records(records, filt, sort_spec, now)
    return {
        "filters": filt,
        "sort": sort_spec,
        "now": now,
        "records": records,
        "years": data_ctx.get("years", []),
        "filtered": filtered,
    }
