from dataclasses import dataclass, field
import csv
import datetime
import functools
from pathlib import Path

from .types import MeteorShower, NotableEvent

DATA_DIR = Path(__file__).resolve().parents[1] / "data"


@dataclass
class ReferenceCatalog:
    """Static yearly reference data: meteor showers and notable sky events."""

    meteor_showers: list[MeteorShower] = field(default_factory=list)
    notable_events: list[NotableEvent] = field(default_factory=list)

    @classmethod
    def from_files(cls, showers_path: Path, events_path: Path) -> "ReferenceCatalog":
        return cls(
            meteor_showers=_read_meteor_showers(showers_path),
            notable_events=_read_notable_events(events_path),
        )

    @classmethod
    def load(cls) -> "ReferenceCatalog":
        return _default_catalog()

    def years(self) -> list[int]:
        return sorted({shower.peak.year for shower in self.meteor_showers})

    def showers_peaking_between(self, start: datetime.date, end: datetime.date) -> list[MeteorShower]:
        return [s for s in self.meteor_showers if start <= s.peak <= end]

    def showers_active_on(self, day: datetime.date) -> list[MeteorShower]:
        return [s for s in self.meteor_showers if s.active_start <= day <= s.active_end]

    def events_between(self, start: datetime.date, end: datetime.date) -> list[NotableEvent]:
        return [e for e in self.notable_events if start <= e.date <= end]


@functools.lru_cache(maxsize=1)
def _default_catalog() -> ReferenceCatalog:
    return ReferenceCatalog.from_files(
        DATA_DIR / "meteor_showers.csv",
        DATA_DIR / "notable_events.csv",
    )


def _read_rows(path: Path) -> list[dict[str, str]]:
    if not path.exists():
        raise FileNotFoundError(f"Reference data not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return [{k: (v or "").strip() for k, v in row.items()} for row in csv.DictReader(f)]


def _read_meteor_showers(path: Path) -> list[MeteorShower]:
    showers = []
    for row in _read_rows(path):
        showers.append(
            MeteorShower(
                name=row["name"],
                peak=datetime.date.fromisoformat(row["peak"]),
                zhr=int(row["zhr"]),
                active_start=datetime.date.fromisoformat(row["active_start"]),
                active_end=datetime.date.fromisoformat(row["active_end"]),
            )
        )
    showers.sort(key=lambda s: (s.peak, s.name))
    return showers


def _read_notable_events(path: Path) -> list[NotableEvent]:
    events = []
    for row in _read_rows(path):
        events.append(
            NotableEvent(
                date=datetime.date.fromisoformat(row["date"]),
                title=row["title"],
                type=row.get("type") or "planet",
                summary=row["summary"],
                visibility=row["visibility"],
                score=int(row["score"]),
            )
        )
    events.sort(key=lambda e: (e.date, e.title))
    return events
