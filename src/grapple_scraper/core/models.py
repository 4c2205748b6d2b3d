from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Any

from .normalize import parse_timestamp


@dataclass(frozen=True)
class EventRecord:
    name: str
    date_iso: str
    location: str
    url: str

    def __post_init__(self) -> None:
        if parse_timestamp(self.date_iso) is None:
            raise ValueError(f"EventRecord needs a zone-qualified ISO timestamp, got {self.date_iso!r}")

    @property
    def start(self) -> datetime:
        return parse_timestamp(self.date_iso)

    def to_row(self) -> Dict[str, Any]:
        # CSV-friendly
        return {
            "name": self.name,
            "date": self.date_iso,
            "location": self.location,
            "url": self.url,
        }

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)
