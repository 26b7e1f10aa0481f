"""Read-only source of harvest, listing and nutrient-analysis history keyed by owner."""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from telemetry.models.history_data import HarvestRecord, ListingRecord, NutrientAnalysis


class HistorySource(ABC):

    @abstractmethod
    def harvests(self, owner_id: str, limit: Optional[int] = None) -> List[HarvestRecord]:
        """Newest first, at most `limit` records."""

    @abstractmethod
    def listings(self, owner_id: str, limit: Optional[int] = None) -> List[ListingRecord]:
        """Newest first, at most `limit` records."""

    @abstractmethod
    def nutrient_analyses(self, owner_id: str) -> List[NutrientAnalysis]:
        ...


def _newest(records: Iterable, limit: Optional[int]) -> list:
    ordered = sorted(records, key=lambda r: r.created_at, reverse=True)
    return ordered if limit is None else ordered[:limit]


class InMemoryHistorySource(HistorySource):

    def __init__(self):
        self._harvests: Dict[str, List[HarvestRecord]] = {}
        self._listings: Dict[str, List[ListingRecord]] = {}
        self._analyses: Dict[str, List[NutrientAnalysis]] = {}

    def add_harvest(self, record: HarvestRecord) -> None:
        self._harvests.setdefault(record.owner_id, []).append(record)

    def add_listing(self, record: ListingRecord) -> None:
        self._listings.setdefault(record.owner_id, []).append(record)

    def add_nutrient_analysis(self, record: NutrientAnalysis) -> None:
        self._analyses.setdefault(record.owner_id, []).append(record)

    def harvests(self, owner_id: str, limit: Optional[int] = None) -> List[HarvestRecord]:
        return _newest(self._harvests.get(owner_id, []), limit)

    def listings(self, owner_id: str, limit: Optional[int] = None) -> List[ListingRecord]:
        return _newest(self._listings.get(owner_id, []), limit)

    def nutrient_analyses(self, owner_id: str) -> List[NutrientAnalysis]:
        return list(self._analyses.get(owner_id, []))
