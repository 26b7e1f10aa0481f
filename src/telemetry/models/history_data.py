"""
Read-only business records supplied by the rest of the platform.
Only the fields the optimizer looks at are modelled.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass
class HarvestRecord:
    harvest_id: str
    owner_id: str
    crop: str
    quantity: float
    created_at: datetime
    quality_grade: Optional[str] = None


@dataclass
class ListingRecord:
    listing_id: str
    owner_id: str
    crop: str
    price: float
    created_at: datetime


@dataclass
class NutrientAnalysis:
    analysis_id: str
    owner_id: str
    created_at: datetime
    nutrients: Dict[str, float] = field(default_factory=dict)
