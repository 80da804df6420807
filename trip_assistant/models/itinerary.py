# Role: Fixed nested itinerary contract shared with the presentation layer.
# Passed as response_schema to the generation call; field names on the wire are camelCase and must not change.

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TripOverview(_Schema):
    title: str
    description: str
    cover_image: Optional[str] = None
    total_budget: str
    duration: str
    highlights: List[str]
    best_time_to_visit: Optional[str] = None


class Activity(_Schema):
    time: str
    title: str
    description: str
    location: str
    type: str
    duration: Optional[str] = None
    cost: Optional[str] = None
    difficulty: Optional[str] = None
    tips: Optional[List[str]] = None
    booking_required: Optional[bool] = None


class DayPlan(_Schema):
    day: int
    date: str
    title: str
    theme: Optional[str] = None
    activities: List[Activity]


class Accommodation(_Schema):
    name: str
    type: str
    price_range: str
    rating: Optional[float] = None
    location: str
    highlights: List[str]
    booking_tip: Optional[str] = None


class Restaurant(_Schema):
    name: str
    cuisine: str
    price_range: str
    location: str
    must_try: List[str]
    atmosphere: Optional[str] = None
    tip: Optional[str] = None


class LocalTransport(_Schema):
    mode: str
    description: str
    cost: str


class Transportation(_Schema):
    getting_there: str
    local_transport: List[LocalTransport]
    tips: List[str]


class PracticalInfo(_Schema):
    weather: str
    currency: str
    language: str
    time_zone: Optional[str] = None
    emergency_numbers: List[str]
    cultural_tips: List[str]
    packing_essentials: List[str]


class BudgetBreakdown(_Schema):
    accommodation: str
    food: str
    transport: str
    activities: str
    shopping: Optional[str] = None
    total: str


class StructuredItinerary(_Schema):
    trip_overview: TripOverview
    daily_itinerary: List[DayPlan]
    accommodations: List[Accommodation]
    restaurants: List[Restaurant]
    transportation: Transportation
    practical_info: PracticalInfo
    budget_breakdown: BudgetBreakdown
