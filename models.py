from enum import Enum
from typing import List, Literal, Union

from pydantic import BaseModel


class MatchKind(str, Enum):
    STATE = "state"
    DISTRICT = "district"
    RESOURCE = "resource"


class RegionMatch(BaseModel):
    """A state or district hit that links to a region page."""
    kind: Literal[MatchKind.STATE, MatchKind.DISTRICT]
    label: str
    route_key: str
    region: str


class ResourceMatch(BaseModel):
    kind: Literal[MatchKind.RESOURCE] = MatchKind.RESOURCE
    label: str
    category: str
    category_label: str
    website: str = ""
    description: str = ""
    city: str = ""
    state: str = ""
    phone: str = ""


MatchResult = Union[RegionMatch, ResourceMatch]


class SearchResponse(BaseModel):
    query: str
    total: int
    results: List[MatchResult]


class SuggestionsResponse(BaseModel):
    essentials: List[str]
    locations: List[str]
