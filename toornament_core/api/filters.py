"""Query filters for collection endpoints."""

from datetime import date
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel

from toornament_core.api.models import VideoCategory


class DateSortFilter(str, Enum):
    DATE_ASCENDING = "date_asc"
    DATE_DESCENDING = "date_desc"


class CreateDateSortFilter(str, Enum):
    CREATED_ASCENDING = "created_asc"
    CREATED_DESCENDING = "created_desc"
    ALPHABETIC = "alphabetic"


def bool_param(value: bool) -> str:
    return "1" if value else "0"


class MatchFilter(BaseModel):
    """Filter for discipline match listings."""

    model_config = {"frozen": True}

    featured: Optional[bool] = None
    has_result: Optional[bool] = None
    sort: Optional[DateSortFilter] = DateSortFilter.DATE_ASCENDING
    participant_id: Optional[str] = None
    tournament_ids: Optional[List[str]] = None
    with_games: bool = False
    before_date: Optional[date] = None
    after_date: Optional[date] = None
    page: Optional[int] = 1

    def to_params(self) -> List[tuple[str, str]]:
        params = []
        if self.featured is not None:
            params.append(("featured", bool_param(self.featured)))
        if self.has_result is not None:
            params.append(("has_result", bool_param(self.has_result)))
        if self.sort is not None:
            params.append(("sort", self.sort.value))
        if self.participant_id is not None:
            params.append(("participant_id", self.participant_id))
        if self.tournament_ids is not None:
            params.append(("tournament_ids", ",".join(self.tournament_ids)))
        params.append(("with_games", bool_param(self.with_games)))
        if self.before_date is not None:
            params.append(("before_date", self.before_date.isoformat()))
        if self.after_date is not None:
            params.append(("after_date", self.after_date.isoformat()))
        if self.page is not None:
            params.append(("page", str(self.page)))
        return params


class TournamentParticipantsFilter(BaseModel):
    """Filter for tournament participant listings."""

    model_config = {"frozen": True}

    with_lineup: bool = False
    with_custom_fields: bool = False
    sort: CreateDateSortFilter = CreateDateSortFilter.CREATED_ASCENDING
    page: int = 1

    def to_params(self) -> List[tuple[str, str]]:
        return [
            ("with_lineup", bool_param(self.with_lineup)),
            ("with_custom_fields", bool_param(self.with_custom_fields)),
            ("sort", self.sort.value),
            ("page", str(self.page)),
        ]


class TournamentVideosFilter(BaseModel):
    """Filter for tournament video listings."""

    model_config = {"frozen": True}

    category: Optional[VideoCategory] = None
    sort: DateSortFilter = DateSortFilter.DATE_ASCENDING
    page: Optional[int] = None

    def to_params(self) -> List[tuple[str, str]]:
        params = []
        if self.category is not None:
            # The API expects this misspelling for highlights
            value = "hightlight" if self.category is VideoCategory.HIGHLIGHT else self.category.value
            params.append(("category", value))
        params.append(("sort", self.sort.value))
        if self.page is not None:
            params.append(("page", str(self.page)))
        return params
