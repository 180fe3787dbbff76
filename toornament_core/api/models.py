"""API request/response models."""

from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Optional, List, Set, Any

from pydantic import BaseModel, Field


class ToornamentModel(BaseModel):
    """Base for Toornament payloads."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready body using wire names, without unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Authentication and error payloads
# =============================================================================


class OAuthTokenResponse(BaseModel):
    """Token endpoint response (client-credentials grant)."""

    access_token: str
    expires_in: int
    token_type: Optional[str] = None
    scope: Optional[str] = None

    class Config:
        extra = "ignore"


class TooManyRequests(BaseModel):
    """429 body; ``retry_after`` is in milliseconds."""

    retry_after: int


class ServiceErrorScope(str, Enum):
    QUERY = "query"
    BODY = "body"


class ServiceErrorType(str, Enum):
    EMAIL_DUPLICATE = "email_duplicate"
    MATCH_INTEGRITY = "match_integrity"


class ServiceErrorDetail(BaseModel):
    """One entry of a service error response."""

    model_config = {"populate_by_name": True}

    message: str
    scope: ServiceErrorScope
    property_path: Optional[str] = None
    invalid_value: Optional[str] = None
    error_type: Optional[ServiceErrorType] = Field(default=None, alias="type")


class ServiceErrors(BaseModel):
    """Structured error payload returned with non-2xx responses."""

    errors: List[ServiceErrorDetail]


# =============================================================================
# Enumerations
# =============================================================================


class TournamentStatus(str, Enum):
    SETUP = "setup"
    RUNNING = "running"
    PENDING = "pending"
    COMPLETED = "completed"


class MatchType(str, Enum):
    DUEL = "duel"
    FREE_FOR_ALL = "ffa"


class MatchStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"


class MatchFormat(str, Enum):
    NONE = "none"
    ONE = "one"
    HOME_AWAY = "home_away"
    BEST_OF_3 = "bo3"
    BEST_OF_5 = "bo5"
    BEST_OF_7 = "bo7"
    BEST_OF_9 = "bo9"
    BEST_OF_11 = "bo11"


class MatchResultSimple(IntEnum):
    """Opponent result, sent as an integer."""

    WIN = 1
    DRAW = 2
    LOSS = 3


class ParticipantType(str, Enum):
    TEAM = "team"
    SINGLE = "single"


class PermissionAttribute(str, Enum):
    EDIT = "edit"
    DELETE = "delete"
    AUTHORIZE = "authorize"
    REPORT = "report"
    FILL = "fill"
    PLACE = "place"
    REGISTER = "register"


class StageType(str, Enum):
    GROUP = "group"
    LEAGUE = "league"
    SWISS = "swiss"
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    BRACKET_GROUP = "bracket_group"


class VideoCategory(str, Enum):
    REPLAY = "replay"
    HIGHLIGHT = "highlight"
    BONUS = "bonus"


# =============================================================================
# Disciplines
# =============================================================================


class TeamSize(ToornamentModel):
    """Team size bounds."""

    min: int
    max: int


class Discipline(ToornamentModel):
    """Discipline (game) supported by Toornament."""

    id: str
    name: str
    short_name: str = Field(alias="shortname")
    full_name: str = Field(alias="fullname")
    copyrights: str
    team_size: Optional[TeamSize] = None
    # field name -> {key: label}
    additional_fields: Optional[dict[str, dict[str, str]]] = None


# =============================================================================
# Tournaments
# =============================================================================


class Stream(ToornamentModel):
    id: str
    name: str
    url: str
    language: str


class Tournament(ToornamentModel):
    """Tournament model."""

    id: Optional[str] = None
    discipline: str
    name: str
    full_name: Optional[str] = None
    status: TournamentStatus
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    time_zone: Optional[str] = Field(default=None, alias="timezone")
    online: bool
    public: bool
    location: Optional[str] = None
    country: Optional[str] = None
    size: int
    participant_type: Optional[ParticipantType] = None
    match_type: Optional[MatchType] = None
    organization: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    rules: Optional[str] = None
    prize: Optional[str] = None
    team_size_min: Optional[int] = None
    team_size_max: Optional[int] = None
    streams: Optional[List[Stream]] = None
    check_in: Optional[bool] = None
    participant_nationality: Optional[bool] = None
    match_format: Optional[MatchFormat] = None

    @classmethod
    def create(
        cls,
        discipline: str,
        name: str,
        size: int,
        participant_type: ParticipantType,
    ) -> "Tournament":
        """New tournament ready to be posted: private, online, in setup."""
        return cls(
            discipline=discipline,
            name=name,
            status=TournamentStatus.SETUP,
            online=True,
            public=False,
            size=size,
            participant_type=participant_type,
        )


# =============================================================================
# Participants and matches
# =============================================================================


class CustomField(ToornamentModel):
    type: str
    label: Optional[str] = None
    value: Optional[Any] = None


class Participant(ToornamentModel):
    """Tournament participant (a team or a single player)."""

    id: Optional[str] = None
    name: str
    country: Optional[str] = None
    email: Optional[str] = None
    lineup: Optional[List["Participant"]] = None
    custom_fields: Optional[List[CustomField]] = None


class Opponent(ToornamentModel):
    number: int
    participant: Optional[Participant] = None
    result: Optional[MatchResultSimple] = None
    rank: Optional[int] = None
    score: Optional[int] = None
    forfeit: bool = False


class Game(ToornamentModel):
    number: int
    status: MatchStatus
    opponents: List[Opponent] = Field(default_factory=list)


class Match(ToornamentModel):
    """Match model."""

    id: str
    match_type: MatchType = Field(alias="type")
    discipline_id: str = Field(alias="discipline")
    status: MatchStatus
    tournament_id: str
    number: int
    stage_number: int
    group_number: int
    round_number: int
    date: Optional[datetime] = None
    timezone: Optional[str] = None
    match_format: Optional[MatchFormat] = None
    opponents: List[Opponent] = Field(default_factory=list)
    games: Optional[List[Game]] = None


class MatchResult(ToornamentModel):
    status: MatchStatus
    opponents: List[Opponent] = Field(default_factory=list)


# =============================================================================
# Permissions, stages, videos
# =============================================================================


class Permission(ToornamentModel):
    """Access granted to a user on a tournament."""

    id: Optional[str] = None
    email: str
    attributes: Set[PermissionAttribute] = Field(default_factory=set)

    @classmethod
    def create(cls, email: str, attributes: Set[PermissionAttribute]) -> "Permission":
        return cls(email=email, attributes=attributes)


class Stage(ToornamentModel):
    number: int
    name: str
    stage_type: StageType = Field(alias="type")
    size: int


class Video(ToornamentModel):
    name: str
    url: str
    language: str
    category: VideoCategory
    match_id: Optional[str] = None
