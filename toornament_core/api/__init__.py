"""Toornament API client module."""

from toornament_core.api.client import Toornament
from toornament_core.api.auth import AccessToken, Credentials, TokenStore, authenticate
from toornament_core.api.endpoints import Endpoint, build_url
from toornament_core.api.filters import (
    MatchFilter,
    TournamentParticipantsFilter,
    TournamentVideosFilter,
)
from toornament_core.api.models import (
    Discipline,
    Game,
    Match,
    MatchResult,
    Participant,
    Permission,
    PermissionAttribute,
    ServiceErrorDetail,
    Stage,
    Tournament,
    Video,
)
from toornament_core.api.pipeline import (
    RequestOutcome,
    RequestPipeline,
    Success,
    RateLimited,
    ServiceRejected,
    TransportFailure,
    classify_response,
)
from toornament_core.api.exceptions import (
    APIError,
    AuthenticationError,
    LockError,
    RateLimitError,
    SerializationError,
    ServiceError,
    StatusError,
    TransportError,
)

__all__ = [
    "Toornament",
    "AccessToken",
    "Credentials",
    "TokenStore",
    "authenticate",
    "Endpoint",
    "build_url",
    "MatchFilter",
    "TournamentParticipantsFilter",
    "TournamentVideosFilter",
    "Discipline",
    "Game",
    "Match",
    "MatchResult",
    "Participant",
    "Permission",
    "PermissionAttribute",
    "ServiceErrorDetail",
    "Stage",
    "Tournament",
    "Video",
    "RequestOutcome",
    "RequestPipeline",
    "Success",
    "RateLimited",
    "ServiceRejected",
    "TransportFailure",
    "classify_response",
    "APIError",
    "AuthenticationError",
    "LockError",
    "RateLimitError",
    "SerializationError",
    "ServiceError",
    "StatusError",
    "TransportError",
]
