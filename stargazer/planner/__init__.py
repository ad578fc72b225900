from .catalog import ReferenceCatalog
from .events import generate_upcoming_events, get_active_meteor_showers, get_tonight_events
from .inputs import NormalizedRequest, normalize_request
from .types import (
    AstronomyEvent,
    MeteorShower,
    ObservationWindow,
    OverallQuality,
    Recommendation,
    TonightPlan,
    VisibilityScore,
)
from .visibility import calculate_optimal_window, calculate_visibility_score

__all__ = [
    "AstronomyEvent",
    "MeteorShower",
    "NormalizedRequest",
    "ObservationWindow",
    "OverallQuality",
    "Recommendation",
    "ReferenceCatalog",
    "TonightPlan",
    "VisibilityScore",
    "calculate_optimal_window",
    "calculate_visibility_score",
    "generate_upcoming_events",
    "get_active_meteor_showers",
    "get_tonight_events",
    "normalize_request",
]
