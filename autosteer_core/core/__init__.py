"""核心模块"""
from .enums import (
    GuidanceStatus, PathKind, BoundaryClass, JoinStyle,
    TurnState, TurnStyle, SteeringAlgorithm,
)
from .data_types import (
    PathPoint, GuidancePath, VehiclePose, GuidanceInput,
    GuidanceState, GuidanceOutput, SectionBoundaryStatus, YouTurnOutput,
)
from .interfaces import ISteeringController
from .constants import (
    EPSILON, EPSILON_SMALL, TWO_PI, HALF_PI,
    LOST_LOCK_VALUE, ROLL_UNAVAILABLE,
    normalize_angle, normalize_heading, fold_heading_error, heading_difference,
)
from .geometry_math import (
    distance_sq, segment_heading, signed_area, compute_headings, with_headings,
    cross_track_error, project_unclamped, offset_perpendicular,
)
from .wire import round_half_away_from_zero, encode_distance_mm, encode_steer_angle
from .exceptions import (
    GuidanceError, ConfigurationError, ConfigValidationError,
    PathValidationError, GeometryError,
)
