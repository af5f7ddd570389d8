"""
数据类型定义

本模块定义了导航核心使用的数据类型。

坐标系说明:
===========

所有几何量都在本地平面坐标系 (easting, northing) 下，单位米。
航向从正北顺时针测量，单位弧度，范围 [0, 2π)。

关键数据类型:
   - GuidancePath: 导航路径，两点直线 / 开放曲线 / 闭合环
   - VehiclePose: 车辆位姿 (枢轴点)
   - GuidanceInput: 每周期的调用方标志
   - GuidanceState: 漂移补偿滤波器状态，由调用方持有
   - GuidanceOutput: 每周期的转向输出

数据流:
   VehiclePose + GuidancePath + GuidanceState(prev)
       → 控制器 → GuidanceOutput (含 GuidanceState(next))
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple
import numpy as np
import logging

from .enums import GuidanceStatus, PathKind, BoundaryClass, TurnState
from .constants import ROLL_UNAVAILABLE, LOST_LOCK_VALUE
from .geometry_math import with_headings, segment_heading
from .validators import ensure_point_array
from .wire import encode_distance_mm, encode_steer_angle

logger = logging.getLogger(__name__)


# =============================================================================
# 点与路径
# =============================================================================

@dataclass(frozen=True)
class PathPoint:
    """带航向的路径点"""
    easting: float
    northing: float
    heading: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.easting, self.northing, self.heading])


class GuidancePath:
    """
    导航路径

    路径类型由点数和闭合性推导，不使用子类:
    - 两点且不闭合: LINE，视为无限延伸的直线
    - 多于两点且不闭合: CURVE
    - 闭合: LOOP (边界环、中心枢轴圆等)

    contour=True 表示录制的等高线路径，方向不确定，控制器每周期重新判断
    方向并使用锁定滞回。

    点存储为只读 (N, 3) 数组。传入 (N, 2) 坐标时自动计算航向。

    Raises:
        PathValidationError: 形状错误或包含非有限值
    """

    def __init__(self, points, closed: bool = False, contour: bool = False):
        arr = ensure_point_array(points, name='path')
        if arr.shape[1] == 2:
            arr = with_headings(arr, closed=closed)
        arr.flags.writeable = False
        self._points = arr
        self.closed = bool(closed)
        self.contour = bool(contour)

    @classmethod
    def line(cls, a: Tuple[float, float], b: Tuple[float, float]) -> 'GuidancePath':
        """由两个端点构造 AB 线，两点航向均为 A→B 方向"""
        heading = segment_heading(a[0], a[1], b[0], b[1])
        return cls([[a[0], a[1], heading], [b[0], b[1], heading]])

    @classmethod
    def from_xy(cls, xy, closed: bool = False, contour: bool = False) -> 'GuidancePath':
        """由平面坐标构造路径，航向由相邻点差分重新计算"""
        arr = ensure_point_array(xy, name='path')
        return cls(arr[:, :2], closed=closed, contour=contour)

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def xy(self) -> np.ndarray:
        return self._points[:, :2]

    @property
    def headings(self) -> np.ndarray:
        return self._points[:, 2]

    @property
    def kind(self) -> PathKind:
        if self.closed:
            return PathKind.LOOP
        if len(self._points) == 2:
            return PathKind.LINE
        return PathKind.CURVE

    @property
    def is_empty(self) -> bool:
        return len(self._points) == 0

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> PathPoint:
        e, n, h = self._points[index]
        return PathPoint(float(e), float(n), float(h))

    def __repr__(self) -> str:
        return (f'GuidancePath(kind={self.kind.name}, points={len(self)}, '
                f'contour={self.contour})')


# =============================================================================
# 车辆位姿与输入
# =============================================================================

@dataclass(frozen=True)
class VehiclePose:
    """
    车辆位姿 (枢轴点/后轴)

    Attributes:
        easting, northing: 枢轴点坐标 (米)
        heading: 航向 (弧度)
        speed: 车速 (km/h)
        roll: 横滚角 (度)，None 或 ROLL_UNAVAILABLE 表示不可用
    """
    easting: float
    northing: float
    heading: float
    speed: float = 0.0
    roll: Optional[float] = None

    @property
    def has_roll(self) -> bool:
        return self.roll is not None and self.roll != ROLL_UNAVAILABLE

    def steer_position(self, wheelbase: float) -> Tuple[float, float]:
        """沿航向前移一个轴距得到转向轴位置"""
        return (self.easting + np.sin(self.heading) * wheelbase,
                self.northing + np.cos(self.heading) * wheelbase)


@dataclass(frozen=True)
class GuidanceInput:
    """
    每周期的调用方标志

    Attributes:
        lookahead: 前瞻距离 (米)
        is_auto_steer_on: 自动转向是否接合
        is_reverse: 是否倒车
        is_heading_same_way: 是否与路径方向一致，None 表示由航向推导
        current_index: 上一周期的局部搜索索引
        find_global: 是否执行全局搜索
        is_youturn_triggered: 是否处于掉头中 (暂停积分累积)
        contour_locked: 等高线是否已锁定
    """
    lookahead: float = 4.0
    is_auto_steer_on: bool = True
    is_reverse: bool = False
    is_heading_same_way: Optional[bool] = None
    current_index: int = 0
    find_global: bool = True
    is_youturn_triggered: bool = False
    contour_locked: bool = False


# =============================================================================
# 滤波器状态与输出
# =============================================================================

@dataclass(frozen=True)
class GuidanceState:
    """
    漂移补偿滤波器状态

    由调用方持有，每周期作为 previous 传入、以 next 返回。

    Attributes:
        integral: 积分横向偏移 (米)，绝对值不超过所属滤波器族的限幅
        distance_error: 平滑后的横向误差
        distance_error_last: 上次计算微分时的误差快照
        derivative: 误差微分
        counter: 微分计算周期计数
    """
    integral: float = 0.0
    distance_error: float = 0.0
    distance_error_last: float = 0.0
    derivative: float = 0.0
    counter: int = 0


@dataclass(frozen=True)
class GuidanceOutput:
    """
    每周期的转向输出

    status 不为 VALID 时，转角为 0，线路编码值为 LOST_LOCK_VALUE。
    """
    status: GuidanceStatus
    state: GuidanceState = field(default_factory=GuidanceState)
    steer_angle_deg: float = 0.0
    cross_track_error: float = 0.0
    heading_error_deg: float = 0.0
    goal_point: Optional[Tuple[float, float]] = None
    radius_point: Optional[Tuple[float, float]] = None
    pure_pursuit_radius: float = 0.0
    closest_point: Optional[Tuple[float, float]] = None
    current_index: int = 0
    find_global: bool = False
    is_heading_same_way: bool = True
    is_end_of_track: bool = False
    goal_exhausted: bool = False
    contour_locked: bool = False

    @classmethod
    def invalid(cls, status: GuidanceStatus, state: GuidanceState,
                current_index: int = 0, **kwargs) -> 'GuidanceOutput':
        """构造无效输出，转角和横向偏差置零"""
        return cls(status=status, state=state, current_index=current_index,
                   find_global=True, **kwargs)

    @property
    def is_valid(self) -> bool:
        return self.status == GuidanceStatus.VALID

    @property
    def wire_distance_off(self) -> int:
        """横向偏差 (毫米)，无效时为 32000"""
        if not self.is_valid:
            return LOST_LOCK_VALUE
        return encode_distance_mm(self.cross_track_error)

    @property
    def wire_steer_angle(self) -> int:
        """转角 × 100，无效时为 32000"""
        if not self.is_valid:
            return LOST_LOCK_VALUE
        return encode_steer_angle(self.steer_angle_deg)


# =============================================================================
# 边界与掉头结果
# =============================================================================

@dataclass(frozen=True)
class SectionBoundaryStatus:
    """
    作业段与边界的关系

    Attributes:
        classification: 完全在内 / 完全在外 / 跨越
        inside_fraction: 段内位于边界内的长度比例 [0, 1]
        crosses_boundary: 段内是否有边界交点
    """
    classification: BoundaryClass
    inside_fraction: float
    crosses_boundary: bool = False

    @property
    def is_fully_inside(self) -> bool:
        return self.classification == BoundaryClass.FULLY_INSIDE

    @property
    def is_fully_outside(self) -> bool:
        return self.classification == BoundaryClass.FULLY_OUTSIDE


@dataclass(frozen=True)
class YouTurnOutput:
    """掉头跟踪输出"""
    turn_state: TurnState
    guidance: Optional[GuidanceOutput] = None
    remaining_points: int = 0

    @property
    def is_complete(self) -> bool:
        return self.turn_state == TurnState.COMPLETE


__all__ = [
    'PathPoint',
    'GuidancePath',
    'VehiclePose',
    'GuidanceInput',
    'GuidanceState',
    'GuidanceOutput',
    'SectionBoundaryStatus',
    'YouTurnOutput',
]
