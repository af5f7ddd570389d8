"""
Stanley 转向控制器

以转向轴为参考点的几何控制器:

    steer = -(heading_error + atan(k_d * xte_steer / v_damped))

- heading_error: 车辆航向与路径线段航向之差，折叠到 [-π/2, π/2]
- xte_steer: 转向轴到虚拟偏移线的横向误差
- v_damped: 速度阻尼，v > 1 时为 1 + 0.277 * (v - 1)，否则为 1

虚拟偏移线:
===========
积分项不直接加到转角上，而是把参考线段沿其法向平移 integral 米。
积分本身由枢轴点相对原始线段的横向误差驱动 (Stanley 增益族)。

方向处理:
=========
与路径方向相反行驶时，交换线段端点并把航向旋转 π。此后所有量都相对车辆
行驶方向定义，直线和曲线使用同一套公式，无需再对横向误差取反。

曲线需要至少 min_curve_points 个点，转向轴线段从枢轴线段出发沿行驶方向
局部搜索一个轴距得到。
"""
from typing import Dict, Any, Optional, Tuple
import dataclasses
import logging
import numpy as np

from ..core.interfaces import ISteeringController
from ..core.data_types import (
    VehiclePose, GuidancePath, GuidanceInput, GuidanceState, GuidanceOutput,
)
from ..core.enums import GuidanceStatus, PathKind, SteeringAlgorithm
from ..core.constants import EPSILON_SMALL, HALF_PI, KMH_TO_MS, fold_heading_error, heading_difference
from ..core.geometry_math import (
    cross_track_error, project_unclamped, offset_perpendicular, segment_heading,
)
from ..core.logging_config import ThrottledLogger
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value
from .drift_filter import DriftCompensationFilter, FilterGains
from .segment_locator import SegmentLocator, SegmentLocation
from .pure_pursuit import apply_roll_and_clamp

logger = logging.getLogger(__name__)

# (easting, northing, heading)
_Vertex = Tuple[float, float, float]


def damped_speed(speed: float) -> float:
    """Stanley 速度阻尼，低速时固定为 1 避免横向项过激"""
    speed = abs(speed)
    if speed > 1.0:
        return 1.0 + KMH_TO_MS * (speed - 1.0)
    return 1.0


def attenuate(steer_deg: float, xte_steer: float, limit: float) -> float:
    """横向误差较大时削弱转角，接近路径时按 (1 - |xte|) 线性过渡"""
    if abs(xte_steer) > limit:
        return steer_deg * 0.5
    return steer_deg * (1.0 - abs(xte_steer))


def _vertex(path: GuidancePath, index: int) -> _Vertex:
    e, n, h = path.points[index]
    return float(e), float(n), float(h)


def _oriented(path: GuidancePath, a: int, b: int, same_way: bool) -> Tuple[_Vertex, _Vertex]:
    """按行驶方向返回线段端点，反向时交换并旋转航向 π"""
    va, vb = _vertex(path, a), _vertex(path, b)
    if same_way:
        return va, vb
    return (vb[0], vb[1], vb[2] + np.pi), (va[0], va[1], va[2] + np.pi)


class StanleyController(ISteeringController):
    """Stanley 转向控制器"""

    algorithm = SteeringAlgorithm.STANLEY

    def __init__(self, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG

        vehicle = get_config_value(config, 'vehicle', {}, DEFAULT_CONFIG)
        stanley = get_config_value(config, 'guidance.stanley', {}, DEFAULT_CONFIG)
        vehicle_defaults = DEFAULT_CONFIG['vehicle']
        stanley_defaults = DEFAULT_CONFIG['guidance']['stanley']

        self.wheelbase = vehicle.get('wheelbase', vehicle_defaults['wheelbase'])
        self.max_steer_angle = vehicle.get('max_steer_angle', vehicle_defaults['max_steer_angle'])
        self.roll_comp_factor = vehicle.get('roll_comp_factor', vehicle_defaults['roll_comp_factor'])

        self.heading_gain = stanley.get('heading_gain', stanley_defaults['heading_gain'])
        self.distance_gain = stanley.get('distance_gain', stanley_defaults['distance_gain'])
        self.integral_gain = stanley.get('integral_gain', stanley_defaults['integral_gain'])
        self.min_curve_points = stanley.get('min_curve_points', stanley_defaults['min_curve_points'])
        self.xte_attenuation_limit = stanley.get('xte_attenuation_limit',
                                                 stanley_defaults['xte_attenuation_limit'])

        self._filter = DriftCompensationFilter(FilterGains.from_config(config, 'stanley'))
        self._locator = SegmentLocator.from_config(config, 'stanley_refine_window')
        self._throttled = ThrottledLogger(logger, min_interval=5.0)

    def get_parameters(self) -> Dict[str, Any]:
        return {
            'wheelbase': self.wheelbase,
            'max_steer_angle': self.max_steer_angle,
            'roll_comp_factor': self.roll_comp_factor,
            'heading_gain': self.heading_gain,
            'distance_gain': self.distance_gain,
            'integral_gain': self.integral_gain,
            'gains': dataclasses.asdict(self._filter.gains),
        }

    # =========================================================================
    # 主计算
    # =========================================================================

    def compute(self, pose: VehiclePose, path: GuidancePath,
                previous: GuidanceState, guidance_input: GuidanceInput = None,
                integral_gain: Optional[float] = None) -> GuidanceOutput:
        """
        计算一个周期的 Stanley 转向

        Args:
            pose: 枢轴点位姿
            path: 导航路径 (两点直线、开放曲线或闭合环)
            previous: 上一周期滤波器状态
            guidance_input: 本周期标志，None 使用默认值
            integral_gain: 覆盖配置中的积分增益

        Returns:
            GuidanceOutput，cross_track_error 为枢轴点相对行驶方向的横向误差
        """
        gi = guidance_input or GuidanceInput()
        gain = self.integral_gain if integral_gain is None else integral_gain
        count = len(path)

        min_points = 2 if path.kind == PathKind.LINE else self.min_curve_points
        if count < min_points:
            return self._invalid(GuidanceStatus.LOST_LOCK, previous, gi,
                                 f'path has {count} points, need {min_points}')

        hint_same_way = self._same_way_hint(pose, path, gi)
        search_forward = (not hint_same_way) if gi.is_reverse else hint_same_way

        pivot_loc = self._locator.locate(path, pose.easting, pose.northing,
                                         current_index=gi.current_index,
                                         find_global=gi.find_global,
                                         lookahead=gi.lookahead,
                                         search_forward=search_forward)
        if not pivot_loc.is_valid:
            return self._invalid(pivot_loc.status, previous, gi, 'pivot segment search failed')

        if gi.is_heading_same_way is None:
            same_way = heading_difference(pose.heading, path.headings[pivot_loc.index_a]) < HALF_PI
        else:
            same_way = gi.is_heading_same_way

        steer_e, steer_n = pose.steer_position(self.wheelbase)
        if path.kind == PathKind.LINE:
            steer_loc = pivot_loc
        else:
            # 转向轴在车头方向一个轴距处
            steer_loc = self._locator.locate(path, steer_e, steer_n,
                                             current_index=pivot_loc.nearest_index,
                                             find_global=False,
                                             lookahead=self.wheelbase,
                                             search_forward=same_way)
            if not steer_loc.is_valid:
                return self._invalid(steer_loc.status, previous, gi, 'steer segment search failed')

        return self._steer(pose, path, previous, gi, gain, same_way,
                           pivot_loc, steer_loc, (float(steer_e), float(steer_n)))

    # =========================================================================
    # 内部计算
    # =========================================================================

    def _same_way_hint(self, pose: VehiclePose, path: GuidancePath, gi: GuidanceInput) -> bool:
        if gi.is_heading_same_way is not None:
            return gi.is_heading_same_way
        idx = min(max(gi.current_index, 0), len(path) - 1)
        return heading_difference(pose.heading, path.headings[idx]) < HALF_PI

    def _steer(self, pose: VehiclePose, path: GuidancePath, previous: GuidanceState,
               gi: GuidanceInput, gain: float, same_way: bool,
               pivot_loc: SegmentLocation, steer_loc: SegmentLocation,
               steer_pos: Tuple[float, float]) -> GuidanceOutput:
        pa, pb = _oriented(path, pivot_loc.index_a, pivot_loc.index_b, same_way)
        sa, sb = _oriented(path, steer_loc.index_a, steer_loc.index_b, same_way)

        xte_pivot, len_sq = cross_track_error(pa[0], pa[1], pb[0], pb[1],
                                              pose.easting, pose.northing)
        if len_sq < EPSILON_SMALL:
            return self._invalid(GuidanceStatus.SEGMENT_DEGENERATE, previous, gi,
                                 'pivot segment has zero length')
        _, ce, cn = project_unclamped(pa[0], pa[1], pb[0], pb[1], pose.easting, pose.northing)

        # 虚拟偏移线: 转向轴线段沿法向平移上一周期积分
        integral = previous.integral
        sa_e, sa_n = offset_perpendicular(sa[0], sa[1], sa[2], integral)
        sb_e, sb_n = offset_perpendicular(sb[0], sb[1], sb[2], integral)

        xte_steer, len_sq = cross_track_error(sa_e, sa_n, sb_e, sb_n, steer_pos[0], steer_pos[1])
        if len_sq < EPSILON_SMALL:
            return self._invalid(GuidanceStatus.SEGMENT_DEGENERATE, previous, gi,
                                 'steer segment has zero length')

        path_heading = segment_heading(sa_e, sa_n, sb_e, sb_n)
        heading_error = fold_heading_error(pose.heading - path_heading)
        steer_heading_error = -heading_error if gi.is_reverse else heading_error
        steer_heading_error *= self.heading_gain

        xte_correction = np.arctan(xte_steer * self.distance_gain / damped_speed(pose.speed))
        steer = float(np.degrees(-(steer_heading_error + xte_correction)))
        steer = attenuate(steer, xte_steer, self.xte_attenuation_limit)

        state = self._filter.step(previous, xte_pivot, gain, pose.speed,
                                  gi.is_auto_steer_on, gi.is_reverse, gi.is_youturn_triggered)

        steer = apply_roll_and_clamp(steer, pose, self.roll_comp_factor, self.max_steer_angle)

        logger.debug(f"stanley pivot A={pivot_loc.index_a} steer A={steer_loc.index_a} "
                     f"xte={xte_pivot:.3f} xte_steer={xte_steer:.3f} steer={steer:.2f}")

        return GuidanceOutput(
            status=GuidanceStatus.VALID,
            state=state,
            steer_angle_deg=steer,
            cross_track_error=float(xte_pivot),
            heading_error_deg=float(np.degrees(heading_error)),
            closest_point=(float(ce), float(cn)),
            current_index=pivot_loc.nearest_index,
            find_global=False,
            is_heading_same_way=same_way,
        )

    def _invalid(self, status: GuidanceStatus, previous: GuidanceState,
                 gi: GuidanceInput, reason: str) -> GuidanceOutput:
        self._throttled.warning(f"stanley {status.name}: {reason}", key=status.name)
        return GuidanceOutput.invalid(status, previous, current_index=gi.current_index)


__all__ = ['StanleyController', 'damped_speed', 'attenuate']
