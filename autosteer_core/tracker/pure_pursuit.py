"""
Pure Pursuit 转向控制器

一个实现覆盖所有路径类型，路径类型由 GuidancePath.kind 和 contour 标志决定:

- LINE: 两点直线，目标点沿无限延长线投影
- CURVE: 开放曲线，逐点行走找目标点，到终点停止并判断路径结束
- LOOP: 闭合环，行走时回绕
- contour: 录制等高线，全扫描最近点，每周期重新判断方向，带锁定滞回

每周期计算:
1. 搜索最近线段
2. 有符号横向误差 (点到直线公式)，所有路径类型包括等高线都从枢轴点量取
3. 漂移补偿积分
4. 无限制投影参数 U 求最近点
5. 目标点
6. 转角 = atan(2 * lateral * wheelbase / D²)，D² 为实际枢轴到目标点距离平方
7. 横滚补偿和限幅
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
from ..core.constants import (
    EPSILON, EPSILON_SMALL, TWO_PI, HALF_PI,
    fold_heading_error, heading_difference,
)
from ..core.geometry_math import cross_track_error, project_unclamped
from ..core.logging_config import ThrottledLogger
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value
from .drift_filter import DriftCompensationFilter, FilterGains
from .segment_locator import SegmentLocator, SegmentLocation

logger = logging.getLogger(__name__)


def walk_goal_point(xy: np.ndarray, index_a: int, index_b: int,
                    start: Tuple[float, float], lookahead: float,
                    forward: bool, closed: bool) -> Tuple[Tuple[float, float], bool]:
    """
    从最近点沿路径行走 lookahead 距离得到目标点

    Args:
        xy: 路径点坐标
        index_a, index_b: 当前线段
        start: 行走起点 (线段上的最近点)
        lookahead: 前瞻距离
        forward: True 表示索引递增方向，从 B 开始; 否则从 A 开始
        closed: 闭合路径回绕，开放路径到端点停止

    Returns:
        (目标点, exhausted)，exhausted 表示走到端点仍不足前瞻距离
    """
    count = len(xy)
    direction = 1 if forward else -1
    i = index_b if forward else index_a
    ce, cn = start
    dist_so_far = 0.0

    # 闭合环周长小于前瞻距离时最多走一圈
    for _ in range(count + 1):
        pe, pn = float(xy[i, 0]), float(xy[i, 1])
        seg = float(np.hypot(pe - ce, pn - cn))
        if dist_so_far + seg > lookahead:
            j = (lookahead - dist_so_far) / seg
            return ((1.0 - j) * ce + j * pe, (1.0 - j) * cn + j * pn), False

        dist_so_far += seg
        ce, cn = pe, pn
        i += direction
        if closed:
            i %= count
        elif i < 0 or i >= count:
            return (ce, cn), True

    return (ce, cn), True


def apply_roll_and_clamp(steer_deg: float, pose: VehiclePose,
                         roll_comp_factor: float, max_steer_angle: float) -> float:
    """横滚补偿后对称限幅"""
    if pose.has_roll:
        steer_deg += pose.roll * -roll_comp_factor
    return float(np.clip(steer_deg, -max_steer_angle, max_steer_angle))


class PurePursuitController(ISteeringController):
    """Pure Pursuit 转向控制器"""

    algorithm = SteeringAlgorithm.PURE_PURSUIT

    def __init__(self, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG

        vehicle = get_config_value(config, 'vehicle', {}, DEFAULT_CONFIG)
        pp = get_config_value(config, 'guidance.pure_pursuit', {}, DEFAULT_CONFIG)
        vehicle_defaults = DEFAULT_CONFIG['vehicle']
        pp_defaults = DEFAULT_CONFIG['guidance']['pure_pursuit']

        self.wheelbase = vehicle.get('wheelbase', vehicle_defaults['wheelbase'])
        self.max_steer_angle = vehicle.get('max_steer_angle', vehicle_defaults['max_steer_angle'])
        self.roll_comp_factor = vehicle.get('roll_comp_factor', vehicle_defaults['roll_comp_factor'])

        self.integral_gain = pp.get('integral_gain', pp_defaults['integral_gain'])
        self.radius_limit = pp.get('radius_limit', pp_defaults['radius_limit'])
        self.end_of_track_distance = pp.get('end_of_track_distance', pp_defaults['end_of_track_distance'])
        self.contour_min_points = pp.get('contour_min_points', pp_defaults['contour_min_points'])
        self.contour_end_margin = pp.get('contour_end_margin', pp_defaults['contour_end_margin'])

        self._filter = DriftCompensationFilter(FilterGains.from_config(config, 'pure_pursuit'))
        self._contour_filter = DriftCompensationFilter(FilterGains.from_config(config, 'contour'))
        self._locator = SegmentLocator.from_config(config)
        self._throttled = ThrottledLogger(logger, min_interval=5.0)

    def get_parameters(self) -> Dict[str, Any]:
        return {
            'wheelbase': self.wheelbase,
            'max_steer_angle': self.max_steer_angle,
            'roll_comp_factor': self.roll_comp_factor,
            'integral_gain': self.integral_gain,
            'radius_limit': self.radius_limit,
            'gains': dataclasses.asdict(self._filter.gains),
            'contour_gains': dataclasses.asdict(self._contour_filter.gains),
        }

    # =========================================================================
    # 主计算
    # =========================================================================

    def compute(self, pose: VehiclePose, path: GuidancePath,
                previous: GuidanceState, guidance_input: GuidanceInput = None,
                integral_gain: Optional[float] = None) -> GuidanceOutput:
        """
        计算一个周期的 Pure Pursuit 转向

        Args:
            pose: 枢轴点位姿
            path: 导航路径
            previous: 上一周期滤波器状态
            guidance_input: 本周期标志，None 使用默认值
            integral_gain: 覆盖配置中的积分增益 (掉头时传 0)

        Returns:
            GuidanceOutput
        """
        gi = guidance_input or GuidanceInput()
        gain = self.integral_gain if integral_gain is None else integral_gain
        count = len(path)

        min_points = self.contour_min_points if path.contour else 2
        if count < min_points:
            return self._invalid(GuidanceStatus.LOST_LOCK, previous, gi,
                                 f'path has {count} points, need {min_points}')

        # 局部搜索方向由上一周期的方向判断决定
        hint_same_way = self._same_way_hint(pose, path, gi)
        search_forward = (not hint_same_way) if gi.is_reverse else hint_same_way

        loc = self._locator.locate(path, pose.easting, pose.northing,
                                   current_index=gi.current_index,
                                   find_global=gi.find_global,
                                   lookahead=gi.lookahead,
                                   search_forward=search_forward)
        if not loc.is_valid:
            return self._invalid(loc.status, previous, gi, 'segment search failed')

        a, b = loc.index_a, loc.index_b

        if path.contour and gi.contour_locked:
            margin = self.contour_end_margin
            if a < margin or b > count - 1 - margin:
                logger.debug(f"contour unlocked at A={a} B={b} of {count}")
                return GuidanceOutput.invalid(GuidanceStatus.LOST_LOCK, previous,
                                              current_index=gi.current_index,
                                              contour_locked=False)

        return self._steer(pose, path, previous, gi, loc, gain)

    # =========================================================================
    # 内部计算
    # =========================================================================

    def _same_way_hint(self, pose: VehiclePose, path: GuidancePath, gi: GuidanceInput) -> bool:
        if gi.is_heading_same_way is not None:
            return gi.is_heading_same_way
        idx = min(max(gi.current_index, 0), len(path) - 1)
        return heading_difference(pose.heading, path.headings[idx]) < HALF_PI

    def _steer(self, pose: VehiclePose, path: GuidancePath, previous: GuidanceState,
               gi: GuidanceInput, loc: SegmentLocation, gain: float) -> GuidanceOutput:
        xy = path.xy
        headings = path.headings
        a, b = loc.index_a, loc.index_b
        ae, an = float(xy[a, 0]), float(xy[a, 1])
        be, bn = float(xy[b, 0]), float(xy[b, 1])

        # 方向判断: 等高线每周期重新计算，其余路径优先使用调用方标志
        if path.contour or gi.is_heading_same_way is None:
            same_way = heading_difference(pose.heading, headings[a]) < HALF_PI
        else:
            same_way = gi.is_heading_same_way
        reverse_heading = (not same_way) if gi.is_reverse else same_way

        xte_raw, _ = cross_track_error(ae, an, be, bn, pose.easting, pose.northing)

        if path.contour:
            state = self._contour_filter.step(previous, xte_raw, gain, pose.speed,
                                              gi.is_auto_steer_on, False, gi.is_youturn_triggered)
            if gi.is_reverse:
                state = dataclasses.replace(state, integral=0.0)
        else:
            state = self._filter.step(previous, xte_raw, gain, pose.speed,
                                      gi.is_auto_steer_on, gi.is_reverse, gi.is_youturn_triggered)

        u, ce, cn = project_unclamped(ae, an, be, bn, pose.easting, pose.northing)

        # 开放曲线: 自动转向前进时枢轴点已越过行驶方向上的端点; 掉头路径由 YouTurnTracker 判断
        past_end = ((reverse_heading and b == len(path) - 1 and u > 1.0)
                    or (not reverse_heading and a == 0 and u < 0.0))
        track_end_applies = (path.kind == PathKind.CURVE and not path.contour
                             and gi.is_auto_steer_on and not gi.is_reverse
                             and not gi.is_youturn_triggered)
        if track_end_applies and past_end:
            self._throttled.info("open curve exhausted", key='track_exhausted')
            return GuidanceOutput.invalid(GuidanceStatus.TRACK_EXHAUSTED, state,
                                          current_index=loc.nearest_index,
                                          closest_point=(ce, cn),
                                          is_heading_same_way=same_way,
                                          is_end_of_track=True)

        goal_exhausted = False
        is_end_of_track = False
        if path.kind == PathKind.LINE:
            line_heading = np.arctan2(be - ae, bn - an)
            sign = 1.0 if (gi.is_reverse != same_way) else -1.0
            goal = (ce + sign * np.sin(line_heading) * gi.lookahead,
                    cn + sign * np.cos(line_heading) * gi.lookahead)
        else:
            goal, goal_exhausted = walk_goal_point(xy, a, b, (ce, cn), gi.lookahead,
                                                   reverse_heading, path.closed)
            if path.kind == PathKind.CURVE and gi.is_auto_steer_on and not gi.is_reverse:
                end = xy[-1] if same_way else xy[0]
                if np.hypot(goal[0] - end[0], goal[1] - end[1]) < self.end_of_track_distance:
                    is_end_of_track = True

        goal = (float(goal[0]), float(goal[1]))
        dx_goal = goal[0] - pose.easting
        dy_goal = goal[1] - pose.northing
        d_sq = dx_goal * dx_goal + dy_goal * dy_goal
        if d_sq < EPSILON_SMALL:
            self._throttled.warning("goal point coincides with pivot", key='goal_degenerate')
            return GuidanceOutput.invalid(GuidanceStatus.SEGMENT_DEGENERATE, state,
                                          current_index=loc.nearest_index)

        if reverse_heading:
            local_heading = TWO_PI - pose.heading + state.integral
        else:
            local_heading = TWO_PI - pose.heading - state.integral

        lateral = dx_goal * np.cos(local_heading) + dy_goal * np.sin(local_heading)
        steer = float(np.degrees(np.arctan(2.0 * lateral * self.wheelbase / d_sq)))
        steer = apply_roll_and_clamp(steer, pose, self.roll_comp_factor, self.max_steer_angle)

        # 目标点在正前方时半径无穷大，按显示上限处理
        if abs(lateral) < EPSILON:
            radius = self.radius_limit
        else:
            radius = float(np.clip(d_sq / (2.0 * lateral), -self.radius_limit, self.radius_limit))
        radius_point = (pose.easting + radius * np.cos(local_heading),
                        pose.northing + radius * np.sin(local_heading))

        xte = xte_raw if same_way else -xte_raw
        heading_error = fold_heading_error(pose.heading - headings[a])

        return GuidanceOutput(
            status=GuidanceStatus.VALID,
            state=state,
            steer_angle_deg=steer,
            cross_track_error=float(xte),
            heading_error_deg=float(np.degrees(heading_error)),
            goal_point=goal,
            radius_point=(float(radius_point[0]), float(radius_point[1])),
            pure_pursuit_radius=radius,
            closest_point=(float(ce), float(cn)),
            current_index=loc.nearest_index,
            find_global=False,
            is_heading_same_way=same_way,
            is_end_of_track=is_end_of_track,
            goal_exhausted=goal_exhausted,
            contour_locked=gi.contour_locked if path.contour else False,
        )

    def _invalid(self, status: GuidanceStatus, previous: GuidanceState,
                 gi: GuidanceInput, reason: str) -> GuidanceOutput:
        self._throttled.warning(f"pure pursuit {status.name}: {reason}", key=status.name)
        return GuidanceOutput.invalid(status, previous, current_index=gi.current_index,
                                      contour_locked=gi.contour_locked)


__all__ = ['PurePursuitController', 'walk_goal_point', 'apply_roll_and_clamp']
