"""
掉头路径跟踪

掉头路径是一条开放曲线，由外部生成。跟踪器只负责判断掉头是否完成，
未完成时把路径交给 Pure Pursuit 或 Stanley 控制器。

状态机:
=======
    FOLLOWING ──(任一完成条件)──> COMPLETE

完成条件:
- 路径为空
- 车辆离开掉头路径 (最近点距离超过失锁阈值; Stanley 从转向轴量取)
- 最近线段已到达路径末端 (B >= n - 1); Pure Pursuit 还要求 A 已过路径中点
- K 型掉头倒车段结束
- Pure Pursuit 前瞻行走超出路径末端

跟踪期间方向固定为与路径一致，每周期全局搜索，积分增益为 0。
"""
from typing import Dict, Any
import dataclasses
import logging
import numpy as np

from ..core.interfaces import ISteeringController
from ..core.data_types import (
    VehiclePose, GuidancePath, GuidanceInput, GuidanceState, YouTurnOutput,
)
from ..core.enums import GuidanceStatus, SteeringAlgorithm, TurnState, TurnStyle
from ..config.default_config import DEFAULT_CONFIG
from ..config.validation import get_config_value
from .segment_locator import SegmentLocator

logger = logging.getLogger(__name__)


class YouTurnTracker:
    """
    掉头跟踪器

    Args:
        controller: 实际计算转角的控制器
        config: 完整配置字典

    Example:
        >>> tracker = YouTurnTracker(PurePursuitController(config), config)
        >>> result = tracker.update(pose, turn_points, state)
        >>> if result.is_complete:
        ...     switch_to_next_line()
    """

    def __init__(self, controller: ISteeringController, config: Dict[str, Any] = None):
        config = config if config is not None else DEFAULT_CONFIG
        self.controller = controller

        vehicle = get_config_value(config, 'vehicle', {}, DEFAULT_CONFIG)
        youturn = get_config_value(config, 'guidance.youturn', {}, DEFAULT_CONFIG)
        vehicle_defaults = DEFAULT_CONFIG['vehicle']
        youturn_defaults = DEFAULT_CONFIG['guidance']['youturn']

        self.uturn_compensation = vehicle.get('uturn_compensation',
                                              vehicle_defaults['uturn_compensation'])
        self.max_steer_angle = vehicle.get('max_steer_angle', vehicle_defaults['max_steer_angle'])
        self.wheelbase = vehicle.get('wheelbase', vehicle_defaults['wheelbase'])

        if controller.algorithm == SteeringAlgorithm.STANLEY:
            self.lost_distance = youturn.get('stanley_lost_distance',
                                             youturn_defaults['stanley_lost_distance'])
        else:
            self.lost_distance = youturn.get('pure_pursuit_lost_distance',
                                             youturn_defaults['pure_pursuit_lost_distance'])

        self._locator = SegmentLocator.from_config(config)
        self.turn_state = TurnState.FOLLOWING

    def reset(self) -> None:
        """开始新的掉头"""
        self.turn_state = TurnState.FOLLOWING

    def update(self, pose: VehiclePose, turn_path, previous: GuidanceState,
               lookahead: float = 4.0, is_reverse: bool = False,
               turn_style: TurnStyle = TurnStyle.STANDARD) -> YouTurnOutput:
        """
        跟踪一个周期

        Args:
            pose: 枢轴点位姿
            turn_path: 掉头路径，GuidancePath 或 (N, 2|3) 点数组
            previous: 上一周期滤波器状态
            lookahead: 前瞻距离 (米)
            is_reverse: 是否倒车
            turn_style: 掉头方式

        Returns:
            YouTurnOutput，完成后 guidance 为 None
        """
        if self.turn_state == TurnState.COMPLETE:
            return YouTurnOutput(TurnState.COMPLETE)

        path = turn_path if isinstance(turn_path, GuidancePath) else GuidancePath(turn_path)
        count = len(path)
        if count == 0:
            return self._complete('turn path is empty')

        if self.controller.algorithm == SteeringAlgorithm.STANLEY:
            e, n = pose.steer_position(self.wheelbase)
        else:
            e, n = pose.easting, pose.northing

        a, _, d2 = self._locator.full_scan_pair(path.xy, e, n)
        if a < 0:
            return self._complete(f'turn path has {count} points')

        # 入口腿和出口腿可能相距很近，B 固定为 A 的下一个点
        b = a + 1

        if self.controller.algorithm == SteeringAlgorithm.STANLEY:
            if d2 > self.lost_distance * self.lost_distance:
                return self._complete(f'steer axle left turn path, distance {np.sqrt(d2):.2f} m')
            if b >= count - 1:
                return self._complete('reached end of turn path')
        else:
            distance = float(np.hypot(path.xy[a, 0] - e, path.xy[a, 1] - n))
            if a > 0 and distance > self.lost_distance:
                return self._complete(f'left turn path, distance {distance:.2f} m')
            if b >= count - 1 and a > count // 2:
                return self._complete('reached end of turn path')

        if turn_style == TurnStyle.K_TURN and is_reverse:
            return self._complete('K-turn reversing leg finished')

        gi = GuidanceInput(
            lookahead=lookahead,
            is_auto_steer_on=True,
            is_reverse=is_reverse,
            is_heading_same_way=True,
            find_global=True,
            is_youturn_triggered=True,
        )
        guidance = self.controller.compute(pose, path, previous, gi, integral_gain=0.0)

        if guidance.status == GuidanceStatus.TRACK_EXHAUSTED or guidance.goal_exhausted:
            return self._complete('lookahead walked past end of turn path')

        if guidance.is_valid:
            steer = float(np.clip(guidance.steer_angle_deg * self.uturn_compensation,
                                  -self.max_steer_angle, self.max_steer_angle))
            guidance = dataclasses.replace(guidance, steer_angle_deg=steer)

        return YouTurnOutput(TurnState.FOLLOWING, guidance, remaining_points=count - b)

    def _complete(self, reason: str) -> YouTurnOutput:
        logger.info(f"U-turn complete: {reason}")
        self.turn_state = TurnState.COMPLETE
        return YouTurnOutput(TurnState.COMPLETE)


__all__ = ['YouTurnTracker']
