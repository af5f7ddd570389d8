"""
漂移补偿滤波器 (积分/微分抗饱和)

所有控制器共用的积分转换函数，不同控制器族只有增益常数不同。

转换步骤:
=========

1. distance_error = w * xte + (1 - w) * prev.distance_error
2. counter > derivative_interval 时:
       derivative = (distance_error - prev.distance_error_last) * derivative_scale
   快照 distance_error_last 并清零计数; 否则 derivative = 0
3. 满足以下全部条件时累积积分:
   自动转向接合、车速高于下限、|derivative| 低于稳定阈值、不在掉头中
   - 积分与 xte 严格同号 (越线后仍在推向错误一侧): 按 unwind_factor 快速回卷
   - 否则 |xte| 超过死区时按 accumulate_factor 慢速累积，并对称限幅
   - 否则保持
4. 不满足累积条件: 积分按 decay 几何衰减，避免旧修正带入下次接合
5. gain == 0 或倒车: 积分和平滑误差清零，计数和快照保持

状态由调用方持有 (GuidanceState)，本模块不保存任何周期间状态。
"""
from dataclasses import dataclass, fields
from typing import Dict, Any
import numpy as np

from ..core.data_types import GuidanceState
from ..config.validation import get_config_value
from ..config.default_config import DEFAULT_CONFIG


@dataclass(frozen=True)
class FilterGains:
    """
    漂移补偿增益族

    默认值为 Pure Pursuit 增益族。
    """
    error_weight: float = 0.2
    derivative_interval: int = 4
    derivative_scale: float = 2.0
    derivative_limit: float = 0.1
    min_speed: float = 2.5
    unwind_factor: float = -0.04
    accumulate_factor: float = -0.02
    deadband: float = 0.02
    clamp: float = 0.2
    decay: float = 0.95
    pause_during_turn: bool = True

    @classmethod
    def from_config(cls, config: Dict[str, Any], family: str) -> 'FilterGains':
        """
        从配置读取增益族

        Args:
            config: 完整配置字典
            family: 'pure_pursuit' / 'contour' / 'stanley'
        """
        section = get_config_value(config, f'guidance.filter.{family}', None, DEFAULT_CONFIG)
        if section is None:
            section = {}
        names = {f.name for f in fields(cls)}
        values = {k: v for k, v in section.items() if k in names}
        # Stanley 族在掉头中不暂停累积
        values.setdefault('pause_during_turn', family != 'stanley')
        return cls(**values)


class DriftCompensationFilter:
    """
    漂移补偿滤波器

    纯转换函数: step(previous, ...) -> next。实例只持有增益。

    Example:
        >>> filt = DriftCompensationFilter(FilterGains())
        >>> state = GuidanceState()
        >>> state = filt.step(state, xte=0.3, gain=1.0, speed=8.0)
    """

    def __init__(self, gains: FilterGains = None):
        self.gains = gains or FilterGains()

    def step(self, previous: GuidanceState, xte: float, gain: float, speed: float,
             is_auto_steer_on: bool = True, is_reverse: bool = False,
             is_youturn_triggered: bool = False) -> GuidanceState:
        """
        计算下一周期的滤波器状态

        Args:
            previous: 上一周期状态
            xte: 原始横向误差 (相对路径定义方向，未按行驶方向翻转)
            gain: 积分增益，0 表示禁用
            speed: 车速 (km/h)
            is_auto_steer_on: 自动转向是否接合
            is_reverse: 是否倒车
            is_youturn_triggered: 是否在掉头中

        Returns:
            下一周期的 GuidanceState，|integral| <= clamp
        """
        g = self.gains

        if gain == 0 or is_reverse:
            return GuidanceState(
                integral=0.0,
                distance_error=0.0,
                distance_error_last=previous.distance_error_last,
                derivative=0.0,
                counter=previous.counter,
            )

        distance_error = xte * g.error_weight + previous.distance_error * (1.0 - g.error_weight)
        counter = previous.counter + 1

        if counter > g.derivative_interval:
            derivative = (distance_error - previous.distance_error_last) * g.derivative_scale
            distance_error_last = distance_error
            counter = 0
        else:
            derivative = 0.0
            distance_error_last = previous.distance_error_last

        paused = g.pause_during_turn and is_youturn_triggered
        integral = previous.integral

        if (is_auto_steer_on and speed > g.min_speed
                and abs(derivative) < g.derivative_limit and not paused):
            if (integral < 0 and xte < 0) or (integral > 0 and xte > 0):
                integral = integral + distance_error * gain * g.unwind_factor
            elif abs(xte) > g.deadband:
                integral = integral + distance_error * gain * g.accumulate_factor
        else:
            integral = integral * g.decay

        integral = float(np.clip(integral, -g.clamp, g.clamp))

        return GuidanceState(
            integral=integral,
            distance_error=float(distance_error),
            distance_error_last=float(distance_error_last),
            derivative=float(derivative),
            counter=counter,
        )


__all__ = ['FilterGains', 'DriftCompensationFilter']
