"""路径跟踪模块

- segment_locator.py: 最近线段搜索
- drift_filter.py: 漂移补偿滤波器 (三个增益族共用)
- pure_pursuit.py: Pure Pursuit 控制器
- stanley.py: Stanley 控制器
- youturn.py: 掉头路径跟踪
"""
from .segment_locator import SegmentLocation, SegmentLocator
from .drift_filter import FilterGains, DriftCompensationFilter
from .pure_pursuit import PurePursuitController, walk_goal_point, apply_roll_and_clamp
from .stanley import StanleyController, damped_speed, attenuate
from .youturn import YouTurnTracker

__all__ = [
    'SegmentLocation',
    'SegmentLocator',
    'FilterGains',
    'DriftCompensationFilter',
    'PurePursuitController',
    'walk_goal_point',
    'apply_roll_and_clamp',
    'StanleyController',
    'damped_speed',
    'attenuate',
    'YouTurnTracker',
]
