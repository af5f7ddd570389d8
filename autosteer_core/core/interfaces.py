"""
组件接口定义

转向控制器是纯转换函数的宿主: 只持有配置，不持有每周期状态。
滤波器状态由调用方通过 GuidanceState 显式传入和取回。
"""
from abc import ABC, abstractmethod
from typing import Dict, Any

from .data_types import (
    VehiclePose, GuidancePath, GuidanceInput, GuidanceState, GuidanceOutput,
)
from .enums import SteeringAlgorithm


class ISteeringController(ABC):
    """转向控制器接口"""

    algorithm: SteeringAlgorithm

    @abstractmethod
    def compute(self, pose: VehiclePose, path: GuidancePath,
                previous: GuidanceState, guidance_input: GuidanceInput) -> GuidanceOutput:
        """
        计算一个周期的转向输出

        Args:
            pose: 车辆枢轴点位姿
            path: 当前导航路径
            previous: 上一周期的滤波器状态
            guidance_input: 本周期的调用方标志

        Returns:
            GuidanceOutput，其中 state 为下一周期的滤波器状态
        """
        pass

    @abstractmethod
    def get_parameters(self) -> Dict[str, Any]:
        """返回当前生效的调参值，用于诊断"""
        pass


__all__ = ['ISteeringController']
