"""默认配置

本模块合并所有配置子模块，提供统一的配置接口。

配置结构:
- vehicle_config.py: 车辆几何和转向执行 (VEHICLE_CONFIG)
- guidance_config.py: 控制器、滤波器增益族、线段搜索 (GUIDANCE_CONFIG)
- geometry_config.py: 边界、偏移、间距、电车道、平移 (GEOMETRY_CONFIG)
- validation.py: 配置验证
- loader.py: YAML 调参文件加载

使用示例:
    from autosteer_core.config import DEFAULT_CONFIG

    config = copy.deepcopy(DEFAULT_CONFIG)
    config['vehicle']['wheelbase'] = 2.8
"""
from typing import Dict, Any
import copy

from .vehicle_config import VEHICLE_CONFIG, VEHICLE_VALIDATION_RULES
from .guidance_config import GUIDANCE_CONFIG, GUIDANCE_VALIDATION_RULES
from .geometry_config import GEOMETRY_CONFIG, GEOMETRY_VALIDATION_RULES

from .validation import (
    ConfigValidationError,
    get_config_value,
    validate_config as _validate_config,
    validate_full_config,
)


# =============================================================================
# 合并所有配置
# =============================================================================
DEFAULT_CONFIG: Dict[str, Any] = {
    'vehicle': copy.deepcopy(VEHICLE_CONFIG),
    'guidance': copy.deepcopy(GUIDANCE_CONFIG),
    'geometry': copy.deepcopy(GEOMETRY_CONFIG),
}


# =============================================================================
# 合并所有验证规则
# =============================================================================
CONFIG_VALIDATION_RULES: Dict[str, tuple] = {}
CONFIG_VALIDATION_RULES.update(VEHICLE_VALIDATION_RULES)
CONFIG_VALIDATION_RULES.update(GUIDANCE_VALIDATION_RULES)
CONFIG_VALIDATION_RULES.update(GEOMETRY_VALIDATION_RULES)


def validate_config(config: Dict[str, Any], raise_on_error: bool = True) -> list:
    """
    按全部默认规则验证配置参数范围

    Args:
        config: 配置字典
        raise_on_error: 是否在发现错误时抛出异常

    Returns:
        错误列表，每个元素为 (key_path, error_message)

    Example:
        >>> config = copy.deepcopy(DEFAULT_CONFIG)
        >>> config['vehicle']['wheelbase'] = -1
        >>> validate_config(config, raise_on_error=False)
        [('vehicle.wheelbase', '轴距 (米) 值 -1 小于最小值 0.1')]
    """
    return _validate_config(config, CONFIG_VALIDATION_RULES, raise_on_error)


def get_default_config() -> Dict[str, Any]:
    """返回默认配置的深拷贝"""
    return copy.deepcopy(DEFAULT_CONFIG)


__all__ = [
    'DEFAULT_CONFIG',
    'CONFIG_VALIDATION_RULES',
    'VEHICLE_CONFIG',
    'GUIDANCE_CONFIG',
    'GEOMETRY_CONFIG',
    'ConfigValidationError',
    'get_config_value',
    'validate_config',
    'validate_full_config',
    'get_default_config',
]
