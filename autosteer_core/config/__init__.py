"""配置模块

提供统一的配置接口，支持：
- 默认配置 (DEFAULT_CONFIG)
- 配置验证 (validate_config, validate_full_config)
- YAML 调参文件加载 (load_config)

配置文件结构:
- vehicle_config.py: 车辆几何与转向执行
- guidance_config.py: 控制器、滤波器增益族、线段搜索
- geometry_config.py: 边界、偏移、间距、电车道、平移
- validation.py: 配置验证逻辑
- loader.py: YAML 加载与合并

使用示例:
    from autosteer_core.config import load_config

    config = load_config('tuning.yaml')
"""

from .default_config import (
    DEFAULT_CONFIG,
    CONFIG_VALIDATION_RULES,
    VEHICLE_CONFIG,
    GUIDANCE_CONFIG,
    GEOMETRY_CONFIG,
    ConfigValidationError,
    get_config_value,
    validate_config,
    validate_full_config,
    get_default_config,
)
from .validation import ValidationSeverity, validate_logical_consistency
from .loader import load_config, dump_config

__all__ = [
    'DEFAULT_CONFIG',
    'CONFIG_VALIDATION_RULES',
    'VEHICLE_CONFIG',
    'GUIDANCE_CONFIG',
    'GEOMETRY_CONFIG',
    'ConfigValidationError',
    'ValidationSeverity',
    'get_config_value',
    'validate_config',
    'validate_full_config',
    'validate_logical_consistency',
    'get_default_config',
    'load_config',
    'dump_config',
]
