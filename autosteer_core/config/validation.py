"""配置验证模块

提供配置参数的验证功能：
- 范围检查
- 类型检查
- 逻辑一致性检查
- 错误严重级别分类

错误严重级别:
- FATAL: 致命错误，必须阻止启动（如 wheelbase <= 0）
- ERROR: 严重错误，默认阻止启动
- WARNING: 警告，记录但不阻止启动
"""
from typing import Dict, Any, List, Tuple, Optional
from enum import Enum
import logging

from ..core.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """验证错误严重级别"""
    FATAL = 'fatal'      # 致命错误，必须阻止启动
    ERROR = 'error'      # 严重错误，默认阻止启动
    WARNING = 'warning'  # 警告，记录但不阻止启动


def get_config_value(
    config: Dict[str, Any],
    key_path: str,
    default: Any = None,
    fallback_config: Optional[Dict[str, Any]] = None
) -> Any:
    """
    从配置字典中获取值，支持点分隔的路径

    Args:
        config: 配置字典
        key_path: 点分隔的键路径，如 'guidance.stanley.heading_gain'
        default: 默认值
        fallback_config: 备选配置字典，当 config 中找不到时从此获取

    Returns:
        配置值或默认值

    Example:
        >>> config = {'vehicle': {'wheelbase': 3.3}}
        >>> get_config_value(config, 'vehicle.wheelbase')
        3.3
    """
    keys = key_path.split('.')
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            if fallback_config is not None:
                return get_config_value(fallback_config, key_path, default, None)
            return default
    return value


def _is_numeric(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(
    config: Dict[str, Any],
    validation_rules: Dict[str, Tuple],
    raise_on_error: bool = True
) -> List[Tuple[str, str]]:
    """
    验证配置参数范围

    Args:
        config: 配置字典
        validation_rules: 验证规则字典，格式为 {key_path: (min, max, description)}
        raise_on_error: 是否在发现错误时抛出异常

    Returns:
        错误列表，每个元素为 (key_path, error_message)

    Raises:
        ConfigValidationError: 当 raise_on_error=True 且发现错误时
    """
    errors = []

    for key_path, (min_val, max_val, description) in validation_rules.items():
        value = get_config_value(config, key_path)

        if value is None:
            continue  # 使用默认值，跳过验证

        if not _is_numeric(value):
            errors.append((key_path, f'{description} 类型错误，期望数值，实际为 {type(value).__name__}'))
            continue

        if min_val is not None and value < min_val:
            errors.append((key_path, f'{description} 值 {value} 小于最小值 {min_val}'))
        elif max_val is not None and value > max_val:
            errors.append((key_path, f'{description} 值 {value} 大于最大值 {max_val}'))

    if errors and raise_on_error:
        error_messages = '\n'.join([f'  - {key}: {msg}' for key, msg in errors])
        raise ConfigValidationError(f'配置验证失败:\n{error_messages}', errors)

    return errors


def validate_logical_consistency(config: Dict[str, Any]) -> List[Tuple[str, str, ValidationSeverity]]:
    """
    验证配置的逻辑一致性

    Args:
        config: 配置字典

    Returns:
        错误列表，每个元素为 (key_path, error_message, severity)
    """
    errors = []

    def add_error(key: str, msg: str, severity: ValidationSeverity = ValidationSeverity.ERROR):
        errors.append((key, msg, severity))

    # ==========================================================================
    # 致命错误 (FATAL 级别)
    # ==========================================================================

    wheelbase = get_config_value(config, 'vehicle.wheelbase')
    if _is_numeric(wheelbase) and wheelbase <= 0:
        add_error('vehicle.wheelbase',
                  f'轴距 ({wheelbase}) 必须大于 0，否则转角公式无意义',
                  ValidationSeverity.FATAL)

    max_steer = get_config_value(config, 'vehicle.max_steer_angle')
    if _is_numeric(max_steer) and max_steer <= 0:
        add_error('vehicle.max_steer_angle',
                  f'最大转角 ({max_steer}) 必须大于 0，否则车辆无法转向',
                  ValidationSeverity.FATAL)

    cell = get_config_value(config, 'geometry.boundary.grid_cell_size')
    if _is_numeric(cell) and cell <= 0:
        add_error('geometry.boundary.grid_cell_size',
                  f'边索引网格单元 ({cell}) 必须大于 0',
                  ValidationSeverity.FATAL)

    # ==========================================================================
    # 严重错误 (ERROR 级别)
    # ==========================================================================

    inside = get_config_value(config, 'geometry.boundary.fully_inside_ratio')
    outside = get_config_value(config, 'geometry.boundary.fully_outside_ratio')
    if _is_numeric(inside) and _is_numeric(outside) and outside >= inside:
        add_error('geometry.boundary.fully_outside_ratio',
                  f'完全在外比例 ({outside}) 必须小于完全在内比例 ({inside})',
                  ValidationSeverity.ERROR)

    filters = get_config_value(config, 'guidance.filter', {})
    if isinstance(filters, dict):
        for family, gains in filters.items():
            if not isinstance(gains, dict):
                add_error(f'guidance.filter.{family}', '增益族必须是字典', ValidationSeverity.ERROR)
                continue
            unwind = gains.get('unwind_factor')
            accumulate = gains.get('accumulate_factor')
            # 回卷系数应当不比累积系数平缓
            if _is_numeric(unwind) and _is_numeric(accumulate) and unwind > accumulate:
                add_error(f'guidance.filter.{family}.unwind_factor',
                          f'回卷系数 ({unwind}) 比累积系数 ({accumulate}) 更平缓，'
                          f'越线后积分会缓慢释放',
                          ValidationSeverity.WARNING)
            decay = gains.get('decay')
            if _is_numeric(decay) and decay >= 1.0:
                add_error(f'guidance.filter.{family}.decay',
                          f'衰减系数 ({decay}) 不小于 1，脱离自动转向后积分不会归零',
                          ValidationSeverity.WARNING)

    # ==========================================================================
    # 警告 (WARNING 级别)
    # ==========================================================================

    stride = get_config_value(config, 'guidance.locator.coarse_stride')
    window = get_config_value(config, 'guidance.locator.refine_window')
    if _is_numeric(stride) and _is_numeric(window) and window < stride // 2:
        add_error('guidance.locator.refine_window',
                  f'精搜索窗口 ({window}) 小于粗搜索步长的一半 ({stride})，可能漏掉最近点',
                  ValidationSeverity.WARNING)

    half_track = get_config_value(config, 'vehicle.half_wheel_track')
    tool_width = get_config_value(config, 'vehicle.tool_width')
    if _is_numeric(half_track) and _is_numeric(tool_width) and half_track * 2 > tool_width:
        add_error('vehicle.half_wheel_track',
                  f'轮距 ({half_track * 2}) 大于作业宽度 ({tool_width})，外侧电车道会落在边界外',
                  ValidationSeverity.WARNING)

    return errors


def validate_full_config(
    config: Dict[str, Any],
    validation_rules: Dict[str, Tuple],
    raise_on_error: bool = True,
) -> List[Tuple[str, str, ValidationSeverity]]:
    """
    完整配置验证（包括范围检查和逻辑一致性检查）

    Args:
        config: 配置字典
        validation_rules: 验证规则字典
        raise_on_error: 是否在发现 FATAL/ERROR 级别错误时抛出异常

    Returns:
        错误列表，每个元素为 (key_path, error_message, severity)

    Raises:
        ConfigValidationError: 当 raise_on_error=True 且发现 FATAL/ERROR 级别错误时
    """
    range_errors = validate_config(config, validation_rules, raise_on_error=False)
    errors = [(key, msg, ValidationSeverity.ERROR) for key, msg in range_errors]
    errors.extend(validate_logical_consistency(config))

    fatal_errors = [(k, m) for k, m, s in errors if s == ValidationSeverity.FATAL]
    error_errors = [(k, m) for k, m, s in errors if s == ValidationSeverity.ERROR]

    for key, msg, severity in errors:
        if severity == ValidationSeverity.WARNING:
            logger.warning(f"配置警告 [{key}]: {msg}")

    if raise_on_error:
        if fatal_errors:
            fatal_msgs = '\n'.join([f'  - [FATAL] {key}: {msg}' for key, msg in fatal_errors])
            raise ConfigValidationError(f'配置存在致命错误，无法启动:\n{fatal_msgs}', fatal_errors)
        if error_errors:
            error_msgs = '\n'.join([f'  - [ERROR] {key}: {msg}' for key, msg in error_errors])
            raise ConfigValidationError(f'配置验证失败:\n{error_msgs}', error_errors)

    return errors


__all__ = [
    'ValidationSeverity',
    'get_config_value',
    'validate_config',
    'validate_logical_consistency',
    'validate_full_config',
]
