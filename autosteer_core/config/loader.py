"""
调参文件加载器

从 YAML 文件加载调参覆盖值。

设计说明:
=========
采用"以 DEFAULT_CONFIG 为模板"的策略：
1. 深拷贝 DEFAULT_CONFIG 作为基础配置
2. 递归遍历 DEFAULT_CONFIG 的结构
3. 对于每个叶子项，如果 YAML 中存在对应值则覆盖，并转换为默认值的类型
4. YAML 中不在模板里的键记录警告后忽略
5. 加载完成后进行完整验证

配置验证策略:
=============
- FATAL 级别错误: 始终抛出 ConfigValidationError
- ERROR 级别错误: strict=True 时抛出
- WARNING 级别: 记录警告日志
"""
from typing import Dict, Any, Optional, Union
from pathlib import Path
import copy
import logging

import yaml

from .default_config import DEFAULT_CONFIG, CONFIG_VALIDATION_RULES
from .validation import validate_full_config, ValidationSeverity
from ..core.exceptions import ConfigurationError, ConfigValidationError

logger = logging.getLogger(__name__)


def convert_param_type(value: Any, default_value: Any, key_path: str) -> Any:
    """
    将覆盖值转换为默认值的类型

    Raises:
        ConfigurationError: 无法转换或转换会丢失精度
    """
    if default_value is None or value is None:
        return value

    if isinstance(default_value, bool):
        if isinstance(value, bool):
            return value
        raise ConfigurationError(f'{key_path}: 期望布尔值，实际为 {value!r}')

    if isinstance(default_value, int):
        if isinstance(value, bool):
            raise ConfigurationError(f'{key_path}: 期望整数，实际为布尔值')
        if isinstance(value, float):
            if value != int(value):
                raise ConfigurationError(f'{key_path}: 期望整数，{value} 会丢失精度')
            return int(value)
        if isinstance(value, int):
            return value
        raise ConfigurationError(f'{key_path}: 期望整数，实际为 {type(value).__name__}')

    if isinstance(default_value, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise ConfigurationError(f'{key_path}: 期望数值，实际为 {type(value).__name__}')

    return value


def merge_overrides(config: Dict[str, Any], overrides: Dict[str, Any], prefix: str = '') -> None:
    """
    递归合并覆盖值

    遍历 overrides，只接受 config 模板中已存在的键。

    Args:
        config: 基础配置（会被原地修改）
        overrides: 覆盖值字典
        prefix: 当前路径前缀，如 'guidance.filter'
    """
    for key, value in overrides.items():
        key_path = f'{prefix}.{key}' if prefix else str(key)

        if key not in config:
            logger.warning(f"未知配置项已忽略: {key_path}")
            continue

        default = config[key]
        if isinstance(default, dict):
            if not isinstance(value, dict):
                raise ConfigurationError(f'{key_path}: 期望字典，实际为 {type(value).__name__}')
            merge_overrides(default, value, key_path)
        else:
            converted = convert_param_type(value, default, key_path)
            if converted != default:
                logger.debug(f"Parameter override: {key_path} = {converted}")
            config[key] = converted


def load_config(
    source: Optional[Union[str, Path, Dict[str, Any]]] = None,
    strict: bool = True,
) -> Dict[str, Any]:
    """
    加载配置

    Args:
        source: YAML 文件路径、已解析的覆盖字典或 None (只用默认值)
        strict: 是否在 ERROR 级别问题时抛出异常

    Returns:
        合并并验证后的配置字典 (DEFAULT_CONFIG 的深拷贝)

    Raises:
        ConfigurationError: 文件格式错误或类型不匹配
        ConfigValidationError: 验证失败
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    overrides: Dict[str, Any] = {}
    if isinstance(source, dict):
        overrides = source
    elif source is not None:
        path = Path(source)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                overrides = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f'无法读取调参文件 {path}: {e}') from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f'调参文件 {path} 格式错误: {e}') from e
        if not isinstance(overrides, dict):
            raise ConfigurationError(f'调参文件 {path} 顶层必须是字典')
        logger.info(f"已加载调参文件: {path}")

    merge_overrides(config, overrides)

    errors = validate_full_config(config, CONFIG_VALIDATION_RULES, raise_on_error=False)
    fatal = [(k, m) for k, m, s in errors if s == ValidationSeverity.FATAL]
    blocking = [(k, m) for k, m, s in errors if s == ValidationSeverity.ERROR]

    if fatal:
        msgs = '\n'.join(f'  - [FATAL] {k}: {m}' for k, m in fatal)
        raise ConfigValidationError(f'配置存在致命错误:\n{msgs}', fatal)
    if blocking:
        msgs = '\n'.join(f'  - [ERROR] {k}: {m}' for k, m in blocking)
        if strict:
            raise ConfigValidationError(f'配置验证失败:\n{msgs}', blocking)
        logger.warning(f"配置验证失败 (非严格模式，继续):\n{msgs}")

    return config


def dump_config(config: Dict[str, Any], path: Union[str, Path]) -> None:
    """将配置写出为 YAML"""
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config, f, default_flow_style=False, allow_unicode=True, sort_keys=False)


__all__ = [
    'load_config',
    'dump_config',
    'merge_overrides',
    'convert_param_type',
]
