"""
自定义异常类

本模块定义了导航核心使用的自定义异常类。

异常层次结构:
=============

GuidanceError (基类)
├── ConfigurationError
│   └── ConfigValidationError
├── PathValidationError
└── GeometryError

使用指南:
=========

1. 配置错误 (ConfigurationError)
   - 在加载调参文件或构造控制器时抛出
   - 示例：轴距为负、YAML 顶层不是字典

2. 路径验证错误 (PathValidationError)
   - 在公共入口构造路径或边界时抛出
   - 示例：点数组形状错误、包含 NaN

3. 几何错误 (GeometryError)
   - 几何运算参数非法时抛出
   - 示例：作业宽度非正、开放线偏移方向不是 left/right
   - 偏移塌缩不抛出异常，返回空数组

注意:
=====

- 控制循环中的几何退化 (失锁、零长度线段、路径走完) 不抛出异常，
  而是通过 GuidanceStatus 返回
- 异常主要用于输入契约违反和配置错误
"""


class GuidanceError(Exception):
    """导航核心错误基类"""
    pass


# =============================================================================
# 配置错误
# =============================================================================

class ConfigurationError(GuidanceError):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigurationError):
    """
    配置验证错误

    当配置参数不满足验证规则时抛出。

    Attributes:
        errors: 错误列表，每个元素为 (key_path, error_message)
    """

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = errors or []


# =============================================================================
# 输入错误
# =============================================================================

class PathValidationError(GuidanceError):
    """
    路径验证错误

    当路径或边界点数组不满足调用契约时抛出。
    """
    pass


# =============================================================================
# 几何错误
# =============================================================================

class GeometryError(GuidanceError):
    """
    几何运算错误

    当几何运算的参数非法时抛出。
    """
    pass


# =============================================================================
# 导出列表
# =============================================================================

__all__ = [
    'GuidanceError',
    'ConfigurationError',
    'ConfigValidationError',
    'PathValidationError',
    'GeometryError',
]
