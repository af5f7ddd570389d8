"""
自动转向导航核心 (Autosteer Core)

农机自动转向的导航计算和田块几何库，每个 GNSS 定位周期调用一次。

特性:
- 路径跟踪: Pure Pursuit / Stanley 两种控制器，支持 AB 线、曲线、闭合环和等高线
- 漂移补偿: 积分/微分滤波器，状态由调用方持有，控制器无周期间可变状态
- 掉头跟踪: 完成判定 + 委托给转向控制器
- 田块几何: 边界包含测试、作业段跨界分类、多边形偏移、电车道、导航线平移
- 旧版协议兼容: 横向偏差和转角的定点编码，失锁哨兵值 32000

坐标约定:
- 本地平面坐标 (easting, northing)，单位米
- 航向从正北顺时针测量，单位弧度

使用示例:
    from autosteer_core import (
        PurePursuitController, GuidancePath, VehiclePose, GuidanceState, load_config,
    )

    config = load_config('tuning.yaml')
    controller = PurePursuitController(config)
    path = GuidancePath.line((0.0, 0.0), (0.0, 100.0))

    state = GuidanceState()
    output = controller.compute(VehiclePose(2.0, 50.0, 0.0, speed=8.0), path, state)
    state = output.state
"""

__version__ = "1.0.0"
__author__ = "Autosteer Core Team"

from .config import DEFAULT_CONFIG, get_config_value, load_config, dump_config, validate_config
from .core.enums import (
    GuidanceStatus, PathKind, BoundaryClass, JoinStyle, TurnState, TurnStyle, SteeringAlgorithm,
)
from .core.data_types import (
    PathPoint, GuidancePath, VehiclePose, GuidanceInput, GuidanceState, GuidanceOutput,
    SectionBoundaryStatus, YouTurnOutput,
)
from .core.interfaces import ISteeringController
from .core.exceptions import (
    GuidanceError, ConfigurationError, ConfigValidationError, PathValidationError, GeometryError,
)
from .tracker import PurePursuitController, StanleyController, YouTurnTracker, SegmentLocator
from .geometry import (
    BoundaryPolygon, PolygonOffsetEngine, SpacingNormalizer, TramlineGenerator, TrackNudger,
)

__all__ = [
    # 版本
    '__version__',
    # 配置
    'DEFAULT_CONFIG', 'get_config_value', 'load_config', 'dump_config', 'validate_config',
    # 枚举
    'GuidanceStatus', 'PathKind', 'BoundaryClass', 'JoinStyle', 'TurnState', 'TurnStyle',
    'SteeringAlgorithm',
    # 数据类型
    'PathPoint', 'GuidancePath', 'VehiclePose', 'GuidanceInput', 'GuidanceState',
    'GuidanceOutput', 'SectionBoundaryStatus', 'YouTurnOutput',
    # 接口
    'ISteeringController',
    # 异常
    'GuidanceError', 'ConfigurationError', 'ConfigValidationError', 'PathValidationError',
    'GeometryError',
    # 路径跟踪
    'PurePursuitController', 'StanleyController', 'YouTurnTracker', 'SegmentLocator',
    # 几何
    'BoundaryPolygon', 'PolygonOffsetEngine', 'SpacingNormalizer', 'TramlineGenerator',
    'TrackNudger',
]
