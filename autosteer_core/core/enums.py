"""枚举定义"""
from enum import IntEnum


class GuidanceStatus(IntEnum):
    """导航计算结果状态"""
    VALID = 0
    SEGMENT_DEGENERATE = 1   # 线段长度为零或除数过小
    TRACK_EXHAUSTED = 2      # 开放路径已走完
    LOST_LOCK = 3            # 路径为空/点数不足/等高线失锁

    def is_valid(self) -> bool:
        return self == GuidanceStatus.VALID


class PathKind(IntEnum):
    """路径类型，由点数和闭合性推导"""
    LINE = 0     # 两点直线 (无限延伸)
    CURVE = 1    # 开放曲线
    LOOP = 2     # 闭合环


class BoundaryClass(IntEnum):
    """作业段相对边界的分类"""
    FULLY_INSIDE = 0
    FULLY_OUTSIDE = 1
    CROSSING = 2


class JoinStyle(IntEnum):
    """偏移拐角连接方式"""
    ROUND = 0
    MITRE = 1
    SQUARE = 2
    BEVEL = 3


class TurnState(IntEnum):
    """掉头跟踪状态"""
    FOLLOWING = 0
    COMPLETE = 1


class TurnStyle(IntEnum):
    """掉头方式"""
    STANDARD = 0
    K_TURN = 1


class SteeringAlgorithm(IntEnum):
    """转向算法"""
    PURE_PURSUIT = 0
    STANLEY = 1
