"""
核心模块测试

验证:
1. 角度归一化和航向误差折叠
2. 平面几何基础函数
3. 执行器定点数编码
4. 路径和输出数据类型
5. 节流日志
"""
import numpy as np
import pytest
import sys
import os
from unittest.mock import MagicMock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from autosteer_core.core.constants import (
    normalize_angle, normalize_heading, fold_heading_error, heading_difference, LOST_LOCK_VALUE,
)
from autosteer_core.core.geometry_math import (
    cross_track_error, project_unclamped, signed_area, compute_headings, offset_perpendicular,
    segment_heading,
)
from autosteer_core.core.wire import (
    round_half_away_from_zero, encode_distance_mm, encode_steer_angle,
)
from autosteer_core.core.data_types import (
    GuidancePath, GuidanceOutput, GuidanceState, VehiclePose,
)
from autosteer_core.core.enums import GuidanceStatus, PathKind
from autosteer_core.core.exceptions import PathValidationError
from autosteer_core.core.validators import ensure_point_array
from autosteer_core.core.logging_config import ThrottledLogger


# =============================================================================
# 角度
# =============================================================================

def test_normalize_angle():
    """测试角度归一化到 [-π, π]"""
    assert abs(abs(normalize_angle(3 * np.pi)) - np.pi) < 1e-9
    assert abs(normalize_angle(2 * np.pi + 0.3) - 0.3) < 1e-9
    assert abs(normalize_heading(-0.5) - (2 * np.pi - 0.5)) < 1e-9
    print("✓ test_normalize_angle passed")


def test_fold_heading_error():
    """测试航向误差折叠到 [-π/2, π/2]"""
    assert abs(fold_heading_error(0.75 * np.pi) - (-0.25 * np.pi)) < 1e-9
    assert abs(fold_heading_error(-0.75 * np.pi) - 0.25 * np.pi) < 1e-9
    assert abs(fold_heading_error(0.2) - 0.2) < 1e-9
    # 跨 0/2π 的小误差
    assert abs(fold_heading_error(2 * np.pi - 0.1) - (-0.1)) < 1e-9
    print("✓ test_fold_heading_error passed")


def test_heading_difference():
    """测试无符号航向差"""
    assert abs(heading_difference(0.1, 2 * np.pi - 0.1) - 0.2) < 1e-9
    assert abs(heading_difference(0.0, np.pi) - np.pi) < 1e-9
    print("✓ test_heading_difference passed")


# =============================================================================
# 几何
# =============================================================================

def test_cross_track_error_sign():
    """测试横向误差在 A→B 右侧为正"""
    xte, len_sq = cross_track_error(0.0, 0.0, 0.0, 100.0, 2.0, 50.0)
    assert abs(xte - 2.0) < 1e-9
    assert abs(len_sq - 10000.0) < 1e-9

    xte, _ = cross_track_error(0.0, 0.0, 0.0, 100.0, -3.0, 10.0)
    assert abs(xte + 3.0) < 1e-9
    print("✓ test_cross_track_error_sign passed")


def test_cross_track_error_degenerate():
    """测试零长度线段"""
    xte, len_sq = cross_track_error(1.0, 1.0, 1.0, 1.0, 5.0, 5.0)
    assert xte == 0.0
    assert len_sq < 1e-10
    print("✓ test_cross_track_error_degenerate passed")


def test_project_unclamped():
    """测试投影参数不限制在 [0, 1]"""
    u, ce, cn = project_unclamped(0.0, 0.0, 0.0, 10.0, 1.0, 15.0)
    assert abs(u - 1.5) < 1e-9
    assert abs(ce) < 1e-9 and abs(cn - 15.0) < 1e-9
    print("✓ test_project_unclamped passed")


def test_signed_area_and_headings():
    """测试鞋带面积和差分航向"""
    square = np.array([[0.0, 0.0], [100.0, 0.0], [100.0, 100.0], [0.0, 100.0]])
    assert abs(signed_area(square) - 10000.0) < 1e-9
    assert abs(signed_area(square[::-1]) + 10000.0) < 1e-9

    east = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])
    headings = compute_headings(east)
    assert np.allclose(headings, np.pi / 2)
    assert abs(segment_heading(0.0, 0.0, 0.0, -1.0) - np.pi) < 1e-9
    print("✓ test_signed_area_and_headings passed")


def test_offset_perpendicular_right():
    """测试法向偏移正值向右"""
    e, n = offset_perpendicular(0.0, 0.0, 0.0, 2.0)
    assert abs(e - 2.0) < 1e-9 and abs(n) < 1e-9
    print("✓ test_offset_perpendicular_right passed")


# =============================================================================
# 定点数编码
# =============================================================================

def test_round_half_away_from_zero():
    """测试 0.5 远离零取整"""
    assert round_half_away_from_zero(2.5) == 3.0
    assert round_half_away_from_zero(-2.5) == -3.0
    assert round_half_away_from_zero(0.4) == 0.0
    assert round_half_away_from_zero(-0.4) == 0.0
    print("✓ test_round_half_away_from_zero passed")


def test_encode_distance_mm():
    """测试横向偏差毫米编码与限幅"""
    assert encode_distance_mm(0.1234) == 123
    assert encode_distance_mm(-0.1236) == -124
    assert encode_distance_mm(100.0) == 32767
    assert encode_distance_mm(-100.0) == -32768
    assert encode_distance_mm(float('nan')) == LOST_LOCK_VALUE
    print("✓ test_encode_distance_mm passed")


def test_encode_steer_angle_truncates():
    """测试转角 × 100 向零截断"""
    assert encode_steer_angle(12.349) == 1234
    assert encode_steer_angle(-12.349) == -1234
    assert encode_steer_angle(float('inf')) == LOST_LOCK_VALUE
    print("✓ test_encode_steer_angle_truncates passed")


def test_invalid_output_uses_sentinel():
    """测试无效输出的线路值为 32000"""
    out = GuidanceOutput.invalid(GuidanceStatus.LOST_LOCK, GuidanceState())
    assert not out.is_valid
    assert out.find_global
    assert out.wire_distance_off == 32000
    assert out.wire_steer_angle == 32000

    valid = GuidanceOutput(status=GuidanceStatus.VALID, cross_track_error=0.05,
                           steer_angle_deg=-3.25)
    assert valid.wire_distance_off == 50
    assert valid.wire_steer_angle == -325
    print("✓ test_invalid_output_uses_sentinel passed")


# =============================================================================
# 数据类型
# =============================================================================

def test_guidance_path_kinds():
    """测试路径类型推导"""
    line = GuidancePath.line((0.0, 0.0), (0.0, 100.0))
    assert line.kind == PathKind.LINE
    assert np.allclose(line.headings, 0.0)

    curve = GuidancePath.from_xy([[0.0, 0.0], [1.0, 1.0], [2.0, 1.5]])
    assert curve.kind == PathKind.CURVE
    assert len(curve) == 3

    loop = GuidancePath.from_xy([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]], closed=True)
    assert loop.kind == PathKind.LOOP

    empty = GuidancePath(np.zeros((0, 2)))
    assert empty.is_empty
    print("✓ test_guidance_path_kinds passed")


def test_guidance_path_read_only():
    """测试路径点数组只读"""
    path = GuidancePath.from_xy([[0.0, 0.0], [1.0, 1.0], [2.0, 1.5]])
    with pytest.raises(ValueError):
        path.points[0, 0] = 5.0
    point = path[1]
    assert point.easting == 1.0 and point.northing == 1.0
    print("✓ test_guidance_path_read_only passed")


def test_point_array_validation():
    """测试点数组契约检查"""
    with pytest.raises(PathValidationError):
        ensure_point_array([[0.0, 0.0, 0.0, 0.0]])
    with pytest.raises(PathValidationError):
        ensure_point_array([[0.0, float('nan')]])
    with pytest.raises(PathValidationError):
        ensure_point_array([[0.0, 0.0]], min_points=3)
    with pytest.raises(PathValidationError):
        GuidancePath([[0.0, float('inf')], [1.0, 1.0]])

    arr = ensure_point_array([(1, 2), (3, 4)])
    assert arr.dtype == np.float64 and arr.shape == (2, 2)
    print("✓ test_point_array_validation passed")


def test_vehicle_pose_steer_position():
    """测试转向轴位置与横滚可用性"""
    pose = VehiclePose(10.0, 20.0, np.pi / 2, roll=88888)
    e, n = pose.steer_position(3.0)
    assert abs(e - 13.0) < 1e-9 and abs(n - 20.0) < 1e-9
    assert not pose.has_roll
    assert VehiclePose(0.0, 0.0, 0.0, roll=2.0).has_roll
    print("✓ test_vehicle_pose_steer_position passed")


# =============================================================================
# 日志
# =============================================================================

def test_throttled_logger():
    """测试节流日志同一 key 只记录一次"""
    mock_logger = MagicMock()
    throttled = ThrottledLogger(mock_logger, min_interval=60.0)

    throttled.warning("lost", key='lost')
    throttled.warning("lost", key='lost')
    throttled.warning("lost", key='lost')
    assert mock_logger.warning.call_count == 1
    assert throttled.suppressed_count('lost') == 2

    throttled.warning("other", key='other')
    assert mock_logger.warning.call_count == 2

    throttled.reset('lost')
    assert throttled.suppressed_count('lost') == 0
    throttled.warning("lost", key='lost')
    assert mock_logger.warning.call_count == 3
    mock_logger.warning.assert_called_with("lost")

    # 不带 key 不节流
    throttled.info("a")
    throttled.info("a")
    assert mock_logger.info.call_count == 2
    print("✓ test_throttled_logger passed")
