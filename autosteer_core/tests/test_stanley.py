"""
Stanley 控制器测试
"""
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from autosteer_core.core.data_types import GuidancePath, GuidanceInput, GuidanceState
from autosteer_core.core.enums import GuidanceStatus, SteeringAlgorithm
from autosteer_core.tracker.stanley import StanleyController, damped_speed, attenuate
from autosteer_core.tests.fixtures import north_curve, make_pose


NORTH_LINE = GuidancePath.line((0.0, 0.0), (0.0, 100.0))


def _expected_steer(heading_error: float, xte_steer: float, speed: float = 8.0,
                    distance_gain: float = 0.8) -> float:
    steer = -np.degrees(heading_error + np.arctan(xte_steer * distance_gain / damped_speed(speed)))
    return attenuate(steer, xte_steer, 0.5)


def test_damped_speed():
    """测试速度阻尼"""
    assert damped_speed(0.5) == 1.0
    assert damped_speed(1.0) == 1.0
    assert abs(damped_speed(8.0) - (1.0 + 0.277 * 7.0)) < 1e-12
    assert damped_speed(-8.0) == damped_speed(8.0)
    print("✓ test_damped_speed passed")


def test_attenuate():
    """测试大横向误差时转角减半"""
    assert attenuate(10.0, 0.6, 0.5) == 5.0
    assert abs(attenuate(10.0, -0.2, 0.5) - 8.0) < 1e-12
    assert attenuate(10.0, 0.0, 0.5) == 10.0
    print("✓ test_attenuate passed")


def test_on_line_zero_steer():
    """测试在线上且航向一致时转角为零"""
    controller = StanleyController()
    out = controller.compute(make_pose(0.0, 50.0), NORTH_LINE, GuidanceState())
    assert out.is_valid
    assert abs(out.steer_angle_deg) < 1e-9
    assert abs(out.cross_track_error) < 1e-9
    assert abs(out.heading_error_deg) < 1e-9
    print("✓ test_on_line_zero_steer passed")


def test_right_offset_steers_left():
    """测试右侧偏离时转角为负"""
    controller = StanleyController()
    out = controller.compute(make_pose(0.3, 50.0), NORTH_LINE, GuidanceState())
    assert out.is_valid
    assert abs(out.cross_track_error - 0.3) < 1e-9
    assert out.steer_angle_deg < 0
    assert abs(out.steer_angle_deg - _expected_steer(0.0, 0.3)) < 1e-9
    assert np.allclose(out.closest_point, (0.0, 50.0))

    # 超过衰减阈值时转角减半
    out = controller.compute(make_pose(2.0, 50.0), NORTH_LINE, GuidanceState())
    assert abs(out.steer_angle_deg - _expected_steer(0.0, 2.0)) < 1e-9
    print("✓ test_right_offset_steers_left passed")


def test_heading_error_term():
    """测试航向误差项"""
    controller = StanleyController()
    pose = make_pose(0.0, 50.0, heading=0.1)
    out = controller.compute(pose, NORTH_LINE, GuidanceState())

    xte_steer = 3.3 * np.sin(0.1)
    assert abs(out.heading_error_deg - np.degrees(0.1)) < 1e-9
    assert abs(out.steer_angle_deg - _expected_steer(0.1, xte_steer)) < 1e-9
    assert out.steer_angle_deg < 0
    print("✓ test_heading_error_term passed")


def test_opposite_direction():
    """测试反向行驶时线段端点交换，转角方向相对行驶方向"""
    controller = StanleyController()
    out = controller.compute(make_pose(0.3, 50.0, heading=np.pi), NORTH_LINE, GuidanceState())
    assert out.is_valid
    assert not out.is_heading_same_way
    # 朝南行驶时线在右侧
    assert abs(out.cross_track_error + 0.3) < 1e-9
    assert out.steer_angle_deg > 0
    assert abs(out.steer_angle_deg - _expected_steer(0.0, -0.3)) < 1e-9
    print("✓ test_opposite_direction passed")


def test_virtual_offset_line():
    """测试积分把参考线平移到车辆所在位置"""
    controller = StanleyController()
    out = controller.compute(make_pose(0.3, 50.0), NORTH_LINE, GuidanceState(integral=0.3))
    assert abs(out.steer_angle_deg) < 1e-9
    # 横向误差仍相对原始线段
    assert abs(out.cross_track_error - 0.3) < 1e-9
    print("✓ test_virtual_offset_line passed")


def test_integral_update_and_reverse():
    """测试积分由枢轴横向误差驱动，倒车时清零"""
    controller = StanleyController()
    out = controller.compute(make_pose(0.3, 50.0), NORTH_LINE, GuidanceState(), integral_gain=1.0)
    assert abs(out.state.distance_error - 0.06) < 1e-12
    assert abs(out.state.integral - (-0.0012)) < 1e-12

    out = controller.compute(make_pose(0.3, 50.0), NORTH_LINE, GuidanceState(integral=0.5),
                             GuidanceInput(is_reverse=True), integral_gain=1.0)
    assert out.is_valid
    assert out.state.integral == 0.0
    print("✓ test_integral_update_and_reverse passed")


def test_curve_matches_line():
    """测试直曲线与 AB 线结果一致"""
    controller = StanleyController()
    curve = GuidancePath.from_xy(north_curve(100.0, 1.0))
    pose = make_pose(0.3, 50.4)

    out_curve = controller.compute(pose, curve, GuidanceState())
    out_line = controller.compute(pose, NORTH_LINE, GuidanceState())
    assert out_curve.is_valid
    assert abs(out_curve.steer_angle_deg - out_line.steer_angle_deg) < 1e-9
    assert abs(out_curve.cross_track_error - 0.3) < 1e-9
    assert out_curve.current_index == 50
    print("✓ test_curve_matches_line passed")


def test_curve_needs_min_points():
    """测试曲线点数不足时失锁"""
    controller = StanleyController()
    short = GuidancePath.from_xy(north_curve(4.0, 1.0))
    out = controller.compute(make_pose(0.0, 2.0), short, GuidanceState())
    assert out.status == GuidanceStatus.LOST_LOCK
    assert out.find_global
    print("✓ test_curve_needs_min_points passed")


def test_degenerate_line():
    """测试零长度 AB 线"""
    controller = StanleyController()
    out = controller.compute(make_pose(1.0, 1.0), GuidancePath.line((0.0, 0.0), (0.0, 0.0)),
                             GuidanceState())
    assert out.status == GuidanceStatus.SEGMENT_DEGENERATE
    assert out.wire_steer_angle == 32000
    print("✓ test_degenerate_line passed")


def test_clamp():
    """测试转角限幅"""
    controller = StanleyController()
    out = controller.compute(make_pose(0.0, 50.0, heading=1.2), NORTH_LINE, GuidanceState())
    assert out.steer_angle_deg == -30.0
    assert controller.algorithm == SteeringAlgorithm.STANLEY
    assert controller.get_parameters()['gains']['clamp'] == 2.0
    print("✓ test_clamp passed")
