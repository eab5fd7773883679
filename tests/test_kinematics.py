import math

import numpy as np
import pytest

from tdcr_sim.core.geometry import BasePose, ContractViolation, RobotGeometry, SegmentGeometry
from tdcr_sim.core.kinematics import (
    CURVATURE_EPSILON,
    ForwardKinematics,
    KinematicFailure,
    TDCRModel,
    arc_transform,
)


def test_forward_kinematics_is_deterministic(model):
    q = (-0.005, 0.0025)
    first = model.forward_kinematics(q)
    second = model.forward_kinematics(q)
    assert isinstance(first, ForwardKinematics)
    assert np.array_equal(first.disks, second.disks)
    assert first.bends == second.bends


def test_zero_actuation_gives_straight_backbone(model):
    result = model.forward_kinematics((0.0, 0.0))
    spacing = 0.1 / 7
    positions = result.disks[:, :3, 3]
    assert np.allclose(positions[:, :2], 0.0)
    assert np.allclose(positions[:, 2], spacing * np.arange(model.disk_count))
    for frame in result.disks:
        assert np.allclose(frame[:3, :3], np.eye(3))


def test_zero_actuation_follows_base_pose():
    base = BasePose.from_rpy(position=(0.1, -0.2, 0.3), rpy=(0.0, math.pi / 2, 0.0))
    model = TDCRModel(RobotGeometry(
        segments=(SegmentGeometry(length=0.12, disk_count=5, pitch_radius=0.006),),
        base_pose=base,
    ))
    result = model.forward_kinematics((0.0,))
    axis = base.matrix()[:3, 2]
    assert np.allclose(axis, (1.0, 0.0, 0.0))
    for i, frame in enumerate(result.disks):
        assert np.allclose(frame[:3, 3], np.array(base.position) + i * 0.03 * axis)
    assert np.allclose(result.disks[0], base.matrix())


def test_end_effector_converges_to_straight_pose(model):
    straight = model.forward_kinematics((0.0, 0.0)).end_effector
    errors = []
    for q0 in (1e-3, 1e-5, 1e-7, 1e-9, 1e-11, 1e-13):
        tip = model.forward_kinematics((q0, 0.0)).end_effector
        errors.append(np.abs(tip - straight).max())
    assert all(b <= a for a, b in zip(errors, errors[1:]))
    assert errors[-1] < 1e-12


def test_arc_transform_continuous_across_epsilon():
    s = 0.0125
    below = arc_transform(0.5 * CURVATURE_EPSILON, 0.3, s)
    above = arc_transform(2.0 * CURVATURE_EPSILON, 0.3, s)
    assert np.allclose(below, above, atol=1e-12)
    assert np.allclose(above, arc_transform(0.0, 0.0, s), atol=1e-12)


@pytest.mark.parametrize("q", [(0.0, 0.0), (-0.005, 0.0025), (0.004, 0.004), (0.001, -0.006)])
def test_frame_count_two_segments(model, q):
    result = model.forward_kinematics(q)
    assert len(result.disks) == model.disk_count == 15
    assert [len(d) for d in result.segment_disks] == [8, 8]


def test_frame_count_single_segment(single_segment_model):
    result = single_segment_model.forward_kinematics((0.002,))
    assert len(result.disks) == single_segment_model.disk_count == 6


def test_segments_share_boundary_disk(model):
    result = model.forward_kinematics((-0.005, 0.0025))
    first, second = result.segment_disks
    assert np.array_equal(second[0], first[-1])
    assert np.array_equal(result.end_effector, result.disks[-1])


def test_single_segment_matches_constant_curvature_arc(single_segment_model):
    q = 0.003
    theta = q / 0.006
    kappa = theta / 0.1
    result = single_segment_model.forward_kinematics((q,))
    tip = result.end_effector
    assert result.bends[0].kappa == pytest.approx(kappa)
    assert np.allclose(tip[:3, 3], ((1 - math.cos(theta)) / kappa, 0.0, math.sin(theta) / kappa))
    assert np.allclose(tip[:3, 2], (math.sin(theta), 0.0, math.cos(theta)))


def test_disks_are_evenly_spaced_along_arc(single_segment_model):
    result = single_segment_model.forward_kinematics((0.004,))
    kappa = result.bends[0].kappa
    step = 0.1 / 5
    chord = 2.0 * math.sin(0.5 * kappa * step) / kappa
    gaps = np.linalg.norm(np.diff(result.disks[:, :3, 3], axis=0), axis=1)
    assert np.allclose(gaps, chord)


def test_coupled_routing_subtracts_proximal_bend(model):
    theta = 0.4
    result = model.forward_kinematics((0.006 * theta, 0.005 * theta))
    assert result.bends[0].theta == pytest.approx(theta)
    assert result.bends[1].theta == pytest.approx(0.0, abs=1e-12)


def test_independent_routing(two_segment_geometry):
    geometry = RobotGeometry(segments=two_segment_geometry.segments, coupled_routing=False)
    model = TDCRModel(geometry)
    result = model.forward_kinematics((0.0024, 0.002))
    assert result.bends[0].theta == pytest.approx(0.4)
    assert result.bends[1].theta == pytest.approx(0.4)


def test_two_tendon_pairs_bend_out_of_plane():
    model = TDCRModel(RobotGeometry(
        segments=(SegmentGeometry(length=0.1, disk_count=8, pitch_radius=0.006),),
        tendons_per_segment=2,
    ))
    assert model.dof == 2
    tip = model.forward_kinematics((0.0, 0.003)).end_effector
    assert tip[1, 3] > 0.0
    assert tip[0, 3] == pytest.approx(0.0, abs=1e-12)


def test_curvature_above_limit_fails(single_segment_model):
    # min bend radius 0.02 m -> max bend angle 5 rad over 0.1 m -> q = 0.03 m
    assert isinstance(single_segment_model.forward_kinematics((0.029,)), ForwardKinematics)
    result = single_segment_model.forward_kinematics((0.031,))
    assert isinstance(result, KinematicFailure)
    assert result.segment == 0
    assert not result.ok


def test_failure_is_monotonic_in_actuation_magnitude(model):
    direction = np.array([1.0, 0.5])
    outcomes = [
        isinstance(model.forward_kinematics(tuple(c * direction)), KinematicFailure)
        for c in np.linspace(0.0, 0.08, 81)
    ]
    assert not outcomes[0]
    assert outcomes[-1]
    first_failure = outcomes.index(True)
    assert all(outcomes[first_failure:])


def test_tendon_displacement_beyond_routed_length_fails():
    model = TDCRModel(RobotGeometry(
        segments=(SegmentGeometry(length=0.1, disk_count=4, pitch_radius=0.006),),
        min_bend_radius=1e-6,
    ))
    result = model.forward_kinematics((0.15,))
    assert isinstance(result, KinematicFailure)
    assert "routed length" in result.reason


def test_non_finite_actuation_fails(model):
    assert isinstance(model.forward_kinematics((float("nan"), 0.0)), KinematicFailure)
    assert isinstance(model.forward_kinematics((0.0, float("inf"))), KinematicFailure)


def test_actuation_length_mismatch_is_contract_violation(model):
    with pytest.raises(ContractViolation):
        model.forward_kinematics((0.0,))
    with pytest.raises(ContractViolation):
        model.forward_kinematics((0.0, 0.0, 0.0))


def test_result_arrays_are_read_only(model):
    result = model.forward_kinematics((0.001, 0.0))
    with pytest.raises(ValueError):
        result.disks[0, 0, 0] = 5.0
    with pytest.raises(ValueError):
        result.segment_disks[1][0, 0, 3] = 5.0


@pytest.mark.parametrize("kwargs", [
    dict(length=0.0, disk_count=8, pitch_radius=0.006),
    dict(length=-0.1, disk_count=8, pitch_radius=0.006),
    dict(length=0.1, disk_count=1, pitch_radius=0.006),
    dict(length=0.1, disk_count=8.0, pitch_radius=0.006),
    dict(length=0.1, disk_count=8, pitch_radius=0.0),
])
def test_invalid_segment_geometry(kwargs):
    with pytest.raises(ContractViolation):
        SegmentGeometry(**kwargs)


def test_invalid_robot_geometry():
    seg = SegmentGeometry(length=0.1, disk_count=8, pitch_radius=0.006)
    with pytest.raises(ContractViolation):
        RobotGeometry(segments=())
    with pytest.raises(ContractViolation):
        RobotGeometry(segments=(seg, seg, seg))
    with pytest.raises(ContractViolation):
        RobotGeometry(segments=(seg,), tendons_per_segment=3)
    with pytest.raises(ContractViolation):
        RobotGeometry(segments=(seg,), min_bend_radius=0.0)
    with pytest.raises(ContractViolation):
        BasePose(rotation=((2.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)))
