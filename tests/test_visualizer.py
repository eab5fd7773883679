import numpy as np
import pytest

from tdcr_sim.core.geometry import ContractViolation
from tdcr_sim.core.scenario import MODE_KEY, PAUSE_KEY, RESET_KEY, ScenarioMode, key_bindings
from tdcr_sim.render.visualizer import (
    VIEWER_RESERVED_KEYS,
    HeadlessVisualizer,
    MujocoVisualizer,
    key_name,
)


@pytest.fixture
def mujoco_vis(model):
    vis = MujocoVisualizer([seg.disk_spacing for seg in model.geometry.segments])
    vis.init_scene("a4")
    vis.draw_skeleton([8, 8], (0.006, 0.005), 0.007, 0.001, 0.003)
    return vis


@pytest.mark.parametrize("code, name", [(265, "Up"), (266, "Prior"), (65, "a"), (49, "1"),
                                        (44, ","), (290, "F1"), (320, "KP_0"), (328, "KP_8"),
                                        (334, "KP_Add"), (335, "KP_Enter"), (260, "Insert"),
                                        (999, "key_999")])
def test_key_name(code, name):
    assert key_name(code) == name


@pytest.mark.parametrize("mode", list(ScenarioMode))
def test_bindings_avoid_viewer_shortcuts(mode):
    keyboard = {key_name(code) for code in range(512)}
    keys = set(key_bindings(mode, 4)) | {PAUSE_KEY, MODE_KEY, RESET_KEY}

    assert not keys & VIEWER_RESERVED_KEYS
    # Everything except the gamepad d-pad can be typed in the viewer window
    assert {k for k in keys if not k.startswith("DPad_")} <= keyboard


def test_skeleton_has_mocap_body_per_disk_and_link(mujoco_vis):
    assert mujoco_vis.n_disks == 15
    assert mujoco_vis.model.nmocap == 15 + 14
    assert mujoco_vis.model.nq == 0


def test_update_pose_moves_disks(mujoco_vis, model):
    result = model.forward_kinematics((-0.005, 0.0025))
    mujoco_vis.update_pose(result.disks)

    data = mujoco_vis.data
    for i, frame in enumerate(result.disks):
        body = mujoco_vis.model.body(f"disk_{i}")
        assert np.allclose(data.xpos[body.id], frame[:3, 3])
        assert np.allclose(data.xmat[body.id].reshape(3, 3), frame[:3, :3], atol=1e-9)

    link = mujoco_vis.model.body("link_3")
    midpoint = 0.5 * (result.disks[3][:3, 3] + result.disks[4][:3, 3])
    chord = result.disks[4][:3, 3] - result.disks[3][:3, 3]
    assert np.allclose(data.xpos[link.id], midpoint)
    assert np.allclose(data.xmat[link.id].reshape(3, 3)[:, 2], chord / np.linalg.norm(chord))


def test_update_pose_rejects_wrong_disk_count(mujoco_vis, single_segment_model):
    result = single_segment_model.forward_kinematics((0.0,))
    with pytest.raises(ContractViolation):
        mujoco_vis.update_pose(result.disks)


def test_update_pose_requires_skeleton(model):
    vis = MujocoVisualizer([0.1 / 7, 0.1 / 7])
    with pytest.raises(RuntimeError):
        vis.update_pose(model.forward_kinematics((0.0, 0.0)).disks)


def test_skeleton_drawn_once(mujoco_vis):
    with pytest.raises(RuntimeError):
        mujoco_vis.draw_skeleton([8, 8], (0.006, 0.005), 0.007, 0.001, 0.003)


def test_headless_visualizer(model):
    vis = HeadlessVisualizer(max_ticks=2)
    vis.init_scene("a0")
    vis.draw_skeleton([8, 8], (0.006, 0.005), 0.007, 0.001, 0.003)
    disks = model.forward_kinematics((0.001, 0.0)).disks
    vis.update_pose(disks)
    assert vis.updates == 1
    assert vis.latest is disks
    assert vis.get_surface_handle() is vis.get_surface_handle()
    assert vis.get_surface_handle().max_ticks == 2
