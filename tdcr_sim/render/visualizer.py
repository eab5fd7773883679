"""Visualization of the TDCR backbone.

MujocoVisualizer draws the robot in the MuJoCo passive viewer: every disk
and every link between two disks is a mocap body, so a new pose is shown by
rewriting mocap positions and orientations. HeadlessVisualizer offers the
same interface without a window.
"""

import logging
import threading
from contextlib import nullcontext
from typing import List, Sequence

import mujoco
import numpy as np

from tdcr_sim.core.geometry import ContractViolation
from tdcr_sim.runtime.event_source import HeadlessSurface

logger = logging.getLogger(__name__)

# GLFW key codes the viewer reports, mapped to key names
_GLFW_KEYS = {
    32: "space",
    256: "Escape",
    257: "Return",
    258: "Tab",
    259: "BackSpace",
    260: "Insert",
    261: "Delete",
    262: "Right",
    263: "Left",
    264: "Down",
    265: "Up",
    266: "Prior",
    267: "Next",
    268: "Home",
    269: "End",
    330: "KP_Decimal",
    331: "KP_Divide",
    332: "KP_Multiply",
    333: "KP_Subtract",
    334: "KP_Add",
    335: "KP_Enter",
    336: "KP_Equal",
}
_GLFW_KEYS.update({290 + n: f"F{n + 1}" for n in range(12)})
_GLFW_KEYS.update({320 + n: f"KP_{n}" for n in range(10)})

# Keys the passive viewer already handles itself (digits toggle geom groups);
# scenario key bindings must stay clear of them
VIEWER_RESERVED_KEYS = frozenset(
    [chr(c) for c in range(ord("a"), ord("z") + 1)]
    + [str(d) for d in range(10)]
    + list("',-./;=[\\]`")
    + [f"F{n}" for n in range(1, 13)]
    + ["space", "Escape", "Return", "Tab", "BackSpace",
       "Right", "Left", "Up", "Down", "Prior", "Next"]
)

_SEGMENT_COLORS = ("0.85 0.55 0.2 1", "0.25 0.6 0.85 1")
_LINK_COLOR = "0.8 0.8 0.8 1"
_HOLE_COLOR = "0.1 0.1 0.1 1"


def key_name(keycode: int) -> str:
    """Translate a GLFW key code into a key name ("KP_8", "a", "1", ...)."""
    if keycode in _GLFW_KEYS:
        return _GLFW_KEYS[keycode]
    # Printable keys report their unshifted ASCII code
    if 33 <= keycode <= 126:
        return chr(keycode).lower()
    return f"key_{keycode}"


def _link_segments(disk_counts: Sequence[int]) -> List[int]:
    """Segment index of every link between consecutive disks."""
    owners = []
    for index, count in enumerate(disk_counts):
        owners.extend([index] * (count - 1))
    return owners


def build_mjcf(disk_counts, pitch_radii, disk_radius, outer_radius, disk_height,
               disk_spacings, tendons_per_segment=1, mode="a0") -> str:
    """MJCF scene with one mocap body per disk and per link."""
    n_disks = sum(disk_counts) - (len(disk_counts) - 1)
    links = _link_segments(disk_counts)
    hole_size = min(outer_radius, 0.5 * disk_radius)
    hole_angles = np.arange(2 * tendons_per_segment) * np.pi / tendons_per_segment
    extent = 2.0 * sum(s * (c - 1) for s, c in zip(disk_spacings, disk_counts))

    lines = [
        f'<mujoco model="tdcr_{mode}">',
        '  <visual><headlight ambient="0.4 0.4 0.4"/></visual>',
        '  <worldbody>',
        '    <light pos="0 0 1" dir="0 0 -1" directional="true"/>',
        f'    <geom name="floor" type="plane" pos="0 0 {-disk_height:.6g}" '
        f'size="{extent:.6g} {extent:.6g} 0.01" rgba="0.2 0.2 0.25 1" contype="0" conaffinity="0"/>',
    ]

    # Boundary disks take the proximal segment's colour
    disk_segment = [0] + links
    for d in range(n_disks):
        seg = disk_segment[d]
        lines.append(f'    <body name="disk_{d}" mocap="true">')
        lines.append(
            f'      <geom type="cylinder" size="{disk_radius:.6g} {0.5 * disk_height:.6g}" '
            f'rgba="{_SEGMENT_COLORS[seg % len(_SEGMENT_COLORS)]}" contype="0" conaffinity="0"/>'
        )
        # Tendon holes of every segment whose tendons pass this disk
        for k in range(seg, len(pitch_radii)):
            for angle in hole_angles:
                x = pitch_radii[k] * np.cos(angle)
                y = pitch_radii[k] * np.sin(angle)
                lines.append(
                    f'      <geom type="sphere" size="{hole_size:.6g}" pos="{x:.6g} {y:.6g} 0" '
                    f'rgba="{_HOLE_COLOR}" contype="0" conaffinity="0"/>'
                )
        lines.append('    </body>')

    for i, seg in enumerate(links):
        half = 0.5 * disk_spacings[seg]
        lines.append(f'    <body name="link_{i}" mocap="true">')
        lines.append(
            f'      <geom type="capsule" size="{outer_radius:.6g} {half:.6g}" '
            f'rgba="{_LINK_COLOR}" contype="0" conaffinity="0"/>'
        )
        lines.append('    </body>')

    lines += ['  </worldbody>', '</mujoco>']
    return "\n".join(lines)


class ViewerSurface:
    """Surface handle wrapping the MuJoCo passive viewer."""

    def __init__(self, model, data, lookat=(0.0, 0.0, 0.1), distance=0.5):
        # Imported here so headless runs never touch GLFW
        import mujoco.viewer

        self._subscribers = []
        self._sub_lock = threading.Lock()
        self.viewer = mujoco.viewer.launch_passive(model, data, key_callback=self._on_key)
        with self.viewer.lock():
            self.viewer.cam.lookat[:] = lookat
            self.viewer.cam.distance = distance
            self.viewer.cam.elevation = -20.0

    def _on_key(self, keycode):
        # Called on the viewer thread; subscribers only queue the key
        name = key_name(keycode)
        with self._sub_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(name)

    def subscribe_keys(self, callback):
        with self._sub_lock:
            self._subscribers.append(callback)

    def lock(self):
        return self.viewer.lock()

    def is_running(self) -> bool:
        return self.viewer.is_running()

    def sync(self):
        self.viewer.sync()

    def close(self):
        self.viewer.close()


class MujocoVisualizer:
    """Rendering collaborator backed by MuJoCo."""

    def __init__(self, disk_spacings: Sequence[float], tendons_per_segment: int = 1):
        """Initialize the visualizer.

        Args:
            disk_spacings: Arc length between disks for each segment (m)
            tendons_per_segment: Tendon pairs per segment (hole markers)
        """
        self.disk_spacings = tuple(disk_spacings)
        self.tendons_per_segment = tendons_per_segment
        self.mode = None
        self.model = None
        self.data = None
        self.disk_counts = ()
        self.n_disks = 0
        self._disk_mocap = []
        self._link_mocap = []
        self._surface = None
        self._quat = np.zeros(4)

    def init_scene(self, mode):
        self.mode = getattr(mode, "value", mode)
        logger.info("Scene initialised for scenario %s", self.mode)

    def draw_skeleton(self, disk_counts, pitch_radii, disk_radius, outer_radius, disk_height):
        """Build the scene geometry once, before the first pose update."""
        disk_counts = tuple(disk_counts)
        if len(disk_counts) != len(self.disk_spacings) or len(pitch_radii) != len(disk_counts):
            raise ContractViolation("disk_counts, pitch_radii and disk_spacings must match per segment")
        if self.model is not None:
            raise RuntimeError("skeleton already drawn")

        xml = build_mjcf(disk_counts, pitch_radii, disk_radius, outer_radius, disk_height,
                         self.disk_spacings, self.tendons_per_segment, self.mode or "a0")
        self.model = mujoco.MjModel.from_xml_string(xml)
        self.data = mujoco.MjData(self.model)
        self.disk_counts = disk_counts
        self.n_disks = sum(disk_counts) - (len(disk_counts) - 1)
        self._disk_mocap = [self._mocap_id(f"disk_{i}") for i in range(self.n_disks)]
        self._link_mocap = [self._mocap_id(f"link_{i}") for i in range(self.n_disks - 1)]
        logger.info("Skeleton drawn: %d disks, %d links", self.n_disks, self.n_disks - 1)

    def _mocap_id(self, name):
        body_id = mujoco.mj_name2id(self.model, mujoco.mjtObj.mjOBJ_BODY, name)
        if body_id == -1:
            raise ValueError(f"Body '{name}' not found")
        return int(self.model.body_mocapid[body_id])

    def update_pose(self, disks):
        """Show a new backbone pose.

        Args:
            disks: (N, 4, 4) disk frames, proximal first
        """
        if self.model is None:
            raise RuntimeError("draw_skeleton() must be called before update_pose()")
        disks = np.asarray(disks)
        if disks.shape != (self.n_disks, 4, 4):
            raise ContractViolation(f"expected {self.n_disks} disk frames, got shape {disks.shape}")

        lock = self._surface.lock() if self._surface is not None else nullcontext()
        with lock:
            for i, frame in enumerate(disks):
                mocap = self._disk_mocap[i]
                self.data.mocap_pos[mocap] = frame[:3, 3]
                mujoco.mju_mat2Quat(self._quat, np.ascontiguousarray(frame[:3, :3]).flatten())
                self.data.mocap_quat[mocap] = self._quat

            for i, mocap in enumerate(self._link_mocap):
                a = disks[i][:3, 3]
                b = disks[i + 1][:3, 3]
                chord = b - a
                self.data.mocap_pos[mocap] = 0.5 * (a + b)
                if np.linalg.norm(chord) > 0.0:
                    mujoco.mju_quatZ2Vec(self._quat, chord)
                    self.data.mocap_quat[mocap] = self._quat

            mujoco.mj_kinematics(self.model, self.data)

    def get_surface_handle(self):
        """Open the viewer window (once) and return its surface handle."""
        if self.model is None:
            raise RuntimeError("draw_skeleton() must be called before opening the viewer")
        if self._surface is None:
            height = sum(s * (c - 1) for s, c in zip(self.disk_spacings, self.disk_counts))
            self._surface = ViewerSurface(self.model, self.data,
                                          lookat=(0.0, 0.0, 0.5 * height), distance=2.5 * height)
        return self._surface


class HeadlessVisualizer:
    """Rendering collaborator without a window, for --headless runs."""

    def __init__(self, max_ticks=None):
        self.mode = None
        self.n_disks = None
        self.latest = None
        self.updates = 0
        self._surface = None
        self._max_ticks = max_ticks

    def init_scene(self, mode):
        self.mode = getattr(mode, "value", mode)

    def draw_skeleton(self, disk_counts, pitch_radii, disk_radius, outer_radius, disk_height):
        self.n_disks = sum(disk_counts) - (len(disk_counts) - 1)

    def update_pose(self, disks):
        if self.n_disks is not None and len(disks) != self.n_disks:
            raise ContractViolation(f"expected {self.n_disks} disk frames, got {len(disks)}")
        self.latest = disks
        self.updates += 1
        logger.debug("End effector at %s", np.round(disks[-1][:3, 3], 5))

    def get_surface_handle(self):
        if self._surface is None:
            self._surface = HeadlessSurface(self._max_ticks)
        return self._surface
