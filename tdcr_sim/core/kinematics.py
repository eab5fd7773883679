"""Forward kinematics for tendon-driven continuum robots.

The model maps a tendon actuation vector to the pose of every disk along the
backbone. The mapping from tendon displacements to segment bending is a
pluggable law; the default is piecewise constant curvature.

Disk poses are composed disk by disk: each segment is cut into equal arc
length steps and every disk's transform is the previous disk's transform
times the constant-curvature step transform. The distal disk of one segment
is the base of the next.
"""

import math
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np

from tdcr_sim.core.geometry import ContractViolation, RobotGeometry

# Below this curvature (1/m) a segment is treated as straight
CURVATURE_EPSILON = 1e-9


@dataclass(frozen=True)
class SegmentBend:
    """Bending state of a single constant-curvature segment."""
    kappa: float  # Curvature (1/m)
    phi: float  # Bending plane angle about the segment base z axis (rad)
    theta: float  # Total bending angle (rad)


@dataclass(frozen=True)
class KinematicFailure:
    """No valid pose exists for the requested actuation."""
    reason: str
    segment: Optional[int] = None

    ok = False

    def __str__(self):
        if self.segment is None:
            return self.reason
        return f"segment {self.segment}: {self.reason}"


@dataclass(frozen=True)
class ForwardKinematics:
    """Result of a successful forward kinematics evaluation.

    All arrays are read-only; a new result is built on every call.
    """
    disks: np.ndarray  # (N, 4, 4) disk frames, proximal first
    segment_disks: Tuple[np.ndarray, ...]  # Per-segment (n_k, 4, 4) views, boundary disks shared
    bends: Tuple[SegmentBend, ...]

    ok = True

    @property
    def end_effector(self) -> np.ndarray:
        return self.disks[-1]


class BendingLaw(Protocol):
    """Maps an actuation vector to per-segment bending.

    Implementations must be pure: the same geometry and actuation always give
    the same result.
    """

    def segment_bends(self, geometry: RobotGeometry, q: Sequence[float]) -> Tuple[SegmentBend, ...]:
        ...


class ConstantCurvatureLaw:
    """Piecewise constant curvature law for tendons routed from the base.

    A tendon at pitch radius r pulled by q bends the backbone it passes
    through by q / r in the direction of the tendon. With coupled routing,
    the tendons of segment k run through all proximal segments, so the bend
    seen at segment k is what is left after the proximal segments took
    their share.
    """

    def __init__(self, coupled: bool = True):
        self.coupled = coupled

    def segment_bends(self, geometry, q):
        bends = []
        upstream = np.zeros(2)
        for segment, q_seg in zip(geometry.segments, geometry.split_actuation(q)):
            # Tendon 0 sits on +x, tendon 1 (if any) on +y of the segment frame
            total = np.zeros(2)
            total[:len(q_seg)] = np.asarray(q_seg, dtype=float) / segment.pitch_radius
            own = total - upstream if self.coupled else total
            if self.coupled:
                upstream = upstream + own
            theta = math.hypot(own[0], own[1])
            phi = math.atan2(own[1], own[0]) if theta > 0.0 else 0.0
            bends.append(SegmentBend(kappa=theta / segment.length, phi=phi, theta=theta))
        return tuple(bends)


def arc_transform(kappa: float, phi: float, s: float) -> np.ndarray:
    """Homogeneous transform along a constant-curvature arc of length ``s``.

    The arc bends in the plane at angle ``phi`` about the local z axis,
    i.e. T = Rz(phi) * [Ry(kappa s), p] * Rz(-phi).
    """
    T = np.eye(4)
    if abs(kappa) < CURVATURE_EPSILON:
        # Straight segment (closed-form limit)
        T[2, 3] = s
        return T

    angle = kappa * s
    c = math.cos(angle)
    sn = math.sin(angle)
    # 1 - cos(angle), written to stay accurate for small angles
    versine = 2.0 * math.sin(0.5 * angle) ** 2
    c_phi = math.cos(phi)
    s_phi = math.sin(phi)

    T[0, 0] = 1.0 - c_phi ** 2 * versine
    T[0, 1] = -c_phi * s_phi * versine
    T[0, 2] = c_phi * sn
    T[1, 0] = -c_phi * s_phi * versine
    T[1, 1] = 1.0 - s_phi ** 2 * versine
    T[1, 2] = s_phi * sn
    T[2, 0] = -c_phi * sn
    T[2, 1] = -s_phi * sn
    T[2, 2] = c

    T[0, 3] = c_phi * versine / kappa
    T[1, 3] = s_phi * versine / kappa
    T[2, 3] = sn / kappa
    return T


def _freeze(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class TDCRModel:
    """Forward kinematics model of a one- or two-segment TDCR.

    The model holds only immutable geometry and a stateless bending law,
    so it can be shared freely and every call is deterministic.
    """

    def __init__(self, geometry: RobotGeometry, law: Optional[BendingLaw] = None):
        """Initialize the model.

        Args:
            geometry: RobotGeometry describing segments and base pose
            law: Bending law; defaults to ConstantCurvatureLaw using the
                geometry's routing setting
        """
        if not isinstance(geometry, RobotGeometry):
            raise ContractViolation("TDCRModel needs a RobotGeometry")
        self.geometry = geometry
        self.law = law if law is not None else ConstantCurvatureLaw(geometry.coupled_routing)
        self._base = _freeze(geometry.base_pose.matrix())

    @property
    def dof(self) -> int:
        return self.geometry.dof

    @property
    def disk_count(self) -> int:
        return self.geometry.disk_count

    def _check_limits(self, q, bends) -> Optional[KinematicFailure]:
        """Return a failure if the actuation is not physically realizable."""
        for index, q_seg in enumerate(self.geometry.split_actuation(q)):
            limit = self.geometry.routed_length(index)
            for value in q_seg:
                if abs(value) > limit:
                    return KinematicFailure(
                        f"tendon displacement {value:.6g} m exceeds routed length {limit:.6g} m",
                        segment=index,
                    )

        kappa_max = self.geometry.max_curvature
        for index, bend in enumerate(bends):
            if bend.kappa > kappa_max:
                return KinematicFailure(
                    f"bending radius {1.0 / bend.kappa:.6g} m below minimum "
                    f"{self.geometry.min_bend_radius:.6g} m",
                    segment=index,
                )
        return None

    def forward_kinematics(self, q: Sequence[float]):
        """Compute all disk frames for the actuation vector ``q``.

        Args:
            q: Tendon displacements, ``tendons_per_segment`` per segment (m)

        Returns:
            ForwardKinematics on success, KinematicFailure when no valid pose
            exists for ``q``

        Raises:
            ContractViolation: if ``len(q)`` does not match ``self.dof``
        """
        q = tuple(float(v) for v in q)
        if len(q) != self.dof:
            raise ContractViolation(f"expected {self.dof} actuation values, got {len(q)}")
        if not all(math.isfinite(v) for v in q):
            return KinematicFailure("actuation contains non-finite values")

        bends = tuple(self.law.segment_bends(self.geometry, q))
        failure = self._check_limits(q, bends)
        if failure is not None:
            return failure

        frames = [self._base.copy()]
        bounds = []
        for segment, bend in zip(self.geometry.segments, bends):
            start = len(frames) - 1
            step = arc_transform(bend.kappa, bend.phi, segment.disk_spacing)
            for _ in range(segment.disk_count - 1):
                frames.append(frames[-1] @ step)
            bounds.append((start, len(frames)))

        disks = _freeze(np.stack(frames))
        segment_disks = tuple(disks[a:b] for a, b in bounds)
        return ForwardKinematics(disks=disks, segment_disks=segment_disks, bends=bends)
