import numpy as np
import matplotlib.pyplot as plt

from tdcr_sim.config.config import TDCRConfig
from tdcr_sim.core.kinematics import KinematicFailure, TDCRModel

cfg = TDCRConfig("config/tdcr.yaml")
model = TDCRModel(cfg.build_geometry())

# 扫描第一个驱动量，其余保持为 0
q_max = 0.006
sweep = np.linspace(-q_max, q_max, 9)

fig = plt.figure(figsize=(8, 8))
ax = fig.add_subplot(projection="3d")

for q0 in sweep:
    q = np.zeros(model.dof)
    q[0] = q0
    result = model.forward_kinematics(q)
    if isinstance(result, KinematicFailure):
        print(f"q0={q0:+.4f}: {result}")
        continue
    pts = result.disks[:, :3, 3]
    line, = ax.plot(pts[:, 0], pts[:, 1], pts[:, 2], marker="o", ms=3, label=f"q0={q0:+.4f}")
    ax.quiver(*pts[-1], *result.end_effector[:3, 2] * 0.02, color=line.get_color())

ax.set_xlabel("x (m)")
ax.set_ylabel("y (m)")
ax.set_zlabel("z (m)")
ax.set_box_aspect((1, 1, 1))
lim = sum(seg.length for seg in cfg.robot.segments)
ax.set_xlim(-lim, lim)
ax.set_ylim(-lim, lim)
ax.set_zlim(0, lim)
ax.legend(fontsize=7)
plt.show()
