import logging

import pytest

from tdcr_sim.core.geometry import RobotGeometry, SegmentGeometry
from tdcr_sim.core.kinematics import TDCRModel


class RecordingVisualizer:
    """Rendering collaborator that only records the poses it is given."""

    def __init__(self):
        self.poses = []

    def update_pose(self, disks):
        self.poses.append(disks)


@pytest.fixture
def two_segment_geometry():
    return RobotGeometry(
        segments=(
            SegmentGeometry(length=0.1, disk_count=8, pitch_radius=0.006),
            SegmentGeometry(length=0.1, disk_count=8, pitch_radius=0.005),
        ),
    )


@pytest.fixture
def model(two_segment_geometry):
    return TDCRModel(two_segment_geometry)


@pytest.fixture
def single_segment_model():
    return TDCRModel(RobotGeometry(
        segments=(SegmentGeometry(length=0.1, disk_count=6, pitch_radius=0.006),),
    ))


@pytest.fixture
def visualizer():
    return RecordingVisualizer()


@pytest.fixture
def package_logger():
    """The 'tdcr_sim' logger, stripped of handlers installed during the test."""
    logger = logging.getLogger("tdcr_sim")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
