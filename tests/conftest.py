import pytest

from geoglobe.config import GlobeConfig


class RecordingScene:
    """Scene double that remembers what it was handed."""

    def __init__(self):
        self.attached = []
        self.detached = []
        self.bases = []

    def attach(self, handle):
        self.attached.append(handle)

    def detach(self, handle):
        self.detached.append(handle)

    def add_base(self, sphere, atmosphere=None):
        self.bases.append((sphere, atmosphere))


@pytest.fixture
def scene():
    return RecordingScene()


@pytest.fixture
def config():
    # Coarser than the defaults to keep polygon builds quick
    return GlobeConfig(radius=100.0, sphere_resolution=16, ring_divisions=10,
                       tessellate_max_edge=5.0, tessellate_max_area=12.0,
                       tessellate_passes=4)
