import pytest
import taichi as ti

from mpmfluid.config.base_config import Config
from mpmfluid.fluid_env import init_taichi


@pytest.fixture(scope="session", autouse=True)
def taichi_runtime():
    # CPU + float64 keeps the serialized transfers bitwise reproducible
    init_taichi(Config(arch="cpu", dtype="float64"), random_seed=0)
    yield
    ti.reset()
