import pytest

from mpmfluid.config.base_config import Config, load_config, taichi_arch, taichi_dtype


def test_defaults():
    cfg = Config()
    assert cfg.grid_resolution == 64
    assert cfg.rest_density == 4.0
    assert cfg.eos_stiffness == 10.0
    assert cfg.eos_power == 4.0
    assert cfg.dynamic_viscosity == 0.1
    assert cfg.time_step == 0.2
    assert cfg.gravity == (0.0, -0.3)
    assert cfg.center == (32.0, 32.0)
    assert cfg.validate() is cfg


def test_explicit_seed_center():
    assert Config(seed_center=(20, 30)).center == (20.0, 30.0)


@pytest.mark.parametrize("overrides", [
    {"grid_resolution": 4},
    {"n_particles": 0},
    {"dtype": "float16"},
    {"arch": "tpu"},
    {"time_step": 0.0},
    {"substeps": 0},
    {"gravity": (0.0, -1.0, 0.0)},
    {"rest_density": 0.0},
    {"density_epsilon": 0.0},
    {"particle_mass": -1.0},
    {"seed_spacing": 0.0},
    {"seed_center": (1.0,)},
])
def test_validate_rejects(overrides):
    with pytest.raises(ValueError):
        Config(**overrides).validate()


def test_load_config_from_yaml_and_opts(tmp_path):
    path = tmp_path / "scene.yaml"
    path.write_text(
        "grid_resolution: 32\n"
        "gravity: [0.0, -1.0]\n"
        "eos_stiffness: 5.0\n"
    )
    cfg = load_config(str(path), ["substeps", "2", "record_path", "out.gif"])

    assert cfg.grid_resolution == 32
    assert cfg.gravity == (0.0, -1.0)
    assert cfg.eos_stiffness == 5.0
    assert cfg.substeps == 2
    assert cfg.record_path == "out.gif"
    # untouched keys keep their defaults
    assert cfg.rest_density == 4.0


def test_load_config_defaults_without_file():
    assert load_config() == Config()


def test_load_config_unknown_key(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("not_a_key: 1\n")
    with pytest.raises(KeyError):
        load_config(str(path))


def test_load_config_validates():
    with pytest.raises(ValueError):
        load_config(opts=["grid_resolution", "3"])


def test_backend_lookup():
    assert taichi_dtype("float64") is not None
    assert taichi_arch("cpu") is not None
    with pytest.raises(ValueError):
        taichi_arch("abacus")
    with pytest.raises(ValueError):
        taichi_dtype("int8")


def test_int_accepted_for_float_keys(tmp_path):
    path = tmp_path / "scene.yaml"
    path.write_text("time_step: 1\nrest_density: 3\n")
    cfg = load_config(str(path), ["eos_stiffness", "20", "dynamic_viscosity", "-0"])
    assert cfg.time_step == 1.0 and isinstance(cfg.time_step, float)
    assert cfg.rest_density == 3.0
    assert cfg.eos_stiffness == 20.0 and isinstance(cfg.eos_stiffness, float)
    assert cfg.dynamic_viscosity == 0.0


def test_int_keys_stay_strict():
    with pytest.raises(ValueError):
        load_config(opts=["grid_resolution", "32.0"])
