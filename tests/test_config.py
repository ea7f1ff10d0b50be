import logging

import pytest

from surface_mc.config import DEFAULT_CONFIG, SpaceConfig, load_config, setup_logging
from surface_mc.exceptions import InvalidArgument
from surface_mc.space.offlattice import OffLatticeSpace


@pytest.fixture
def package_logger():
    logger = logging.getLogger("surface_mc")
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if getattr(handler, '_surface_mc_handler', False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_defaults():
    config = SpaceConfig()
    assert config.voxel_radius == DEFAULT_CONFIG['voxel_radius']
    assert config.log_level == "WARNING"
    assert config.to_dict() == DEFAULT_CONFIG


def test_invalid_values():
    with pytest.raises(InvalidArgument):
        SpaceConfig(voxel_radius=0.0)
    with pytest.raises(ValueError):
        SpaceConfig(log_level='LOUD')


def test_load_config(tmp_path):
    path = tmp_path / "space.yaml"
    path.write_text("voxel_radius: 1.0e-8\nlog_level: info\n")

    config = load_config(path)
    assert config.voxel_radius == pytest.approx(1.0e-8)
    assert config.log_level == 'info'


def test_load_empty_config(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == SpaceConfig()


def test_load_config_errors(tmp_path):
    path = tmp_path / "bad.yaml"

    path.write_text("voxel_radius: 1.0e-8\nlattice: hcp\n")
    with pytest.raises(InvalidArgument, match="lattice"):
        load_config(path)

    path.write_text("- 1\n- 2\n")
    with pytest.raises(InvalidArgument):
        load_config(path)

    path.write_text("voxel_radius: large\n")
    with pytest.raises(InvalidArgument):
        load_config(path)


def test_setup_logging(tmp_path, package_logger):
    log_file = tmp_path / "run.log"

    setup_logging('debug', log_file=log_file)
    logger = setup_logging('DEBUG', log_file=log_file)
    assert logger is package_logger
    assert logger.level == logging.DEBUG

    ours = [h for h in logger.handlers if getattr(h, '_surface_mc_handler', False)]
    assert len(ours) == 2

    logging.getLogger("surface_mc.space").debug("hello from the space")
    for handler in ours:
        handler.flush()
    assert "hello from the space" in log_file.read_text()


def test_space_from_config(package_logger):
    config = SpaceConfig(voxel_radius=2.0, log_level='debug')
    space = OffLatticeSpace.from_config(config, [(0, 0, 0), (4, 0, 0)], [(0, 1)])

    assert space.voxel_radius == 2.0
    assert space.neighbors(0) == [1]
    assert "n=2" in repr(space)
    assert package_logger.level == logging.DEBUG
    assert any(getattr(h, '_surface_mc_handler', False) for h in package_logger.handlers)
