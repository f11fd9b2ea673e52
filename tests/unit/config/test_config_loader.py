# tests/unit/config/test_config_loader.py
import pytest
import yaml

from config.config_loader import (
    DEFAULT_CONFIG,
    ConfigError,
    ConfigLoader,
    build_environment,
)
from reactorsim.state.reactor_state import (
    DEFAULT_AMBIENT_TEMPERATURE,
    DEFAULT_HEATING_RATE,
    DEFAULT_SPECIFIC_GAS_CONSTANT,
    ControlMode,
)


def test_default_file_created_when_missing(tmp_path):
    loader = ConfigLoader(config_dir=tmp_path)

    config = loader.load()

    config_path = tmp_path / "reactor.yml"
    assert config_path.exists()
    with open(config_path) as f:
        assert yaml.safe_load(f) == DEFAULT_CONFIG
    assert config.reaction.needed_temp == 300.0
    assert config.simulation.tick_ms == 100


def test_default_file_documents_optional_fields(tmp_path):
    ConfigLoader(config_dir=tmp_path).load()

    text = (tmp_path / "reactor.yml").read_text()
    assert "# Reactor simulator configuration" in text
    assert "specific_gas_constant: 287.0" in text


def test_config_dir_created(tmp_path):
    loader = ConfigLoader(config_dir=tmp_path / "nested" / "config")

    loader.load()

    assert (tmp_path / "nested" / "config" / "reactor.yml").exists()


def test_load_valid_file(temp_config_dir, write_config_file, default_reactor_config):
    write_config_file(default_reactor_config)

    config = ConfigLoader(config_dir=temp_config_dir).load()

    assert config.reactor.surface_area == 1.0
    assert config.mass.input == 1.0
    assert config.mass.output == 1.0
    assert config.reaction.energy.max_consumption == 20000.0
    assert config.simulation.tick_ms == 10
    assert config.simulation.control_mode is ControlMode.AUTOMATIC


def test_optional_constants_default(temp_config_dir, write_config_file, default_reactor_config):
    write_config_file(default_reactor_config)

    config = ConfigLoader(config_dir=temp_config_dir).load()

    assert config.reaction.ambient_temperature == DEFAULT_AMBIENT_TEMPERATURE
    assert config.reaction.specific_gas_constant == DEFAULT_SPECIFIC_GAS_CONSTANT
    assert config.reaction.heating_rate == DEFAULT_HEATING_RATE
    assert config.temperature_controller.strategy == "pid"
    assert config.logging.level == "INFO"


def test_optional_constants_override(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["reaction"]["ambient_temperature"] = 280.0
    default_reactor_config["reaction"]["specific_gas_constant"] = 461
    write_config_file(default_reactor_config)

    config = ConfigLoader(config_dir=temp_config_dir).load()

    assert config.reaction.ambient_temperature == 280.0
    assert config.reaction.specific_gas_constant == 461.0


def test_integer_values_accepted_as_float(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["reaction"]["volume"] = 2
    write_config_file(default_reactor_config)

    config = ConfigLoader(config_dir=temp_config_dir).load()

    assert config.reaction.volume == 2.0
    assert isinstance(config.reaction.volume, float)


@pytest.mark.parametrize(
    "section,key",
    [
        ("reactor", "surface_area"),
        ("mass", "output"),
        ("reaction", "needed_temp"),
        ("reaction", "max_humidity"),
    ],
)
def test_missing_required_field(
    temp_config_dir, write_config_file, default_reactor_config, section, key
):
    del default_reactor_config[section][key]
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match=f"missing required field '{key}'"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_missing_energy_field(temp_config_dir, write_config_file, default_reactor_config):
    del default_reactor_config["reaction"]["energy"]["max_consumption"]
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match=r"\[reaction.energy\] missing required field"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_missing_section(temp_config_dir, write_config_file, default_reactor_config):
    del default_reactor_config["mass"]
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match=r"\[mass\] section missing"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_section_not_mapping(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["reactor"] = [1, 2, 3]
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match=r"\[reactor\] must be a mapping"):
        ConfigLoader(config_dir=temp_config_dir).load()


@pytest.mark.parametrize("bad_value", ["hot", True, [300]])
def test_wrong_type(temp_config_dir, write_config_file, default_reactor_config, bad_value):
    default_reactor_config["reaction"]["temperature"] = bad_value
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match="'temperature' has invalid type"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_tick_ms_must_be_integer(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["simulation"]["tick_ms"] = 10.5
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match="'tick_ms' has invalid type"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_invalid_control_mode(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["simulation"]["control_mode"] = "autopilot"
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match="'control_mode' must be one of"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_manual_control_mode(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["simulation"]["control_mode"] = "MANUAL"
    write_config_file(default_reactor_config)

    config = ConfigLoader(config_dir=temp_config_dir).load()

    assert config.simulation.control_mode is ControlMode.MANUAL


def test_invalid_strategy(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["controllers"] = {"temperature": {"strategy": "fuzzy"}}
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match="'strategy' must be one of"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_physical_strategy_and_gains(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["controllers"] = {
        "temperature": {"strategy": "physical", "kp": 250.0, "parallel_mode": False}
    }
    write_config_file(default_reactor_config)

    section = ConfigLoader(config_dir=temp_config_dir).load().temperature_controller

    assert section.strategy == "physical"
    assert section.kp == 250.0
    assert section.ki == 5.0
    assert section.parallel_mode is False


def test_invalid_log_level(temp_config_dir, write_config_file, default_reactor_config):
    default_reactor_config["logging"] = {"level": "chatty"}
    write_config_file(default_reactor_config)

    with pytest.raises(ConfigError, match=r"\[logging\] 'level' must be one of"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_yaml_parse_error(temp_config_dir):
    (temp_config_dir / "reactor.yml").write_text("reactor: [unclosed\n")

    with pytest.raises(ConfigError, match="YAML parse error"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_top_level_not_mapping(temp_config_dir):
    (temp_config_dir / "reactor.yml").write_text("- just\n- a\n- list\n")

    with pytest.raises(ConfigError, match="mapping at the top level"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_empty_file_reports_missing_section(temp_config_dir):
    (temp_config_dir / "reactor.yml").write_text("")

    with pytest.raises(ConfigError, match="section missing"):
        ConfigLoader(config_dir=temp_config_dir).load()


def test_ranges(temp_config_dir, write_config_file, default_reactor_config):
    write_config_file(default_reactor_config)

    config = ConfigLoader(config_dir=temp_config_dir).load()

    assert (config.temperature_range().min_value, config.temperature_range().max_value) == (
        273.0,
        500.0,
    )
    assert config.pressure_range().max_value == 1000000.0
    assert config.humidity_range().max_value == 100.0


def test_build_environment(temp_config_dir, write_config_file, default_reactor_config):
    write_config_file(default_reactor_config)
    config = ConfigLoader(config_dir=temp_config_dir).load()

    env = build_environment(config)

    assert env.mass == 1.0
    assert env.temperature == 293.0
    assert env.needed_temperature == 300.0
    assert env.needed_pressure == 101325.0
    assert env.max_energy_consumption == 20000.0
    assert env.wall_thermal_conductivity == 0.005
    assert env.reaction_heat_rate == 0.0
