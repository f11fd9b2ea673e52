# reactorsim/physics/thermodynamics.py
"""
Thermodynamic relations for the reactor vessel.

Pure functions over an Environment snapshot:
- Heat losses through the vessel wall (conduction, convection, radiation)
- Reaction heat generation (Arrhenius kinetics)
- Mixture heat capacity and a Dittus-Boelter heat-transfer coefficient
- Saturation vapour pressure (Antoine equation) and vapour capacity
- Temperature change from the heat balance
- Ideal-gas pressure

Functions that would divide by a non-positive mass, volume, heat capacity
or gas constant return "no change" instead of NaN/inf.

Most functions accept an optional ``temperature`` override so the same
formula can be evaluated at the set-point rather than the live value.
"""

import math

from reactorsim.state.reactor_state import Environment

STEFAN_BOLTZMANN = 5.670374419e-8  # W/(m²·K⁴)
GAS_CONSTANT = 8.314462618  # J/(mol·K)
DEFAULT_EMISSIVITY = 0.1

# Reaction mixture
WATER_FRACTION_DEFAULT = 0.7
ORGANIC_FRACTION_DEFAULT = 0.3
WATER_HEAT_CAPACITY = 4180.0  # J/(kg·K)
ORGANIC_HEAT_CAPACITY = 2000.0  # J/(kg·K)

# Arrhenius kinetics
REACTION_RATE_CONSTANT_DEFAULT = 1e-3  # 1/s, pre-exponential factor
ACTIVATION_ENERGY_DEFAULT = 50000.0  # J/mol
HEAT_OF_REACTION_DEFAULT = 100000.0  # J/kg

# Forced convection (Dittus-Boelter)
VISCOSITY_DEFAULT = 1e-3  # Pa·s
FLOW_VELOCITY_DEFAULT = 1.0  # m/s
CHARACTERISTIC_LENGTH = 0.1  # m
DITTUS_BOELTER_COEFFICIENT = 0.023
REYNOLDS_EXPONENT = 0.8
PRANDTL_EXPONENT = 0.4

# Water vapour
MOLAR_MASS_WATER = 0.018015  # kg/mol
LATENT_HEAT_WATER = 2260000.0  # J/kg
ANTOINE_A = 8.07131
ANTOINE_B = 1730.63
ANTOINE_C = 233.426
MMHG_TO_PA = 133.322
MIN_ANTOINE_TEMPERATURE_C = 1.0
MIN_SATURATION_PRESSURE = 0.1  # Pa


# ----------------------------------------------------------------
# Heat losses
# ----------------------------------------------------------------


def conduction_heat_loss(env: Environment, temperature: float | None = None) -> float:
    """Heat conducted through the vessel wall (W).

    Returns 0 for a wall of non-positive thickness.
    """
    if env.wall_thickness <= 0.0:
        return 0.0

    t_inside = env.temperature if temperature is None else temperature
    return (
        env.wall_thermal_conductivity
        * env.surface_area
        * (t_inside - env.ambient_temperature)
        / env.wall_thickness
    )


def convection_heat_loss(env: Environment, temperature: float | None = None) -> float:
    """Heat carried away by convection at the outer surface (W)."""
    t_surface = env.temperature if temperature is None else temperature
    return (
        env.heat_transfer_coefficient
        * env.surface_area
        * (t_surface - env.ambient_temperature)
    )


def radiation_heat_loss(
    env: Environment,
    temperature: float | None = None,
    emissivity: float = DEFAULT_EMISSIVITY,
) -> float:
    """Heat radiated from the outer surface (W), Stefan-Boltzmann law."""
    t_surface = env.temperature if temperature is None else temperature
    return (
        STEFAN_BOLTZMANN
        * emissivity
        * env.surface_area
        * (t_surface**4 - env.ambient_temperature**4)
    )


def total_heat_loss(env: Environment, temperature: float | None = None) -> float:
    return (
        conduction_heat_loss(env, temperature)
        + convection_heat_loss(env, temperature)
        + radiation_heat_loss(env, temperature)
    )


# ----------------------------------------------------------------
# Heat sources and material properties
# ----------------------------------------------------------------


def mixture_heat_capacity(
    water_fraction: float = WATER_FRACTION_DEFAULT,
    organic_fraction: float = ORGANIC_FRACTION_DEFAULT,
) -> float:
    """Specific heat of the water/organic mixture (J/(kg·K))."""
    return water_fraction * WATER_HEAT_CAPACITY + organic_fraction * ORGANIC_HEAT_CAPACITY


def reaction_heat_rate(
    env: Environment,
    temperature: float | None = None,
    rate_constant: float = REACTION_RATE_CONSTANT_DEFAULT,
    activation_energy: float = ACTIVATION_ENERGY_DEFAULT,
    heat_of_reaction: float = HEAT_OF_REACTION_DEFAULT,
) -> float:
    """Heat released by the reaction (W).

    k(T) = k0 * exp(-Ea / (R * T)), Q = k(T) * m * ΔH

    Returns 0 for a non-positive absolute temperature.
    """
    t = env.temperature if temperature is None else temperature
    if t <= 0.0:
        return 0.0

    k = rate_constant * math.exp(-activation_energy / (GAS_CONSTANT * t))
    return k * env.mass * heat_of_reaction


def heat_transfer_coefficient(
    env: Environment,
    flow_velocity: float = FLOW_VELOCITY_DEFAULT,
    viscosity: float = VISCOSITY_DEFAULT,
) -> float:
    """Convective coefficient from the Dittus-Boelter correlation (W/(m²·K)).

    Nu = 0.023 * Re^0.8 * Pr^0.4, h = Nu * k / L

    Keeps the current coefficient when volume, viscosity, heat capacity or
    thermal conductivity is non-positive.
    """
    if (
        env.volume <= 0.0
        or viscosity <= 0.0
        or env.thermal_conductivity <= 0.0
        or env.heat_capacity <= 0.0
    ):
        return env.heat_transfer_coefficient

    density = env.mass / env.volume
    reynolds = density * flow_velocity * CHARACTERISTIC_LENGTH / viscosity
    prandtl = viscosity * env.heat_capacity / env.thermal_conductivity

    nusselt = (
        DITTUS_BOELTER_COEFFICIENT
        * reynolds**REYNOLDS_EXPONENT
        * prandtl**PRANDTL_EXPONENT
    )
    return nusselt * env.thermal_conductivity / CHARACTERISTIC_LENGTH


# ----------------------------------------------------------------
# Heat balance and gas law
# ----------------------------------------------------------------


def temperature_change(env: Environment, dt: float) -> float:
    """Temperature change over dt from the vessel heat balance (K).

    net = heating + reaction - (losses + cooling), ΔT = net * dt / (m * c)

    cooling_rate is treated as a magnitude. Returns 0 when mass or heat
    capacity is non-positive.
    """
    if env.mass <= 0.0 or env.heat_capacity <= 0.0:
        return 0.0

    heat_input = env.heating_rate + env.reaction_heat_rate
    heat_output = total_heat_loss(env) + abs(env.cooling_rate)
    return (heat_input - heat_output) * dt / (env.mass * env.heat_capacity)


def ideal_gas_pressure(env: Environment) -> float:
    """Pressure from P = m * R_specific * T / V (Pa).

    Returns the current pressure unchanged when R, V or T is non-positive.
    """
    if env.specific_gas_constant <= 0.0 or env.volume <= 0.0 or env.temperature <= 0.0:
        return env.pressure

    return env.mass * env.specific_gas_constant * env.temperature / env.volume


# ----------------------------------------------------------------
# Psychrometrics
# ----------------------------------------------------------------


def saturation_pressure(temperature_k: float) -> float:
    """Saturation vapour pressure of water (Pa), Antoine equation.

    log10(P_mmHg) = A - B / (C + T_c), with T_c clamped to at least 1 °C.
    """
    temp_c = max(temperature_k - 273.15, MIN_ANTOINE_TEMPERATURE_C)
    p_mmhg = 10 ** (ANTOINE_A - ANTOINE_B / (ANTOINE_C + temp_c))
    return p_mmhg * MMHG_TO_PA


def max_water_vapor_mass(temperature_k: float, volume: float) -> float:
    """Largest water-vapour mass the vessel holds before condensing (kg).

    m_max = P_sat * V * M_w / (R * T). Returns 0 for non-positive T or V.
    """
    if temperature_k <= 0.0 or volume <= 0.0:
        return 0.0

    p_sat = max(saturation_pressure(temperature_k), MIN_SATURATION_PRESSURE)
    return p_sat * volume * MOLAR_MASS_WATER / (GAS_CONSTANT * temperature_k)


def latent_heat_correction(water_delta: float, mass: float, heat_capacity: float) -> float:
    """Temperature shift from evaporation or condensation (K).

    Evaporation (positive delta) cools, condensation warms.
    Returns 0 when mass or heat capacity is non-positive.
    """
    if mass <= 0.0 or heat_capacity <= 0.0:
        return 0.0

    return -water_delta * LATENT_HEAT_WATER / (mass * heat_capacity)
