import logging

import numpy as np
import pytest

from bopvt import (
    ComponentIndex,
    Config,
    ConfigurationError,
    ConstantCompressibilityOilPvt,
    RegionIndexError,
    ValidationError,
    c,
    get_dtype,
    set_dtype,
    use_32bit_precision,
    use_64bit_precision,
    with_precision,
)

from conftest import OIL_DENSITY

T = 350.0  # K


def expected_fvf(pressure, reference_pressure=1e7, bo_ref=1.2, compressibility=1e-9):
    x = compressibility * (pressure - reference_pressure)
    return bo_ref / (1 + x * (1 + x / 2))


# =============================================================================
# Correlations
# =============================================================================


def test_formation_volume_factor_scenario(oil_pvt):
    bo = oil_pvt.formation_volume_factor(0, T, 1.5e7, 0.0)
    assert bo == pytest.approx(1.2 / (1 + 5e-3 * 1.0025), rel=1e-12)
    assert bo == pytest.approx(1.1940, abs=1e-4)


def test_formation_volume_factor_is_not_exponential(oil_pvt):
    """The quadratic expansion differs from exp(X) in the third order term."""
    pressure = 5e8
    x = 1e-9 * (pressure - 1e7)
    bo = oil_pvt.formation_volume_factor(0, T, pressure, 0.0)
    assert bo == pytest.approx(expected_fvf(pressure), rel=1e-12)
    assert bo != pytest.approx(1.2 / np.exp(x), rel=1e-6)


def test_formation_volume_factor_at_reference_pressure_is_exact(oil_pvt):
    for temperature in (273.15, 350.0, 500.0):
        assert oil_pvt.formation_volume_factor(0, temperature, 1e7, 0.0) == 1.2


def test_zero_compressibility_gives_constant_fvf(oil_pvt):
    oil_pvt.set_compressibility(0, 0.0)
    for pressure in (1e5, 1e7, 3e7, 1e9):
        assert oil_pvt.formation_volume_factor(0, T, pressure, 0.0) == 1.2


def test_fvf_decreases_with_pressure_for_positive_compressibility(oil_pvt):
    pressures = np.linspace(5e6, 4e7, 20)
    bo = oil_pvt.formation_volume_factor(0, T, pressures, 0.0)
    assert bo.shape == pressures.shape
    assert np.all(np.diff(bo) < 0)


def test_negative_compressibility_is_accepted(oil_pvt):
    oil_pvt.set_compressibility(0, -1e-9)
    bo = oil_pvt.formation_volume_factor(0, T, 1.5e7, 0.0)
    assert bo == pytest.approx(expected_fvf(1.5e7, compressibility=-1e-9), rel=1e-12)
    assert bo > 1.2


def test_viscosity_scenario(oil_pvt):
    pressure = 1.5e7
    bo = expected_fvf(pressure)
    y = (1e-9 - 5e-10) * (pressure - 1e7)
    expected = 1e-3 * 1.2 / ((1 + y * (1 + y / 2)) * bo)
    assert oil_pvt.viscosity(0, T, pressure, 0.0) == pytest.approx(expected, rel=1e-12)


def test_viscosity_at_reference_pressure(oil_pvt):
    assert oil_pvt.viscosity(0, T, 1e7, 0.0) == pytest.approx(1e-3, rel=1e-15)


def test_viscosity_is_independent_of_temperature(oil_pvt):
    values = [oil_pvt.viscosity(0, temperature, 2e7, 0.0) for temperature in (280.0, 350.0, 450.0)]
    assert values[0] == values[1] == values[2]


def test_viscosity_without_viscosibility_is_constant(oil_pvt):
    """With c_v = 0 the Bo*mu product cancels the Bo variation exactly in exact arithmetic."""
    oil_pvt.set_viscosibility(0, 0.0)
    for pressure in (5e6, 2e7, 4e7):
        assert oil_pvt.viscosity(0, T, pressure, 0.0) == pytest.approx(1e-3, rel=1e-12)


def test_density_scenario(oil_pvt):
    density = oil_pvt.density(0, T, 1.5e7, 0.0)
    assert density == pytest.approx(OIL_DENSITY / expected_fvf(1.5e7), rel=1e-12)
    assert density == pytest.approx(OIL_DENSITY / 1.1940, rel=1e-4)


def test_density_vectorized(oil_pvt):
    pressures = np.array([1e7, 1.5e7, 2e7])
    densities = oil_pvt.density(0, T, pressures, np.zeros(3))
    np.testing.assert_allclose(densities, OIL_DENSITY / expected_fvf(pressures), rtol=1e-12)


def test_untouched_region_uses_defaults(oil_pvt):
    parameters = oil_pvt.region_parameters(1)
    assert parameters.reference_formation_volume_factor == 1.0
    assert parameters.reference_pressure == c.SURFACE_PRESSURE
    assert parameters.compressibility == 0.0
    assert parameters.viscosibility == 0.0
    assert np.isnan(parameters.reference_viscosity)

    assert oil_pvt.formation_volume_factor(1, T, 2e7, 0.0) == 1.0
    assert oil_pvt.formation_volume_factor(1, T, c.SURFACE_PRESSURE, 0.0) == 1.0
    assert oil_pvt.density(1, T, 2e7, 0.0) == 900.0


def test_default_reference_pressure_follows_fluid_system():
    from bopvt import FluidSystem

    pvt = ConstantCompressibilityOilPvt(FluidSystem(surface_pressure=2e5))
    pvt.set_num_regions(1)
    assert pvt.region_parameters(0).reference_pressure == 2e5


# =============================================================================
# Fugacity and dead oil terms
# =============================================================================


def test_fugacity_coefficients_at_one_bar(oil_pvt):
    oil = oil_pvt.fugacity_coefficient(0, T, 1e5, ComponentIndex.OIL)
    water = oil_pvt.fugacity_coefficient(0, T, 1e5, ComponentIndex.WATER)
    gas = oil_pvt.fugacity_coefficient(0, T, 1e5, ComponentIndex.GAS)
    assert oil == pytest.approx(0.2, rel=1e-15)
    assert gas == pytest.approx(2.02e7, rel=1e-12)
    assert water / oil == pytest.approx(1e8, rel=1e-12)
    assert gas / oil == pytest.approx(1.01e8, rel=1e-12)


def test_oil_fugacity_coefficient_is_inverse_in_pressure(oil_pvt):
    pressures = np.array([1e5, 1e6, 2e7])
    np.testing.assert_allclose(
        oil_pvt.fugacity_coefficient(0, T, pressures, int(ComponentIndex.OIL)),
        20000.0 / pressures,
        rtol=1e-15,
    )


def test_fugacity_unknown_component(oil_pvt):
    with pytest.raises(ValidationError):
        oil_pvt.fugacity_coefficient(0, T, 1e5, 7)


def test_dead_oil_terms_are_zero(oil_pvt):
    for region_index in (0, 1):
        assert oil_pvt.gas_dissolution_factor(region_index, T, 2e7) == 0.0
        assert oil_pvt.oil_saturation_pressure(region_index, T, 0.1) == 0.0
        assert oil_pvt.saturated_oil_gas_mass_fraction(region_index, T, 2e7) == 0.0
        assert oil_pvt.saturated_oil_gas_mole_fraction(region_index, T, 2e7) == 0.0


def test_dead_oil_terms_keep_array_shape(oil_pvt):
    pressures = np.full((3, 2), 2e7)
    rs = oil_pvt.gas_dissolution_factor(0, T, pressures)
    assert rs.shape == (3, 2)
    assert not rs.any()


# =============================================================================
# Degenerate inputs give IEEE results, never exceptions
# =============================================================================


@pytest.mark.parametrize("pressure", [0.0, np.array([0.0, 1e5])])
def test_fugacity_at_zero_pressure_is_infinite(oil_pvt, pressure):
    for component in ComponentIndex:
        phi = oil_pvt.fugacity_coefficient(0, T, pressure, component)
        assert np.isinf(np.ravel(phi)[0])


@pytest.mark.parametrize("pressure", [1.5e7, np.array([1e7, 1.5e7])])
def test_zero_reference_fvf(oil_pvt, pressure):
    oil_pvt.set_reference_formation_volume_factor(0, 0.0)
    assert not np.any(oil_pvt.formation_volume_factor(0, T, pressure, 0.0))
    assert np.all(np.isnan(oil_pvt.viscosity(0, T, pressure, 0.0)))
    assert np.all(np.isposinf(oil_pvt.density(0, T, pressure, 0.0)))


# =============================================================================
# Lifecycle and errors
# =============================================================================


def test_evaluation_before_set_num_regions():
    pvt = ConstantCompressibilityOilPvt()
    assert pvt.num_regions == 0
    with pytest.raises(ConfigurationError):
        pvt.formation_volume_factor(0, T, 1e7, 0.0)
    with pytest.raises(ConfigurationError):
        pvt.set_compressibility(0, 1e-9)
    with pytest.raises(ConfigurationError):
        pvt.init_end()


@pytest.mark.parametrize("region_index", [2, -1, 10])
def test_region_index_out_of_range(oil_pvt, region_index):
    with pytest.raises(RegionIndexError):
        oil_pvt.viscosity(region_index, T, 1e7, 0.0)
    with pytest.raises(RegionIndexError):
        oil_pvt.set_reference_pressure(region_index, 1e7)
    with pytest.raises(IndexError):
        oil_pvt.gas_dissolution_factor(region_index, T, 1e7)


@pytest.mark.parametrize("num_regions", [-1, 2.5, "3", True])
def test_invalid_num_regions(num_regions):
    with pytest.raises(ValidationError):
        ConstantCompressibilityOilPvt().set_num_regions(num_regions)


def test_numpy_integer_region_index(oil_pvt):
    assert oil_pvt.formation_volume_factor(np.int64(0), T, 1e7, 0.0) == 1.2


def test_setters_rejected_after_init_end(oil_pvt):
    oil_pvt.init_end()
    assert oil_pvt.is_finalized
    with pytest.raises(ConfigurationError):
        oil_pvt.set_compressibility(0, 2e-9)
    # Evaluation still works
    assert oil_pvt.formation_volume_factor(0, T, 1e7, 0.0) == 1.2


def test_set_num_regions_discards_calibration(oil_pvt):
    oil_pvt.init_end()
    oil_pvt.set_num_regions(3)
    assert oil_pvt.num_regions == 3
    assert not oil_pvt.is_finalized
    assert oil_pvt.region_parameters(0).reference_formation_volume_factor == 1.0
    oil_pvt.set_compressibility(0, 2e-9)
    assert oil_pvt.region_parameters(0).compressibility == 2e-9


def test_init_end_without_freezing(fluid_system):
    pvt = ConstantCompressibilityOilPvt(fluid_system, Config(freeze_on_init_end=False))
    pvt.set_num_regions(1)
    pvt.init_end()
    pvt.set_compressibility(0, 3e-9)
    assert pvt.region_parameters(0).compressibility == 3e-9


def test_unphysical_parameters_are_logged(oil_pvt, caplog):
    with caplog.at_level(logging.WARNING, logger="bopvt"):
        oil_pvt.set_compressibility(0, -1e-9)
        oil_pvt.set_viscosity(0, 0.0)
    messages = [record.getMessage() for record in caplog.records]
    assert any("negative compressibility" in message for message in messages)
    assert any("non-positive reference viscosity" in message for message in messages)


def test_unphysical_parameter_warnings_can_be_disabled(fluid_system, caplog):
    pvt = ConstantCompressibilityOilPvt(
        fluid_system, Config(warn_on_unphysical_parameters=False)
    )
    pvt.set_num_regions(1)
    with caplog.at_level(logging.WARNING, logger="bopvt"):
        pvt.set_compressibility(0, -1e-9)
    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]


def test_single_precision_storage(fluid_system):
    with with_precision(np.float32):
        pvt = ConstantCompressibilityOilPvt(fluid_system)
        pvt.set_num_regions(1)
    assert pvt._parameters.dtype["compressibility"] == np.float32
    pvt.set_reference_formation_volume_factor(0, 1.25)
    assert pvt.formation_volume_factor(0, T, c.SURFACE_PRESSURE, 0.0) == 1.25


def test_global_precision_switch(fluid_system):
    use_32bit_precision()
    try:
        assert get_dtype() is np.float32
        pvt = ConstantCompressibilityOilPvt(fluid_system)
        pvt.set_num_regions(1)
        assert pvt._parameters.dtype["reference_pressure"] == np.float32

        set_dtype(np.float64)
        pvt.set_num_regions(1)
        assert pvt._parameters.dtype["reference_pressure"] == np.float64
    finally:
        use_64bit_precision()
    assert get_dtype() is np.float64
