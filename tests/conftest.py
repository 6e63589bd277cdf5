import pytest

from bopvt import ConstantCompressibilityOilPvt, FluidSystem

OIL_DENSITY = 850.0


@pytest.fixture
def fluid_system():
    fluid_system = FluidSystem()
    fluid_system.set_num_regions(2)
    fluid_system.set_reference_densities(
        0, oil_density=OIL_DENSITY, water_density=1000.0, gas_density=0.9
    )
    fluid_system.set_reference_densities(
        1, oil_density=900.0, water_density=1020.0, gas_density=1.1
    )
    return fluid_system


@pytest.fixture
def oil_pvt(fluid_system):
    """Two regions: region 0 calibrated, region 1 left at its defaults."""
    pvt = ConstantCompressibilityOilPvt(fluid_system)
    pvt.set_num_regions(2)
    pvt.set_reference_pressure(0, 1e7)
    pvt.set_reference_formation_volume_factor(0, 1.2)
    pvt.set_compressibility(0, 1e-9)
    pvt.set_viscosity(0, 1e-3, viscosibility=5e-10)
    return pvt
