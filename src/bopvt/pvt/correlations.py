"""Closed-form dead-oil correlations with constant compressibility and viscosibility.

Kernels use numpy division semantics: division by zero gives inf or NaN, never raises.
"""

import numba

from bopvt.types import FloatOrArray

__all__ = [
    "second_order_expansion",
    "compute_constant_compressibility_oil_fvf",
    "compute_constant_compressibility_oil_viscosity",
    "compute_dead_oil_fugacity_coefficient",
]


@numba.njit(cache=True, error_model="numpy")
def second_order_expansion(x: FloatOrArray) -> FloatOrArray:
    """
    Second order Taylor expansion of exp(x) around zero: 1 + x + x²/2.

    Evaluated as `1 + x*(1 + x/2)` so results match other simulators bit for bit.
    """
    return 1 + x * (1 + x / 2)


@numba.njit(cache=True, error_model="numpy")
def compute_constant_compressibility_oil_fvf(
    pressure: FloatOrArray,
    reference_pressure: float,
    reference_formation_volume_factor: float,
    compressibility: float,
) -> FloatOrArray:
    """
    Oil formation volume factor for a constant compressibility dead oil.

    Formula (ECLIPSE 2011 technical description, p. 116):

        X = c_o * (P - P_ref)
        B_o(P) = B_o,ref / (1 + X + X²/2)

    :param pressure: Oil pressure (Pa)
    :param reference_pressure: Reference pressure (Pa)
    :param reference_formation_volume_factor: Bo at the reference pressure (-)
    :param compressibility: Oil compressibility (1/Pa)
    :return: Oil formation volume factor (-)
    """
    x = compressibility * (pressure - reference_pressure)
    return reference_formation_volume_factor / second_order_expansion(x)


@numba.njit(cache=True, error_model="numpy")
def compute_constant_compressibility_oil_viscosity(
    pressure: FloatOrArray,
    reference_pressure: float,
    reference_formation_volume_factor: float,
    reference_viscosity: float,
    compressibility: float,
    viscosibility: float,
) -> FloatOrArray:
    """
    Oil viscosity for a constant compressibility dead oil.

    The product Bo*μo is expanded around the reference pressure and the result
    divided by Bo:

        Y = (c_o - c_v) * (P - P_ref)
        μ_o(P) = B_o,ref * μ_o,ref / ((1 + Y + Y²/2) * B_o(P))

    Temperature does not enter the correlation.

    :param pressure: Oil pressure (Pa)
    :param reference_pressure: Reference pressure (Pa)
    :param reference_formation_volume_factor: Bo at the reference pressure (-)
    :param reference_viscosity: Oil viscosity at the reference pressure (Pa·s)
    :param compressibility: Oil compressibility (1/Pa)
    :param viscosibility: Oil viscosibility (1/Pa)
    :return: Oil viscosity (Pa·s)
    """
    bo_mu_ref = reference_viscosity * reference_formation_volume_factor
    bo = compute_constant_compressibility_oil_fvf(
        pressure,
        reference_pressure,
        reference_formation_volume_factor,
        compressibility,
    )
    y = (compressibility - viscosibility) * (pressure - reference_pressure)
    return bo_mu_ref / (second_order_expansion(y) * bo)


@numba.njit(cache=True, error_model="numpy")
def compute_dead_oil_fugacity_coefficient(
    pressure: FloatOrArray,
    oil_fugacity_pressure: float,
    factor: float,
) -> FloatOrArray:
    """
    Fugacity coefficient of a component in dead oil.

    The oil component uses a pseudo vapour pressure (`factor` = 1). Other components
    are made nearly immiscible by scaling that value by a large `factor`.

    :param pressure: Oil pressure (Pa)
    :param oil_fugacity_pressure: Pseudo vapour pressure of the oil component (Pa)
    :param factor: Ratio to the oil component's fugacity coefficient
    """
    return factor * (oil_fugacity_pressure / pressure)
