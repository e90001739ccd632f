"""
Physical constants and numerical thresholds for the medium system.

All units are in SI unless otherwise noted.
"""

import math

import numpy as np

# =============================================================================
# Fundamental Physical Constants
# =============================================================================

# Speed of light in vacuum [m/s]
SPEED_OF_LIGHT = 2.99792458e8

# Planck constant [J·s]
PLANCK_CONSTANT = 6.62607015e-34

# Boltzmann constant [J/K]
BOLTZMANN_CONSTANT = 1.380649e-23

# Proton mass [kg]
PROTON_MASS = 1.67262192369e-27

# Electron mass [kg]
ELECTRON_MASS = 9.1093837015e-31

# Thomson cross section [m²]
THOMSON_CROSS_SECTION = 6.6524587321e-29

# Astronomical unit [m]
ASTRONOMICAL_UNIT = 1.495978707e11

# Solar luminosity [W]
SOLAR_LUMINOSITY = 3.828e26

# First radiation constant for spectral radiance c1 = 2hc² [W·m²/sr]
C1_RADIATION = 2.0 * PLANCK_CONSTANT * SPEED_OF_LIGHT**2

# Second radiation constant c2 = hc/k [m·K]
C2_RADIATION = PLANCK_CONSTANT * SPEED_OF_LIGHT / BOLTZMANN_CONSTANT

# =============================================================================
# Numerical Thresholds
# =============================================================================

# Smallest positive normal double; peel-off weights below this are unobservable
MIN_POSITIVE_WEIGHT = float(np.finfo(np.float64).tiny)

# Optical depth returned when a peel-off path can no longer contribute
EFFECTIVELY_INFINITE = math.inf

# Below this segment optical depth the exponential is linearized
SMALL_OPTICAL_DEPTH = 1e-11

# Tolerance used when checking that normalized weights sum to unity
WEIGHT_SUM_TOLERANCE = 1e-12

# =============================================================================
# Setup Defaults
# =============================================================================

DEFAULT_NUM_DENSITY_SAMPLES = 100
MIN_NUM_DENSITY_SAMPLES = 10
MAX_NUM_DENSITY_SAMPLES = 1000

# Temperature bracket for the indicative dust temperature root find [K]
MIN_INDICATIVE_TEMPERATURE = 1.0
MAX_INDICATIVE_TEMPERATURE = 1e5
