"""
The `constants` module defines the central-body constants used by the J2 gravity models.

All values are SI: metres, metres^3/seconds^2, dimensionless J2.
"""

from jax.numpy import pi as PI

# Mathematical Constants
"""
Constant to convert degrees to radians. Equal to 2pi/360. Units: *rad/deg*
"""
DEG2RAD = 2.0 * PI / 360.0

"""
Constant to convert radians to degrees. Equal to 360/2pi. Units: *deg/rad*
"""
RAD2DEG = 360.0 / (PI * 2.0)

# Earth

"""
Earth's equatorial radius. [m]

References:

1. GGM05s gravity model
"""
R_EARTH = 6.378136300e6  # [m] GGM05s Value

"""
Earth's gravitational parameter. [m^3/s^2]

References:

1. GGM05s gravity model
"""
GM_EARTH = 3.986004415e14  # [m^3/s^2] GGM05s Value

"""
Earth's un-normalized second zonal harmonic. [dimensionless]

References:

1. GGM05s gravity model
"""
J2_EARTH = 0.0010826358191967  # [] GGM05s value

# Moon

"""
Moon's mean equatorial radius. [m]

References:

1. LP165P lunar gravity model
"""
R_MOON = 1.738e6

"""
Moon's gravitational parameter. [m^3/s^2]

References:

1. DE430 planetary ephemerides
"""
GM_MOON = 4902.800066 * 1e9

"""
Moon's un-normalized second zonal harmonic. [dimensionless]

References:

1. LP165P lunar gravity model
"""
J2_MOON = 2.0321568464e-4

# Mars

"""
Mars' reference radius. [m]

References:

1. MRO120D Mars gravity model
"""
R_MARS = 3.3960e6

"""
Mars' gravitational parameter. [m^3/s^2]

References:

1. DE430 planetary ephemerides
"""
GM_MARS = 4.282837362069909e13

"""
Mars' un-normalized second zonal harmonic. [dimensionless]

References:

1. MRO120D Mars gravity model
"""
J2_MARS = 1.9566e-3
