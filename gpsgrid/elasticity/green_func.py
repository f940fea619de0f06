"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 9:48 AM

Green's functions of a thin elastic sheet for a 2-D point force.

Sandwell, D. T., and P. Wessel (2016), Interpolation of 2-D vector data using
constraints from elasticity, Geophys. Res. Lett., 43, 10,703-10,709,
doi:10.1002/2016GL070340.

usage:
    shape = ShapeParameters.from_poisson(nu=0.25, fudge_mode=FudgeMode.RELATIVE, fudge_value=0.01, r_min=r_min)
    gxx, gyy, gxy = greens_functions(dx, dy, shape.epsilon_term, shape.fudge)
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numba import njit

from ..gridder.core.type_declarations import FudgeMode, ConfigurationError, DataQualityError


@dataclass(frozen=True)
class ShapeParameters:
    """Constant parameters of the Green's functions for a whole fit"""
    epsilon_term: float
    fudge: float
    poisson_ratio: float = 0.25

    @classmethod
    def from_poisson(cls, nu: float = 0.25,
                     fudge_mode: FudgeMode = FudgeMode.RELATIVE,
                     fudge_value: float = 0.01,
                     r_min: Optional[float] = None) -> 'ShapeParameters':
        """
        Derive the shape parameters from Poisson's ratio and the fudge policy

        Parameters
        ----------
        nu : float
            Effective Poisson's ratio of the elastic sheet
        fudge_mode : FudgeMode
            ABSOLUTE: fudge_value is added to all squared distances.
            RELATIVE: fudge_value * r_min is added instead.
        fudge_value : float
            Value or factor, depending on fudge_mode
        r_min : float, optional
            Shortest separation between distinct data constraints (needed for RELATIVE)
        """
        if not np.isfinite(nu) or nu <= -1.0:
            raise ConfigurationError(f"Poisson's ratio must be larger than -1 (got {nu})")

        # half of 2*epsilon + 1
        epsilon_term = 0.5 * (2.0 * (1.0 - nu) / (1.0 + nu) + 1.0)

        if fudge_mode == FudgeMode.ABSOLUTE:
            fudge = fudge_value
        else:
            if r_min is None or not np.isfinite(r_min):
                raise DataQualityError('A fudge factor relative to the shortest inter-point distance needs at '
                                       'least two data constraints at different locations')
            fudge = fudge_value * r_min

        if not np.isfinite(fudge) or fudge <= 0.0:
            raise ConfigurationError(f'The fudge term must be positive to avoid the singularity at r = 0 '
                                     f'(got {fudge})')

        return cls(epsilon_term=float(epsilon_term), fudge=float(fudge), poisson_ratio=float(nu))


@njit
def greens_functions(dx, dy, epsilon_term, fudge):
    """
    Evaluate the Green's functions for the offset dx, dy

    Works on floats or element-wise on arrays of offsets (used both to fill the
    system matrix and inside the compiled evaluation kernel).

    Returns
    -------
    gxx : u response to a force along x
    gyy : v response to a force along y
    gxy : cross response (same for u to y and v to x)
    """
    dx2 = dx * dx
    dy2 = dy * dy
    r2 = dx2 + dy2 + fudge

    c1 = (3.0 - epsilon_term) / 2.0
    c2 = 1.0 + epsilon_term

    logr2 = c1 * np.log(r2)
    gxx = logr2 + c2 * dx2 / r2
    gyy = logr2 + c2 * dy2 / r2
    gxy = c2 * dx * dy / r2

    return gxx, gyy, gxy
