"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 12:15 PM

Dense (2n x 2n) system coupling every pair of data constraints through the elastic
Green's functions:

    [u]   [Gxx  Gxy] [alpha_x]
    [v] = [Gxy  Gyy] [alpha_y]

Row block j and column block i hold the response at constraint j to a force at
constraint i. The matrix needs (2n)^2 doubles, which is the capacity limit of the
method: 10000 constraints already need ~3 Gb.
"""
from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np
from numba import njit, prange

logger = logging.getLogger(__name__)

# app
from ...Utils import human_readable_size
from ...elasticity.distance import offset_kernel
from ...elasticity.green_func import ShapeParameters, greens_functions
from ..core.type_declarations import GridderResourceError, DataQualityError
from ..data.observations import ObservationSet


@dataclass(frozen=True)
class Block:
    """The four coefficients that couple constraint j (row) to constraint i (column)"""
    xx: float
    xy: float
    yx: float
    yy: float


class LinearSystem:
    """
    Matrix and right hand side of the gridding problem

    The quadrants (xx, xy, yx, yy) are views into one C-ordered matrix, so the storage
    can be handed to the decomposition routines directly. The solvers work in place:
    once solved, the matrix and right hand side are no longer meaningful.
    """
    def __init__(self, n: int, memory_limit_mb: Optional[float] = None):
        self.n = n
        self.size = 2 * n

        nbytes = self.memory_footprint(n)
        logger.info(f'Square matrix requires {human_readable_size(nbytes)}')

        if memory_limit_mb is not None and nbytes > memory_limit_mb * 1024.0 * 1024.0:
            raise GridderResourceError(f'The {self.size} x {self.size} matrix needs {human_readable_size(nbytes)} '
                                       f'which exceeds the limit of {memory_limit_mb} Mb; reduce the number of '
                                       f'data constraints (e.g. by block averaging)')
        try:
            self.matrix = np.zeros((self.size, self.size))
            self.rhs = np.zeros(self.size)
        except MemoryError as e:
            raise GridderResourceError(f'Could not allocate the {self.size} x {self.size} matrix '
                                       f'({human_readable_size(nbytes)})') from e

        # solutions of the weighted system are multiplied by these to recover alpha
        self.column_weights = np.ones(self.size)

    @staticmethod
    def memory_footprint(n: int) -> int:
        """bytes needed by the matrix of a system with n constraints"""
        return (2 * n) * (2 * n) * np.dtype(float).itemsize

    @property
    def xx(self) -> np.ndarray:
        return self.matrix[:self.n, :self.n]

    @property
    def xy(self) -> np.ndarray:
        return self.matrix[:self.n, self.n:]

    @property
    def yx(self) -> np.ndarray:
        return self.matrix[self.n:, :self.n]

    @property
    def yy(self) -> np.ndarray:
        return self.matrix[self.n:, self.n:]

    @property
    def rhs_u(self) -> np.ndarray:
        return self.rhs[:self.n]

    @property
    def rhs_v(self) -> np.ndarray:
        return self.rhs[self.n:]

    def block(self, j: int, i: int) -> Block:
        return Block(xx=self.xx[j, i], xy=self.xy[j, i], yx=self.yx[j, i], yy=self.yy[j, i])

    def set_block(self, j: int, i: int, gxx: float, gyy: float, gxy: float) -> None:
        self.xx[j, i] = gxx
        self.yy[j, i] = gyy
        self.xy[j, i] = gxy
        self.yx[j, i] = gxy

    def copy(self) -> 'LinearSystem':
        other = LinearSystem.__new__(LinearSystem)
        other.n = self.n
        other.size = self.size
        other.matrix = self.matrix.copy()
        other.rhs = self.rhs.copy()
        other.column_weights = self.column_weights.copy()
        return other

    def extract(self, solution: np.ndarray) -> np.ndarray:
        """turn the solution of the (weighted) system into alpha_x followed by alpha_y"""
        return solution * self.column_weights


@njit(parallel=True)
def fill_greens_matrix(matrix, x, y, epsilon_term, fudge, geographic):
    """write the four quadrants in place; row j is the evaluation point, column i the source"""
    n = x.shape[0]
    for j in prange(n):
        for i in range(n):
            dx, dy = offset_kernel(x[i], y[i], x[j], y[j], geographic)
            gxx, gyy, gxy = greens_functions(dx, dy, epsilon_term, fudge)
            matrix[j, i] = gxx
            matrix[j, n + i] = gxy
            matrix[n + j, i] = gxy
            matrix[n + j, n + i] = gyy


def build_linear_system(observations: ObservationSet,
                        shape: ShapeParameters,
                        geographic: bool = False,
                        memory_limit_mb: Optional[float] = None) -> LinearSystem:
    """
    Assemble the system for the (already normalized) observations

    With weights, the entry coupling j and i is scaled by the product of both weights
    and the right hand side by the row weight.
    """
    n = observations.size
    if n == 0:
        raise DataQualityError('Cannot build a linear system without data constraints')

    logger.info(f'Found {n} (u,v) pairs, yielding a {2 * n} by {2 * n} set of linear equations')

    system = LinearSystem(n, memory_limit_mb)

    logger.info('Build linear system Ax = b')

    try:
        fill_greens_matrix(system.matrix, np.ascontiguousarray(observations.x, dtype=float),
                           np.ascontiguousarray(observations.y, dtype=float),
                           shape.epsilon_term, shape.fudge, bool(geographic))

        system.rhs_u[:] = observations.u
        system.rhs_v[:] = observations.v

        if observations.weighted:
            w = np.concatenate([observations.weight_u, observations.weight_v])
            system.matrix *= w[:, np.newaxis]
            system.matrix *= w[np.newaxis, :]
            system.rhs *= w
            system.column_weights = w
    except MemoryError as e:
        raise GridderResourceError(f'Ran out of memory while assembling the {system.size} x {system.size} '
                                   f'system; reduce the number of data constraints (e.g. by block averaging)') from e

    return system
