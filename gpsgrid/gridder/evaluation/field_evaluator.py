"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 2:05 PM

Evaluation of the fitted field (equation 10 of Sandwell & Wessel, 2016):

    u(q) = sum_i alpha_x[i] Gxx(q - x_i) + alpha_y[i] Gxy(q - x_i)
    v(q) = sum_i alpha_y[i] Gyy(q - x_i) + alpha_x[i] Gxy(q - x_i)

followed by the restoration of the removed mean, trend and range. Every output point
is independent, so the compiled kernel runs them in parallel; each iteration only
writes its own slot of the output arrays.
"""
from typing import Optional, Tuple, Union
import logging

import numpy as np
import numba
from numba import njit, prange
from tqdm import tqdm

logger = logging.getLogger(__name__)

# app
from ...elasticity.distance import offset_kernel
from ...elasticity.green_func import ShapeParameters, greens_functions
from ..core.type_declarations import GridderException
from ..core.data_classes import NormalizationCoefficients, EvaluationOptions, GridField, PointField
from ..data.observations import ObservationSet
from ..data.normalization import restore_normalization
from .output_locations import OutputLocations


@njit(parallel=True)
def evaluate_kernel(xq, yq, xs, ys, alpha_x, alpha_y, epsilon_term, fudge, geographic):
    m = xq.shape[0]
    n = xs.shape[0]
    u = np.zeros(m)
    v = np.zeros(m)

    for k in prange(m):
        su = 0.0
        sv = 0.0
        for p in range(n):
            dx, dy = offset_kernel(xs[p], ys[p], xq[k], yq[k], geographic)
            gxx, gyy, gxy = greens_functions(dx, dy, epsilon_term, fudge)
            su += alpha_x[p] * gxx + alpha_y[p] * gxy
            sv += alpha_y[p] * gyy + alpha_x[p] * gxy
        u[k] = su
        v[k] = sv

    return u, v


class FieldEvaluator:
    """
    Evaluates the field defined by the sources (the retained data constraints) and their
    coefficients. Only reads the sources, coefficients and shape parameters.
    """
    def __init__(self, sources: ObservationSet,
                 coefficients: np.ndarray,
                 shape: ShapeParameters,
                 normalization: NormalizationCoefficients,
                 geographic: bool = False,
                 options: Optional[EvaluationOptions] = None):

        coefficients = np.asarray(coefficients, dtype=float)
        if coefficients.size != 2 * sources.size:
            raise GridderException(f'Expected {2 * sources.size} coefficients for {sources.size} sources '
                                   f'but got {coefficients.size}')

        self.xs = np.ascontiguousarray(sources.x)
        self.ys = np.ascontiguousarray(sources.y)
        self.alpha_x = np.ascontiguousarray(coefficients[:sources.size])
        self.alpha_y = np.ascontiguousarray(coefficients[sources.size:])
        self.shape = shape
        self.normalization = normalization
        self.geographic = geographic
        self.options = options if options is not None else EvaluationOptions()

    def evaluate_points(self, x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """u, v in physical units at the points x, y"""
        x = np.ascontiguousarray(x, dtype=float).ravel()
        y = np.ascontiguousarray(y, dtype=float).ravel()
        m = x.size

        u = np.empty(m)
        v = np.empty(m)

        if self.options.threads:
            numba.set_num_threads(min(self.options.threads, numba.config.NUMBA_NUM_THREADS))

        chunk = self.options.chunk_size
        with tqdm(total=m, disable=not self.options.progress, ncols=100, desc=' -- Evaluating') as pbar:
            for start in range(0, m, chunk):
                end = min(start + chunk, m)
                u[start:end], v[start:end] = evaluate_kernel(x[start:end], y[start:end],
                                                             self.xs, self.ys, self.alpha_x, self.alpha_y,
                                                             self.shape.epsilon_term, self.shape.fudge,
                                                             self.geographic)
                pbar.update(end - start)

        return restore_normalization(x, y, u, v, self.normalization)

    def evaluate(self, locations: OutputLocations) -> Union[GridField, PointField]:
        x, y = locations.coordinates()
        logger.info(f'Evaluate spline at {locations.size} output locations')
        u, v = self.evaluate_points(x, y)
        return locations.assemble(u, v)
