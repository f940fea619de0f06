"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 11:02 AM

Vector observations (x, y, u, v [, weight_u, weight_v]) and the scan that removes
redundant constraints before the linear system is built.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)

# app
from ...elasticity.distance import radius
from ..core.type_declarations import WeightMode, DataQualityError
from ..core.data_classes import DuplicateReport

# separations below this are considered the same location
DUPLICATE_DISTANCE_TOL = 1.0e-8
# observations closer than this (relative) are considered identical
DUPLICATE_VALUE_RTOL = 1.0e-12
DUPLICATE_VALUE_ATOL = 1.0e-15


def _as_readonly(values) -> np.ndarray:
    values = np.array(values, dtype=float).ravel()
    values.setflags(write=False)
    return values


@dataclass(frozen=True)
class ObservationSet:
    """
    Immutable set of vector observations

    The position of an observation in the set is its identity: the same order is used
    for the rows of the linear system, the fitted coefficients and the evaluation.
    """
    x: np.ndarray
    y: np.ndarray
    u: np.ndarray
    v: np.ndarray
    weight_u: Optional[np.ndarray] = None
    weight_v: Optional[np.ndarray] = None

    def __post_init__(self):
        for name in ('x', 'y', 'u', 'v'):
            object.__setattr__(self, name, _as_readonly(getattr(self, name)))

        n = self.x.size
        if not (self.y.size == n and self.u.size == n and self.v.size == n):
            raise DataQualityError('x, y, u and v must have the same number of elements')

        if (self.weight_u is None) != (self.weight_v is None):
            raise DataQualityError('Weights must be given for both components or for none')

        if self.weight_u is not None:
            object.__setattr__(self, 'weight_u', _as_readonly(self.weight_u))
            object.__setattr__(self, 'weight_v', _as_readonly(self.weight_v))
            if self.weight_u.size != n or self.weight_v.size != n:
                raise DataQualityError('Weights must have the same number of elements as the observations')
            if np.any(~np.isfinite(self.weight_u)) or np.any(~np.isfinite(self.weight_v)) or \
                    np.any(self.weight_u <= 0) or np.any(self.weight_v <= 0):
                raise DataQualityError('Weights must be finite and positive')

        if not (np.all(np.isfinite(self.x)) and np.all(np.isfinite(self.y)) and
                np.all(np.isfinite(self.u)) and np.all(np.isfinite(self.v))):
            raise DataQualityError('Observations contain NaN or infinite values')

    def __len__(self) -> int:
        return self.x.size

    @property
    def size(self) -> int:
        return self.x.size

    @property
    def weighted(self) -> bool:
        return self.weight_u is not None

    def subset(self, index) -> 'ObservationSet':
        index = np.asarray(index, dtype=int)
        return ObservationSet(self.x[index], self.y[index], self.u[index], self.v[index],
                              None if self.weight_u is None else self.weight_u[index],
                              None if self.weight_v is None else self.weight_v[index])

    def with_values(self, u: np.ndarray, v: np.ndarray) -> 'ObservationSet':
        """same locations and weights, different observations"""
        return replace(self, u=u, v=v)

    @classmethod
    def from_records(cls, records: np.ndarray, weight_mode: WeightMode = WeightMode.NONE) -> 'ObservationSet':
        """
        Build the set from an (n x 4) or (n x 6) array of x y u v [wu wv] records

        With WeightMode.SIGMA the last two columns are data errors and the weights are
        1/sigma; with WeightMode.WEIGHT they are used as given.
        """
        records = np.atleast_2d(np.asarray(records, dtype=float))

        if records.size == 0:
            raise DataQualityError('No data constraints were provided')

        ncols = 6 if weight_mode != WeightMode.NONE else 4
        if records.shape[1] < ncols:
            raise DataQualityError(f'Expected at least {ncols} columns (x y u v{" wu wv" if ncols == 6 else ""}) '
                                   f'but got {records.shape[1]}')

        weight_u = weight_v = None
        if weight_mode != WeightMode.NONE:
            weight_u = records[:, 4]
            weight_v = records[:, 5]
            if weight_mode == WeightMode.SIGMA:
                if np.any(weight_u <= 0) or np.any(weight_v <= 0):
                    raise DataQualityError('Data errors (sigmas) must be positive to be turned into weights')
                weight_u = 1.0 / weight_u
                weight_v = 1.0 / weight_v

        return cls(records[:, 0], records[:, 1], records[:, 2], records[:, 3], weight_u, weight_v)


class DuplicateResolver:
    """
    Scan observations in input order and compare each one against the ones already kept

    - same location, same observation: the new record is dropped
    - same location, different observation: both are kept and reported as a conflict,
      they produce a singular system unless the SVD solver truncates the spectrum
    """
    def __init__(self, geographic: bool = False, distance_tolerance: float = DUPLICATE_DISTANCE_TOL):
        self.geographic = geographic
        self.distance_tolerance = distance_tolerance

    @staticmethod
    def same_observation(u0: float, v0: float, u1: float, v1: float) -> bool:
        return bool(np.isclose(u0, u1, rtol=DUPLICATE_VALUE_RTOL, atol=DUPLICATE_VALUE_ATOL) and
                    np.isclose(v0, v1, rtol=DUPLICATE_VALUE_RTOL, atol=DUPLICATE_VALUE_ATOL))

    def resolve(self, observations: ObservationSet) -> Tuple[ObservationSet, DuplicateReport]:
        n = observations.size
        report = DuplicateReport(n_read=n)

        x, y, u, v = observations.x, observations.y, observations.u, observations.v

        kept = np.empty(n, dtype=int)
        m = 0
        for k in range(n):
            skip = False
            if m:
                idx = kept[:m]
                r = radius(x[idx], y[idx], x[k], y[k], self.geographic)
                coincident = r < self.distance_tolerance

                distinct = r[~coincident]
                if distinct.size:
                    report.r_min = min(report.r_min, float(distinct.min()))
                    report.r_max = max(report.r_max, float(distinct.max()))

                for i in idx[coincident]:
                    if self.same_observation(u[k], v[k], u[i], v[i]):
                        logger.info(f'Data constraint {k} is identical to {i} and will be skipped')
                        skip = True
                        break
                    else:
                        logger.warning(f'Data constraint {k} and {i} occupy the same location but differ in '
                                       f'observation ({u[k]:.12g}/{u[i]:.12g} vs {v[k]:.12g}/{v[i]:.12g})')
                        report.n_duplicates += 1
                        report.duplicate_pairs.append((k, int(i)))

            if skip:
                report.n_skipped += 1
                continue

            kept[m] = k
            m += 1

        report.n_retained = m

        logger.info(f'Found {m} unique data constraints')
        if report.n_skipped:
            logger.info(f'Skipped {report.n_skipped} data constraints as duplicates')
        logger.info(f'Distance between closest constraints = {report.r_min:.12g}')
        logger.info(f'Distance between distant constraints = {report.r_max:.12g}')
        if report.n_duplicates:
            logger.warning(f'Found {report.n_duplicates} data constraint duplicates with different '
                           f'observation values')

        return observations.subset(kept[:m]), report
