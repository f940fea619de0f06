"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 12:50 PM

The two ways of solving the gridding system. Both consume a LinearSystem and return
the coefficients alpha_x followed by alpha_y; nothing downstream depends on which
strategy produced them.
"""
from abc import ABC, abstractmethod
import logging
import warnings

import numpy as np
from scipy.linalg import svd, lu_factor, lu_solve, LinAlgError, LinAlgWarning

logger = logging.getLogger(__name__)

# app
from ..core.type_declarations import SolverType, SingularSystemError, DecompositionError
from ..core.data_classes import SolverOptions, SolverResult, EigenSpectrum
from .design_matrix import LinearSystem
from .eigen_cutoff import explained_variance

EPS = np.finfo(float).eps


def negligible_pivot(lu: np.ndarray, scale: float) -> int:
    """index of the first pivot of the LU factors below n * eps * max|A|, -1 if none"""
    tol = lu.shape[0] * EPS * scale
    small = np.flatnonzero(np.abs(np.diag(lu)) <= tol)
    return int(small[0]) if small.size else -1


class SolverStrategy(ABC):
    """Abstract base class for the solution strategies"""
    def __init__(self, options: SolverOptions):
        self.options = options

    @classmethod
    def create_instance(cls, options: SolverOptions) -> 'SolverStrategy':
        """Determine the type of object needed and return it to the caller"""

        if options.solver_type == SolverType.GAUSS_JORDAN:
            instance = GaussJordanSolver(options)
        elif options.solver_type == SolverType.SVD:
            instance = SvdSolver(options)
        else:
            raise ValueError(f"Solver type {options.solver_type} not implemented")

        return instance

    @property
    def description(self) -> str:
        return self.options.solver_type.description

    @property
    @abstractmethod
    def tolerates_duplicates(self) -> bool:
        """True if coincident constraints with different observations can be solved"""
        pass

    @abstractmethod
    def solve(self, system: LinearSystem) -> SolverResult:
        pass


class GaussJordanSolver(SolverStrategy):
    """Direct solution by Gauss elimination (LU factors); fails if the system is singular"""

    @property
    def tolerates_duplicates(self) -> bool:
        return False

    def solve(self, system: LinearSystem) -> SolverResult:
        logger.info('Solve linear equations by LU decomposition with partial pivoting')

        scale = float(np.max(np.abs(system.matrix))) if system.size else 0.0
        try:
            with warnings.catch_warnings():
                # exactly zero pivots are reported below with the data constraint guidance
                warnings.simplefilter('ignore', LinAlgWarning)
                lu, piv = lu_factor(system.matrix, overwrite_a=True)
        except (LinAlgError, ValueError) as e:
            raise DecompositionError(f'LU decomposition of the system matrix failed: {e}') from e

        status = 0 if scale == 0.0 else negligible_pivot(lu, scale)
        if status >= 0:
            raise SingularSystemError(f'The linear system is singular (negligible pivot at equation {status}). '
                                      f'You probably have duplicate or nearly duplicate data constraints: '
                                      f'preprocess your data to eliminate them (e.g. block averaging) or '
                                      f'solve with SVD and a positive eigenvalue cutoff')

        solution = lu_solve((lu, piv), system.rhs, overwrite_b=True)

        return SolverResult(coefficients=system.extract(solution),
                            n_used=system.size, n_total=system.size, explained_variance=100.0)


class SvdSolver(SolverStrategy):
    """Least squares solution keeping only the singular values selected by the cutoff"""

    @property
    def tolerates_duplicates(self) -> bool:
        return self.options.cutoff.is_truncating

    def solve(self, system: LinearSystem) -> SolverResult:
        logger.info('Solve linear equations by SVD')

        try:
            u, s, vt = svd(system.matrix, full_matrices=False, overwrite_a=True)
        except (LinAlgError, ValueError) as e:
            raise DecompositionError(f'Singular value decomposition of the system matrix failed: {e}') from e

        spectrum = None
        if self.options.report_eigenvalues or self.options.eigenvalues_only:
            spectrum = EigenSpectrum(singular_values=s.copy())

        if self.options.eigenvalues_only:
            logger.info('Eigenvalues computed, the system will not be solved')
            return SolverResult(coefficients=None, n_total=s.size, spectrum=spectrum)

        n_use = self.options.cutoff.select(s)
        if n_use == 0:
            raise SingularSystemError(f'No eigenvalues passed the {self.options.cutoff.cutoff_type.description} '
                                      f'cutoff of {self.options.cutoff.value}')

        # x = V * diag(1/s) * U' * b using the selected singular values only
        solution = vt[:n_use].T @ ((u[:, :n_use].T @ system.rhs) / s[:n_use])

        explained = float(explained_variance(s)[n_use - 1])
        logger.info(f'[{n_use} of {s.size} eigen-values used to explain {explained:.2f} % of data variance]')

        return SolverResult(coefficients=system.extract(solution), n_used=n_use, n_total=s.size,
                            explained_variance=explained, spectrum=spectrum)
