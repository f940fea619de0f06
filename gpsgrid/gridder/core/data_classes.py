"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 10:41 AM
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

# app
from ..core.type_declarations import (SolverType, FudgeMode, NormalizationMode,
                                      ConfigurationError)
from ..least_squares.eigen_cutoff import EigenCutoff, RatioCutoff, explained_variance


@dataclass
class BaseDataClass:
    """
    base class for data manipulated by user preventing adding non-existent elements to the class
    """
    def __post_init__(self):
        # after initialization
        self._allowed_attributes = {item for item in dir(self) if item[0] != '_'}

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, '_allowed_attributes') and name not in self._allowed_attributes:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'. ")
        super().__setattr__(name, value)


@dataclass
class ElasticityOptions(BaseDataClass):
    """Shape of the elastic sheet Green's functions"""
    poisson_ratio: float = 0.25
    fudge_mode: FudgeMode = FudgeMode.RELATIVE
    fudge_value: float = 0.01

    def __post_init__(self):
        super().__post_init__()
        if isinstance(self.fudge_mode, dict):
            self.fudge_mode = FudgeMode(self.fudge_mode['value'])
        elif isinstance(self.fudge_mode, str):
            self.fudge_mode = FudgeMode[self.fudge_mode.upper()]


@dataclass
class NormalizationOptions(BaseDataClass):
    """What to remove from the data before fitting (the mean is always removed)"""
    remove_trend: bool = True
    normalize_range: bool = True

    @property
    def mode(self) -> NormalizationMode:
        mode = NormalizationMode.MEAN
        if self.remove_trend:
            mode |= NormalizationMode.TREND
        if self.normalize_range:
            mode |= NormalizationMode.RANGE
        return mode


@dataclass
class SolverOptions(BaseDataClass):
    """Solver selection; the cutoff is only used by the SVD solver"""
    solver_type: SolverType = SolverType.GAUSS_JORDAN
    cutoff: EigenCutoff = field(default_factory=RatioCutoff)
    report_eigenvalues: bool = False
    eigenvalues_only: bool = False
    memory_limit_mb: Optional[float] = None

    def __post_init__(self):
        super().__post_init__()

        # Convert dict to custom objects
        if isinstance(self.solver_type, dict):
            self.solver_type = SolverType(self.solver_type['value'])
        elif isinstance(self.solver_type, str):
            self.solver_type = SolverType[self.solver_type.upper()]

        if isinstance(self.cutoff, dict):
            self.cutoff = EigenCutoff.create_instance(self.cutoff['type'], self.cutoff['value'])

    def validate(self) -> None:
        self.cutoff.validate()
        if self.eigenvalues_only and self.solver_type != SolverType.SVD:
            raise ConfigurationError('Eigenvalues can only be reported by the SVD solver')
        if self.memory_limit_mb is not None and self.memory_limit_mb <= 0:
            raise ConfigurationError(f'Memory limit must be positive (got {self.memory_limit_mb})')


@dataclass
class EvaluationOptions(BaseDataClass):
    """Controls for the parallel evaluation of the fitted field"""
    threads: int = 0
    chunk_size: int = 50000
    progress: bool = False

    def validate(self) -> None:
        if self.threads < 0:
            raise ConfigurationError(f'Number of threads cannot be negative (got {self.threads})')
        if self.chunk_size < 1:
            raise ConfigurationError(f'Evaluation chunk size must be at least 1 (got {self.chunk_size})')


@dataclass(frozen=True)
class NormalizationCoefficients:
    """
    Terms removed from the data before the fit, needed to restore the field:

    u(x,y) = u' * range_u + mean_u + slope_ux * (x - mean_x) + slope_uy * (y - mean_y)
    v(x,y) = v' * range_v + mean_v + slope_vx * (x - mean_x) + slope_vy * (y - mean_y)
    """
    mode: NormalizationMode = NormalizationMode.MEAN
    mean_x: float = 0.0
    mean_y: float = 0.0
    mean_u: float = 0.0
    mean_v: float = 0.0
    slope_ux: float = 0.0
    slope_uy: float = 0.0
    slope_vx: float = 0.0
    slope_vy: float = 0.0
    range_u: float = 1.0
    range_v: float = 1.0


@dataclass
class DuplicateReport:
    """Outcome of the duplicate constraint scan"""
    n_read: int = 0
    n_retained: int = 0
    n_skipped: int = 0
    n_duplicates: int = 0
    duplicate_pairs: List[Tuple[int, int]] = field(default_factory=list)
    r_min: float = np.inf
    r_max: float = -np.inf

    @property
    def has_conflicts(self) -> bool:
        return self.n_duplicates > 0


@dataclass(frozen=True)
class EigenSpectrum:
    """Singular values of the system matrix sorted from largest to smallest"""
    singular_values: np.ndarray

    @property
    def rank(self) -> np.ndarray:
        return np.arange(1, self.singular_values.size + 1)

    @property
    def ratios(self) -> np.ndarray:
        if self.singular_values.size == 0 or self.singular_values[0] == 0.0:
            return np.zeros_like(self.singular_values)
        return self.singular_values / self.singular_values[0]

    @property
    def explained_variance(self) -> np.ndarray:
        return explained_variance(self.singular_values)

    def as_table(self, raw: bool = False) -> np.ndarray:
        """(rank, value) pairs; value is the singular value if raw, else its ratio to the largest"""
        return np.column_stack([self.rank, self.singular_values if raw else self.ratios])


@dataclass
class SolverResult:
    """Coefficients alpha_x followed by alpha_y plus a summary of the solution"""
    coefficients: Optional[np.ndarray] = None
    n_used: int = 0
    n_total: int = 0
    explained_variance: float = 100.0
    spectrum: Optional[EigenSpectrum] = None

    @property
    def solved(self) -> bool:
        return self.coefficients is not None


@dataclass
class GridField:
    """u and v on a lattice, rows from south to north; NaN where not evaluated"""
    x: np.ndarray
    y: np.ndarray
    u: np.ndarray
    v: np.ndarray
    registration: int = 0


@dataclass
class PointField:
    """u and v at explicit locations, in the order they were given"""
    x: np.ndarray
    y: np.ndarray
    u: np.ndarray
    v: np.ndarray

    def as_table(self) -> np.ndarray:
        return np.column_stack([self.x, self.y, self.u, self.v])
