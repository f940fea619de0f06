"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 3:10 PM

Gridding of 2-D vector data (e.g. GPS horizontal velocities) using the coupled Green's
functions of a thin elastic sheet:

Sandwell, D. T., and P. Wessel (2016), Interpolation of 2-D vector data using
constraints from elasticity, Geophys. Res. Lett., 43, 10,703-10,709,
doi:10.1002/2016GL070340.

usage:
    config = GridderConfig(custom_config={'solver': {'solver_type': 'svd',
                                                     'cutoff': {'type': 'variance', 'value': 95}}})
    gridder = GpsGridder(config)
    result = gridder.grid(records, RegularLattice.from_region([0, 10, 0, 10], [0.5]))
    result.field.u, result.field.v
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging

import numpy as np

logger = logging.getLogger(__name__)

# app
from ...elasticity.distance import wrap_longitudes
from ...elasticity.green_func import ShapeParameters
from ..core.gridder_config import GridderConfig
from ..core.type_declarations import GridderException, DuplicateConstraintError
from ..core.data_classes import (NormalizationCoefficients, DuplicateReport, SolverResult, EigenSpectrum,
                                 EvaluationOptions, GridField, PointField)
from ..data.observations import ObservationSet, DuplicateResolver
from ..data.normalization import normalize_observations
from ..least_squares.design_matrix import build_linear_system
from ..least_squares.solvers import SolverStrategy
from ..evaluation.field_evaluator import FieldEvaluator
from ..evaluation.output_locations import OutputLocations


class GridderModel:
    """
    The fitted field: the retained (normalized) data constraints, one pair of
    coefficients per constraint and everything needed to evaluate it.
    """
    def __init__(self,
                 sources: ObservationSet,
                 solution: SolverResult,
                 normalization: NormalizationCoefficients,
                 shape: ShapeParameters,
                 geographic: bool = False,
                 report: Optional[DuplicateReport] = None):
        self.sources = sources
        self.solution = solution
        self.normalization = normalization
        self.shape = shape
        self.geographic = geographic
        self.report = report

    @property
    def solved(self) -> bool:
        return self.solution.solved

    @property
    def coefficients(self) -> Optional[np.ndarray]:
        return self.solution.coefficients

    @property
    def alpha_x(self) -> np.ndarray:
        self._check_solved()
        return self.coefficients[:self.sources.size]

    @property
    def alpha_y(self) -> np.ndarray:
        self._check_solved()
        return self.coefficients[self.sources.size:]

    def _check_solved(self) -> None:
        if not self.solved:
            raise GridderException('The model has no coefficients (only the eigenvalues were computed)')

    def evaluator(self, options: Optional[EvaluationOptions] = None) -> FieldEvaluator:
        self._check_solved()
        return FieldEvaluator(self.sources, self.coefficients, self.shape, self.normalization,
                              self.geographic, options)

    def evaluate(self, locations: OutputLocations,
                 options: Optional[EvaluationOptions] = None) -> Union[GridField, PointField]:
        return self.evaluator(options).evaluate(locations)

    def evaluate_points(self, x, y, options: Optional[EvaluationOptions] = None) -> Tuple[np.ndarray, np.ndarray]:
        return self.evaluator(options).evaluate_points(x, y)


@dataclass
class GridderResult:
    report: DuplicateReport
    model: GridderModel
    field: Optional[Union[GridField, PointField]] = None

    @property
    def solution(self) -> SolverResult:
        return self.model.solution

    @property
    def spectrum(self) -> Optional[EigenSpectrum]:
        return self.model.solution.spectrum


class GpsGridder:
    """Runs ingestion, normalization, system assembly, solution and evaluation"""

    def __init__(self, config: Optional[GridderConfig] = None):
        self.config = config if config is not None else GridderConfig()
        self.config.validate()

        # the solution strategy is decided once
        self.solver = SolverStrategy.create_instance(self.config.solver)

        logger.info(f'Gridder configured with {self.config.describe()}')

    def ingest(self, observations: Union[np.ndarray, ObservationSet]) -> Tuple[ObservationSet, DuplicateReport]:
        """Turn records into an observation set and remove redundant constraints"""
        if not isinstance(observations, ObservationSet):
            observations = ObservationSet.from_records(observations, self.config.weight_mode)

        if observations.size == 0:
            raise GridderException('No data constraints were provided')

        if self.config.geographic and self.config.region is not None:
            observations = ObservationSet(wrap_longitudes(observations.x, self.config.region[0],
                                                          self.config.region[1]),
                                          observations.y, observations.u, observations.v,
                                          observations.weight_u, observations.weight_v)

        resolver = DuplicateResolver(geographic=self.config.geographic)
        return resolver.resolve(observations)

    def fit(self, observations: Union[np.ndarray, ObservationSet]) -> GridderModel:
        observations, report = self.ingest(observations)

        if report.has_conflicts and not self.solver.tolerates_duplicates:
            raise DuplicateConstraintError(f'Found {report.n_duplicates} pair(s) of data constraints at the same '
                                           f'location with different observations; reconcile duplicates first '
                                           f'(e.g. by block averaging) or solve with SVD and a positive '
                                           f'eigenvalue cutoff')

        normalized, coefficients = normalize_observations(observations, self.config.normalization.mode)

        elasticity = self.config.elasticity
        shape = ShapeParameters.from_poisson(elasticity.poisson_ratio, elasticity.fudge_mode,
                                             elasticity.fudge_value, r_min=report.r_min)
        logger.info(f"Poisson's ratio = {shape.poisson_ratio}, fudge = {shape.fudge:.6g}")

        system = build_linear_system(normalized, shape, self.config.geographic, self.config.solver.memory_limit_mb)
        solution = self.solver.solve(system)

        return GridderModel(normalized, solution, coefficients, shape, self.config.geographic, report)

    def grid(self, observations: Union[np.ndarray, ObservationSet],
             locations: Optional[OutputLocations] = None) -> GridderResult:
        """
        Fit the observations and evaluate the field at the locations

        If only the eigenvalues were requested (or no locations were given) the result
        carries no field.
        """
        model = self.fit(observations)

        field = None
        if model.solved and locations is not None:
            field = model.evaluate(locations, self.config.evaluation)

        return GridderResult(report=model.report, model=model, field=field)
