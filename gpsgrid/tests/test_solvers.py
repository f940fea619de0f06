"""
Unit tests for the solution strategies and the eigenvalue cutoff rules.
"""

import numpy as np
import pytest

from gpsgrid.elasticity.green_func import ShapeParameters
from gpsgrid.gridder.core.type_declarations import (SolverType, CutoffType, FudgeMode, ConfigurationError,
                                                    SingularSystemError)
from gpsgrid.gridder.core.data_classes import SolverOptions
from gpsgrid.gridder.data.observations import ObservationSet
from gpsgrid.gridder.least_squares.design_matrix import LinearSystem, build_linear_system
from gpsgrid.gridder.least_squares.eigen_cutoff import (EigenCutoff, RatioCutoff, CountCutoff, VarianceCutoff,
                                                        explained_variance)
from gpsgrid.gridder.least_squares.solvers import (SolverStrategy, GaussJordanSolver, SvdSolver)


def three_point_system():
    obs = ObservationSet([0.0, 1.0, 0.2], [0.0, 0.1, 1.0], [1.0, -0.5, 0.25], [0.3, 0.7, -1.0])
    shape = ShapeParameters.from_poisson(0.25, FudgeMode.RELATIVE, 0.01, r_min=1.0)
    return build_linear_system(obs, shape)


class TestEigenCutoff:
    """Test the selection rules of the SVD solver."""

    S = np.array([4.0, 2.0, 1.0, 0.0])

    def test_ratio(self):
        assert RatioCutoff(0.3).select(self.S) == 2
        assert RatioCutoff(0.0).select(self.S) == 3
        assert not RatioCutoff(0.0).is_truncating
        assert RatioCutoff(1e-6).is_truncating

    def test_count_is_clipped(self):
        assert CountCutoff(2).select(self.S) == 2
        assert CountCutoff(10).select(self.S) == 3

    def test_variance(self):
        s = np.array([3.0, 2.0, 1.0])
        # cumulative 64.3 %, 92.9 %, 100 %
        assert VarianceCutoff(50.0).select(s) == 1
        assert VarianceCutoff(90.0).select(s) == 2
        assert VarianceCutoff(100.0).select(s) == 3

    def test_explained_variance(self):
        np.testing.assert_allclose(explained_variance(np.array([3.0, 2.0, 1.0])),
                                   100.0 * np.array([9.0, 13.0, 14.0]) / 14.0)

    def test_variance_above_100_is_rejected(self):
        with pytest.raises(ConfigurationError, match='cannot exceed 100%'):
            EigenCutoff.create_instance('variance', 101.0)

    @pytest.mark.parametrize('cutoff_type, value', [('count', 0), ('ratio', -0.5), ('variance', 0.0)])
    def test_invalid_values(self, cutoff_type, value):
        with pytest.raises(ConfigurationError):
            EigenCutoff.create_instance(cutoff_type, value)

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError):
            EigenCutoff.create_instance('median', 1.0)

    def test_create_instance_types(self):
        assert isinstance(EigenCutoff.create_instance(CutoffType.COUNT, 5.0), CountCutoff)
        assert EigenCutoff.create_instance('count', 5.0).value == 5
        assert EigenCutoff.create_instance('ratio', 0.1).to_dict() == {'type': 'ratio', 'value': 0.1}


class TestGaussJordan:
    """Test the direct solver."""

    def test_matches_numpy(self):
        rng = np.random.default_rng(1)
        a = rng.normal(size=(6, 6)) + 6.0 * np.eye(6)
        b = rng.normal(size=6)
        expected = np.linalg.solve(a, b)

        system = LinearSystem(3)
        system.matrix[:] = a
        system.rhs[:] = b
        result = GaussJordanSolver(SolverOptions()).solve(system)

        assert result.n_used == 6
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-10)

    def test_singular_matrix(self):
        system = LinearSystem(1)
        system.matrix[:] = [[1.0, 2.0], [2.0, 4.0]]
        system.rhs[:] = [1.0, 2.0]

        with pytest.raises(SingularSystemError, match='duplicate'):
            GaussJordanSolver(SolverOptions()).solve(system)

    def test_zero_matrix(self):
        system = LinearSystem(2)
        system.rhs[:] = 1.0

        with pytest.raises(SingularSystemError, match='equation 0'):
            GaussJordanSolver(SolverOptions()).solve(system)

    def test_duplicate_constraints_are_singular(self):
        obs = ObservationSet([0.0, 1.0, 1.0], [0.0, 0.0, 0.0], [1.0, 2.0, 2.0], [0.0, 0.0, 0.0])
        shape = ShapeParameters.from_poisson(0.25, FudgeMode.ABSOLUTE, 0.01)

        with pytest.raises(SingularSystemError, match='duplicate'):
            GaussJordanSolver(SolverOptions()).solve(build_linear_system(obs, shape))

    def test_does_not_tolerate_duplicates(self):
        assert not GaussJordanSolver(SolverOptions()).tolerates_duplicates


class TestSvdSolver:
    """Test the truncated SVD solver."""

    def test_equivalent_to_gauss_jordan(self):
        system = three_point_system()

        direct = GaussJordanSolver(SolverOptions()).solve(system.copy())
        svd = SvdSolver(SolverOptions(solver_type=SolverType.SVD)).solve(system.copy())

        assert svd.n_used == 6
        np.testing.assert_allclose(svd.coefficients, direct.coefficients, rtol=1e-8, atol=1e-10)
        np.testing.assert_allclose(system.matrix @ direct.coefficients, system.rhs, atol=1e-10)

    def test_variance_cutoff_is_monotonic(self, scattered_observations):
        shape = ShapeParameters.from_poisson(0.25, FudgeMode.ABSOLUTE, 1.0)
        system = build_linear_system(scattered_observations, shape)

        used = []
        for percent in (25.0, 50.0, 80.0, 95.0, 99.0, 100.0):
            options = SolverOptions(solver_type=SolverType.SVD, cutoff=VarianceCutoff(percent))
            result = SvdSolver(options).solve(system.copy())
            assert result.explained_variance >= percent - 1e-9
            used.append(result.n_used)

        assert used == sorted(used)
        assert used[-1] <= system.size

    def test_count_cutoff(self):
        options = SolverOptions(solver_type=SolverType.SVD, cutoff=CountCutoff(2), report_eigenvalues=True)
        result = SvdSolver(options).solve(three_point_system())

        assert result.n_used == 2
        assert result.n_total == 6
        assert result.spectrum.singular_values.size == 6
        assert np.all(np.diff(result.spectrum.singular_values) <= 0.0)
        assert result.spectrum.ratios[0] == 1.0

    def test_eigenvalues_only(self):
        options = SolverOptions(solver_type=SolverType.SVD, eigenvalues_only=True)
        result = SvdSolver(options).solve(three_point_system())

        assert not result.solved
        assert result.spectrum is not None
        table = result.spectrum.as_table()
        np.testing.assert_array_equal(table[:, 0], np.arange(1, 7))

    def test_truncating_cutoff_tolerates_duplicates(self):
        options = SolverOptions(solver_type=SolverType.SVD, cutoff=RatioCutoff(1e-6))
        assert SvdSolver(options).tolerates_duplicates
        assert not SvdSolver(SolverOptions(solver_type=SolverType.SVD)).tolerates_duplicates


class TestSolverStrategy:
    """Test the strategy factory."""

    def test_create_instance(self):
        assert isinstance(SolverStrategy.create_instance(SolverOptions()), GaussJordanSolver)
        assert isinstance(SolverStrategy.create_instance(SolverOptions(solver_type='svd')), SvdSolver)
