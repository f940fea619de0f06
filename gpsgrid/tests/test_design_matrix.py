"""
Unit tests for the assembly of the linear system.
"""

import tracemalloc

import numpy as np
import pytest

from gpsgrid.elasticity.distance import offset
from gpsgrid.elasticity.green_func import ShapeParameters, greens_functions
from gpsgrid.gridder.core.type_declarations import FudgeMode, GridderResourceError
from gpsgrid.gridder.data.observations import ObservationSet
from gpsgrid.gridder.least_squares import design_matrix
from gpsgrid.gridder.least_squares.design_matrix import LinearSystem, build_linear_system


@pytest.fixture
def shape():
    return ShapeParameters.from_poisson(0.25, FudgeMode.ABSOLUTE, 0.01)


class TestLinearSystem:
    """Test the block layout of the system matrix."""

    def test_block_accessors_are_views(self):
        system = LinearSystem(3)
        system.set_block(0, 2, 1.0, 2.0, 3.0)

        assert system.matrix[0, 2] == 1.0
        assert system.matrix[3, 5] == 2.0
        assert system.matrix[0, 5] == 3.0
        assert system.matrix[3, 2] == 3.0

        block = system.block(0, 2)
        assert (block.xx, block.yy, block.xy, block.yx) == (1.0, 2.0, 3.0, 3.0)

    def test_rhs_halves(self):
        system = LinearSystem(2)
        system.rhs_u[:] = [1.0, 2.0]
        system.rhs_v[:] = [3.0, 4.0]
        np.testing.assert_array_equal(system.rhs, [1.0, 2.0, 3.0, 4.0])

    def test_memory_footprint(self):
        assert LinearSystem.memory_footprint(10000) == 20000 * 20000 * 8

    def test_memory_limit(self):
        with pytest.raises(GridderResourceError):
            LinearSystem(1000, memory_limit_mb=1)

    def test_copy_is_independent(self):
        system = LinearSystem(2)
        other = system.copy()
        other.matrix[0, 0] = 5.0
        assert system.matrix[0, 0] == 0.0


class TestBuildLinearSystem:
    """Test the Green's function entries of the assembled system."""

    def test_entries_and_symmetry(self, scattered_observations, shape):
        obs = scattered_observations
        system = build_linear_system(obs, shape)

        np.testing.assert_allclose(system.matrix, system.matrix.T)

        j, i = 2, 7
        dx, dy = offset(obs.x[i], obs.y[i], obs.x[j], obs.y[j])
        gxx, gyy, gxy = greens_functions(float(dx), float(dy), shape.epsilon_term, shape.fudge)

        block = system.block(j, i)
        assert block.xx == pytest.approx(gxx)
        assert block.yy == pytest.approx(gyy)
        assert block.xy == pytest.approx(gxy)
        assert block.yx == pytest.approx(gxy)

        np.testing.assert_array_equal(system.rhs_u, obs.u)
        np.testing.assert_array_equal(system.rhs_v, obs.v)

    def test_weights_scale_rows_and_columns(self, shape):
        x = np.array([0.0, 1.0, 0.0])
        y = np.array([0.0, 0.0, 1.0])
        u = np.array([1.0, 2.0, 3.0])
        v = np.array([-1.0, 0.0, 1.0])
        wu = np.array([1.0, 2.0, 0.5])
        wv = np.array([3.0, 1.0, 1.0])

        plain = build_linear_system(ObservationSet(x, y, u, v), shape)
        weighted = build_linear_system(ObservationSet(x, y, u, v, wu, wv), shape)

        w = np.concatenate([wu, wv])
        np.testing.assert_allclose(weighted.matrix, plain.matrix * np.outer(w, w))
        np.testing.assert_allclose(weighted.rhs, plain.rhs * w)
        np.testing.assert_allclose(weighted.extract(np.ones(6)), w)

    def test_geographic_entries(self, shape):
        obs = ObservationSet(np.array([179.5, -179.0, 10.0]), np.array([10.0, 12.0, -5.0]),
                             np.zeros(3), np.zeros(3))
        system = build_linear_system(obs, shape, geographic=True)

        dx, dy = offset(obs.x[1], obs.y[1], obs.x[0], obs.y[0], geographic=True)
        gxx, gyy, gxy = greens_functions(float(dx), float(dy), shape.epsilon_term, shape.fudge)

        block = system.block(0, 1)
        assert block.xx == pytest.approx(gxx)
        assert block.yy == pytest.approx(gyy)
        assert block.xy == pytest.approx(gxy)

    def test_assembly_has_no_full_size_temporaries(self, shape):
        rng = np.random.default_rng(7)
        obs = ObservationSet(rng.uniform(0.0, 100.0, 300), rng.uniform(0.0, 100.0, 300),
                             rng.normal(size=300), rng.normal(size=300))
        # compile the kernel outside of the measurement
        build_linear_system(ObservationSet(obs.x[:3], obs.y[:3], obs.u[:3], obs.v[:3]), shape)

        tracemalloc.start()
        try:
            build_linear_system(obs, shape)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        assert peak < 1.25 * LinearSystem.memory_footprint(obs.size)

    def test_memory_error_during_assembly(self, scattered_observations, shape, monkeypatch):
        def exhausted(*args):
            raise MemoryError()

        monkeypatch.setattr(design_matrix, 'fill_greens_matrix', exhausted)

        with pytest.raises(GridderResourceError):
            build_linear_system(scattered_observations, shape)
