"""
Unit tests for the text tables and netCDF grids.
"""

import numpy as np
import pytest
from netCDF4 import Dataset

from gpsgrid.gridder.core.type_declarations import Registration, DataQualityError
from gpsgrid.gridder.core.data_classes import EigenSpectrum, PointField
from gpsgrid.gridder.data.tables import (read_observation_table, read_node_table, write_point_table,
                                         write_eigenvalues)
from gpsgrid.gridder.data.grid_files import write_grid, read_mask_grid
from gpsgrid.gridder.evaluation.output_locations import RegularLattice, MaskedLattice, OutputLocations


class TestTables:
    """Test reading and writing of the text tables."""

    def test_read_observations_skips_headers(self, tmp_path):
        filename = tmp_path / 'data.txt'
        filename.write_text('# x y u v\n'
                            '0 0 1.5 2.5\n'
                            '> segment\n'
                            '1 2 -1 0.25\n')

        table = read_observation_table(str(filename))
        np.testing.assert_allclose(table, [[0, 0, 1.5, 2.5], [1, 2, -1, 0.25]])

    def test_weighted_table_needs_six_columns(self, tmp_path):
        filename = tmp_path / 'data.txt'
        filename.write_text('0 0 1 1\n1 1 2 2\n')
        with pytest.raises(DataQualityError):
            read_observation_table(str(filename), weighted=True)

    def test_nodes_and_points(self, tmp_path):
        filename = tmp_path / 'nodes.txt'
        filename.write_text('5 1 9\n2 3 9\n')

        x, y = read_node_table(str(filename))
        np.testing.assert_allclose(x, [5, 2])
        np.testing.assert_allclose(y, [1, 3])

        output = tmp_path / 'points.txt'
        write_point_table(str(output), PointField(x, y, x * 2.0, y - 1.0))
        np.testing.assert_allclose(np.loadtxt(output), [[5, 1, 10, 0], [2, 3, 4, 2]])

    def test_eigenvalues(self, tmp_path):
        spectrum = EigenSpectrum(np.array([8.0, 4.0, 1.0]))

        ratios = tmp_path / 'ratios.txt'
        write_eigenvalues(str(ratios), spectrum)
        np.testing.assert_allclose(np.loadtxt(ratios), [[1, 1.0], [2, 0.5], [3, 0.125]])

        raw = tmp_path / 'raw.txt'
        write_eigenvalues(str(raw), spectrum, raw=True)
        np.testing.assert_allclose(np.loadtxt(raw)[:, 1], [8.0, 4.0, 1.0])


class TestGridFiles:
    """Test the netCDF grid output and the mask input."""

    @staticmethod
    def make_field(registration=Registration.GRIDLINE):
        lattice = RegularLattice.from_region([0, 4, 10, 12], [1, 0.5], registration)
        x, y = lattice.coordinates()
        return lattice, lattice.assemble(x + y, x - y)

    def test_single_file(self, tmp_path):
        lattice, field = self.make_field()
        filename = str(tmp_path / 'field.nc')

        assert write_grid(filename, field, metadata={'poisson_ratio': 0.25}) == [filename]

        with Dataset(filename) as nc:
            assert nc.node_offset == 0
            assert nc.poisson_ratio == 0.25
            np.testing.assert_allclose(nc.variables['x'][:], lattice.x_nodes)
            np.testing.assert_allclose(nc.variables['u'][:], field.u, rtol=1e-6)
            np.testing.assert_allclose(nc.variables['v'][:], field.v, rtol=1e-6)

    def test_one_file_per_component(self, tmp_path):
        _, field = self.make_field()
        template = str(tmp_path / 'field_%s.nc')

        written = write_grid(template, field, geographic=True)

        assert written == [template % 'u', template % 'v']
        with Dataset(template % 'v') as nc:
            assert 'lon' in nc.variables and 'lat' in nc.variables
            np.testing.assert_allclose(nc.variables['z'][:], field.v, rtol=1e-6)

    @pytest.mark.parametrize('registration', [Registration.GRIDLINE, Registration.PIXEL])
    def test_mask_round_trip(self, tmp_path, registration):
        lattice, field = self.make_field(registration)
        field.u[1, 2] = np.nan
        filename = str(tmp_path / 'mask.nc')
        write_grid(filename, field)

        region, increment, reg, values = read_mask_grid(filename)

        assert reg == registration
        np.testing.assert_allclose(region, [0, 4, 10, 12])
        np.testing.assert_allclose(increment, [1, 0.5])
        assert np.isnan(values[1, 2])

        locations = OutputLocations.from_options(region, increment, reg, mask=values)
        assert isinstance(locations, MaskedLattice)
        assert locations.size == lattice.size - 1

    def test_mask_registration_on_the_variable(self, tmp_path):
        filename = str(tmp_path / 'pixel_mask.nc')
        with Dataset(filename, 'w') as nc:
            nc.createDimension('y', 2)
            nc.createDimension('x', 3)
            nc.createVariable('y', 'f8', ('y',))[:] = [10.25, 10.75]
            nc.createVariable('x', 'f8', ('x',))[:] = [0.5, 1.5, 2.5]
            z = nc.createVariable('z', 'f4', ('y', 'x'))
            z.node_offset = 1
            z[:] = np.ones((2, 3))

        region, increment, reg, values = read_mask_grid(filename)

        assert reg == Registration.PIXEL
        np.testing.assert_allclose(region, [0, 3, 10, 11])
        np.testing.assert_allclose(increment, [1, 0.5])
        assert values.shape == (2, 3)
