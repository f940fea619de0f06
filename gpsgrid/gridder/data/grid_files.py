"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 3:45 PM

netCDF grids: output of the gridded u and v components and input of the mask grid
that defines (and restricts) the output lattice.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple
import logging

import numpy as np
from netCDF4 import Dataset

logger = logging.getLogger(__name__)

# app
from ..core.type_declarations import GridderException, ConfigurationError, Registration
from ..core.data_classes import GridField

# coordinate variable names accepted in input grids (x, y)
COORDINATE_NAMES = (('x', 'y'), ('lon', 'lat'), ('longitude', 'latitude'))


def _define_coordinates(nc: Dataset, field: GridField, geographic: bool) -> Tuple[str, str]:
    xname, yname = ('lon', 'lat') if geographic else ('x', 'y')

    nc.createDimension(yname, field.y.size)
    nc.createDimension(xname, field.x.size)

    y_var = nc.createVariable(yname, 'f8', (yname,))
    y_var.long_name = 'latitude' if geographic else 'y'
    y_var.axis = 'Y'
    if geographic:
        y_var.units = 'degrees_north'
    y_var[:] = field.y

    x_var = nc.createVariable(xname, 'f8', (xname,))
    x_var.long_name = 'longitude' if geographic else 'x'
    x_var.axis = 'X'
    if geographic:
        x_var.units = 'degrees_east'
    x_var[:] = field.x

    return xname, yname


def _write_attributes(nc: Dataset, field: GridField, metadata: Dict) -> None:
    nc.Conventions = 'CF-1.8'
    nc.title = metadata.get('title', 'Gridded 2-D vector data')
    nc.source = 'Elastic interpolation (Sandwell & Wessel 2016)'
    nc.references = 'Sandwell & Wessel (2016) doi:10.1002/2016GL070340'
    nc.history = f'{datetime.now().isoformat()}: Created by gpsgrid'
    nc.node_offset = int(field.registration)

    for key in ('poisson_ratio', 'fudge', 'solver', 'normalization', 'eigenvalues'):
        if key in metadata:
            setattr(nc, key, metadata[key])


def _write_component(nc: Dataset, name: str, dims: Tuple[str, str], values: np.ndarray, units: str,
                     long_name: str) -> None:
    var = nc.createVariable(name, 'f4', dims, fill_value=np.nan, zlib=True, complevel=4)
    var.long_name = long_name
    if units:
        var.units = units
    var[:] = values


def write_grid(filename: str,
               field: GridField,
               geographic: bool = False,
               metadata: Optional[Dict] = None) -> List[str]:
    """
    Write the u and v components of a gridded field

    Parameters
    ----------
    filename : str
        Output file name. If it contains %s, one file per component is written with the
        component name (u or v) substituted and the values stored in variable z.
        Otherwise both components go to one file as variables u and v.
    field : GridField
        The evaluated field, rows from south to north
    geographic : bool
        Name the coordinates lon/lat instead of x/y
    metadata : dict, optional
        title, units and the fit parameters (poisson_ratio, fudge, solver, normalization)

    Returns
    -------
    list with the names of the files written
    """
    if metadata is None:
        metadata = {}

    units = metadata.get('units', '')
    components = (('u', field.u, 'x-component of vector field'),
                  ('v', field.v, 'y-component of vector field'))

    if '%s' in filename:
        targets = [(filename % name, [(name, values, long_name)]) for name, values, long_name in components]
    else:
        targets = [(filename, list(components))]

    written = []
    for target, content in targets:
        logger.info(f'Writing grid file: {target}')
        try:
            with Dataset(target, 'w', format='NETCDF4') as nc:
                _write_attributes(nc, field, metadata)
                xname, yname = _define_coordinates(nc, field, geographic)
                for name, values, long_name in content:
                    _write_component(nc, 'z' if len(content) == 1 else name, (yname, xname),
                                     values, units, long_name)
        except OSError as e:
            raise GridderException(f'Could not write grid file {target}: {e}') from e

        written.append(target)

    return written


def read_mask_grid(filename: str) -> Tuple[List[float], List[float], Registration, np.ndarray]:
    """
    Read a grid that defines the output lattice; nodes holding NaN are not evaluated

    Returns
    -------
    region : [west, east, south, north]
    increment : [x_inc, y_inc]
    registration : Registration (node_offset of the variable or of the file, gridline if absent)
    values : 2-D array with rows going from south to north
    """
    logger.info(f'Reading mask grid: {filename}')

    try:
        nc = Dataset(filename, 'r')
    except OSError as e:
        raise ConfigurationError(f'Could not open mask grid {filename}: {e}') from e

    with nc:
        for xname, yname in COORDINATE_NAMES:
            if xname in nc.variables and yname in nc.variables:
                break
        else:
            raise ConfigurationError(f'Mask grid {filename} must have x/y or lon/lat coordinates')

        x = np.asarray(nc.variables[xname][:], dtype=float)
        y = np.asarray(nc.variables[yname][:], dtype=float)

        candidates = [name for name, var in nc.variables.items() if var.ndim == 2]
        if not candidates:
            raise ConfigurationError(f'Mask grid {filename} has no 2-D variable')

        var = nc.variables[candidates[0]]
        values = np.ma.filled(var[:].astype(float), np.nan)
        if var.dimensions[0] == xname:
            values = values.T

        # the variable attribute takes precedence over the global one
        node_offset = getattr(var, 'node_offset', getattr(nc, 'node_offset', Registration.GRIDLINE))
        registration = Registration(int(node_offset))

    if x.size < 2 or y.size < 2:
        raise ConfigurationError(f'Mask grid {filename} needs at least two nodes in each direction')

    # store rows from south to north
    if y[1] < y[0]:
        y = y[::-1]
        values = values[::-1, :]

    x_inc = float((x[-1] - x[0]) / (x.size - 1))
    y_inc = float((y[-1] - y[0]) / (y.size - 1))

    if registration == Registration.PIXEL:
        region = [x[0] - 0.5 * x_inc, x[-1] + 0.5 * x_inc, y[0] - 0.5 * y_inc, y[-1] + 0.5 * y_inc]
    else:
        region = [x[0], x[-1], y[0], y[-1]]

    logger.info(f'Mask grid size: {y.size} x {x.size}, {int(np.count_nonzero(~np.isnan(values)))} nodes to evaluate')

    return [float(r) for r in region], [x_inc, y_inc], registration, values
