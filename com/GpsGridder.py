#!/usr/bin/env python

"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 4:05 PM

Interpolate 2-D vector data (e.g. GPS horizontal velocities) onto a lattice, a masked
lattice or a list of points using the coupled Green's functions of an elastic sheet
(Sandwell & Wessel, 2016).
"""

import argparse
import logging
import sys

# app
from gpsgrid.gridder.core.gridder_config import GridderConfig
from gpsgrid.gridder.core.gridder_engine import GpsGridder
from gpsgrid.gridder.core.logging_config import setup_gridder_logging
from gpsgrid.gridder.core.type_declarations import (GridderException, ConfigurationError, Registration,
                                                    SolverType, CutoffType, FudgeMode, WeightMode)
from gpsgrid.gridder.data.tables import (read_observation_table, read_node_table, write_point_table,
                                         write_eigenvalues)
from gpsgrid.gridder.data.grid_files import write_grid, read_mask_grid
from gpsgrid.gridder.core.data_classes import PointField
from gpsgrid.gridder.evaluation.output_locations import OutputLocations, MaskedLattice
from gpsgrid.Utils import add_version_argument, parse_slash_values, UtilsException

logger = logging.getLogger('gpsgrid')

# Map verbosity to logging levels
VERBOSITY_MAP = {
    'quiet': logging.CRITICAL,  # or logging.NOTSET to disable all
    'info': logging.INFO,
    'debug': logging.DEBUG
}

CUTOFF_MAP = {
    'n': CutoffType.COUNT,
    'v': CutoffType.VARIANCE
}


def parse_fudge(arg: str):
    """d<value> adds value to the squared distances, f<factor> uses factor times the shortest distance"""
    mode = {'d': FudgeMode.ABSOLUTE, 'f': FudgeMode.RELATIVE}.get(arg[:1])
    if mode is None:
        raise ConfigurationError(f'Fudge must be given as d<value> or f<factor> (got {arg})')
    try:
        return mode, float(arg[1:])
    except ValueError:
        raise ConfigurationError(f'Could not parse the fudge value in {arg}')


def parse_cutoff(arg: str):
    """
    [n|v]<cut>[/file]: n keeps the <cut> largest eigenvalues, v the ones that explain <cut> %
    of the variance, otherwise <cut> is the ratio to the largest eigenvalue. A negative
    <cut> only computes the eigenvalues (a file is then required).
    """
    cutoff_type = CUTOFF_MAP.get(arg[:1], CutoffType.RATIO)
    if cutoff_type != CutoffType.RATIO:
        arg = arg[1:]

    value, _, filename = arg.partition('/')
    try:
        value = float(value)
    except ValueError:
        raise ConfigurationError(f'Could not parse the eigenvalue cutoff in {arg}')

    eigenvalues_only = value < 0
    if eigenvalues_only:
        if not filename:
            raise ConfigurationError('A negative cutoff only reports eigenvalues and needs /file to write them')
        # any valid cutoff, it is never applied
        cutoff = {'type': 'ratio', 'value': 0.0}
    else:
        cutoff = {'type': cutoff_type.name.lower(), 'value': int(value) if cutoff_type == CutoffType.COUNT
                  else value}

    return cutoff, filename or None, eigenvalues_only


def build_config(args) -> dict:
    custom = {
        'geographic': args.geographic,
        'elasticity': {'poisson_ratio': args.poisson},
        'normalization': {'remove_trend': not args.leave_trend},
        'evaluation': {'threads': args.threads, 'progress': args.verbosity != 'quiet'}
    }

    if args.region:
        custom['region'] = parse_slash_values(args.region, 4)

    if args.fudge:
        mode, value = parse_fudge(args.fudge)
        custom['elasticity'].update({'fudge_mode': mode.name, 'fudge_value': value})

    if args.weights is not None:
        custom['weight_mode'] = 'weight' if args.weights == 'w' else 'sigma'

    if args.cutoff:
        cutoff, filename, eigenvalues_only = parse_cutoff(args.cutoff)
        custom['solver'] = {'solver_type': SolverType.SVD.name,
                            'cutoff': cutoff,
                            'report_eigenvalues': filename is not None,
                            'eigenvalues_only': eigenvalues_only}

    return custom


def build_locations(args):
    """returns the output locations (a lattice, a masked lattice or a list of nodes)"""
    if args.mask and args.nodes:
        raise ConfigurationError('Output nodes cannot be combined with a mask grid: use either -T or -N')

    if args.mask:
        if args.region or args.increment:
            raise ConfigurationError('The lattice is taken from the mask grid: do not combine -T with -R or -I')
        region, increment, registration, values = read_mask_grid(args.mask)
        return OutputLocations.from_options(region, increment, registration, mask=values)

    nodes = read_node_table(args.nodes) if args.nodes else None

    increment = parse_slash_values(args.increment, 2) if args.increment else None
    region = parse_slash_values(args.region, 4) if args.region and (increment or not nodes) else None

    registration = Registration.PIXEL if args.pixel else Registration.GRIDLINE
    return OutputLocations.from_options(region, increment, registration, nodes=nodes)


def apply_mask_region(config: GridderConfig, locations) -> None:
    """with -fg and -T, the data longitudes are brought into the range of the mask grid"""
    if config.geographic and config.region is None and isinstance(locations, MaskedLattice):
        lattice = locations.lattice
        config.apply_custom_config({'region': [lattice.west, lattice.east, lattice.south, lattice.north]})


def main():
    parser = argparse.ArgumentParser(description="Interpolate 2-D vector data using Green's functions for "
                                                 "an elastic sheet (Sandwell & Wessel, 2016)")

    parser.add_argument('table', type=str,
                        help='Whitespace separated table with x y u v [w_u w_v] records. Lines starting '
                             'with # or > are skipped')

    parser.add_argument('-G', '--outgrid', type=str, default=None, metavar='file',
                        help='Output file. For lattices, a netCDF grid with variables u and v, or one grid '
                             'per component if the name contains %%s (u and v are substituted and the values '
                             'are stored in z). With -N, a table with x y u v records')

    parser.add_argument('-R', '--region', type=str, default=None, metavar='west/east/south/north',
                        help='Region of the output lattice. With -fg, input longitudes are also brought '
                             'into this range')

    parser.add_argument('-I', '--increment', type=str, default=None, metavar='dx[/dy]',
                        help='Lattice increment')

    parser.add_argument('-r', '--pixel', action='store_true',
                        help='Use pixel registration (nodes on cell centers). Default is gridline')

    parser.add_argument('-T', '--mask', type=str, default=None, metavar='maskgrid',
                        help='netCDF grid that defines the lattice; nodes holding NaN are not evaluated')

    parser.add_argument('-N', '--nodes', type=str, default=None, metavar='nodefile',
                        help='Table with x y of arbitrary output locations')

    parser.add_argument('-S', '--poisson', type=float, default=0.25, metavar='nu',
                        help="Poisson's ratio of the elastic sheet. Default is 0.25")

    parser.add_argument('-F', '--fudge', type=str, default=None, metavar='d<value>|f<factor>',
                        help='Fudge term added to the squared distances: d<value> adds value, f<factor> adds '
                             'factor times the shortest inter-point distance. Default is f0.01')

    parser.add_argument('-C', '--cutoff', type=str, default=None, metavar='[n|v]cut[/file]',
                        help='Solve by SVD with an eigenvalue cutoff: cut is the ratio to the largest '
                             'eigenvalue, n<cut> keeps the cut largest ones and v<cut> the ones explaining cut %% '
                             'of the variance. /file writes the eigenvalues; a negative cut only writes them. '
                             'Default is to solve by Gauss-Jordan elimination')

    parser.add_argument('-L', '--leave_trend', action='store_true',
                        help='Do not remove the least squares plane from the data (only the mean)')

    parser.add_argument('-W', '--weights', nargs='?', const='s', default=None, choices=['s', 'w'],
                        help='Use the two extra columns as data errors (sigmas, weight = 1/sigma) or, with '
                             '-W w, as weights. Only has an effect with -C')

    parser.add_argument('-fg', '--geographic', action='store_true',
                        help='Input coordinates are longitude and latitude; distances in km on a flat Earth')

    parser.add_argument('-threads', '--threads', type=int, default=0,
                        help='Number of threads used to evaluate the output. Default is all available')

    parser.add_argument('-verbosity', '--verbosity',
                        choices=['quiet', 'info', 'debug'], default='info',
                        help="Determine how detailed the execution messages should be. "
                             "Default is 'info'")

    add_version_argument(parser)

    args = parser.parse_args()

    setup_gridder_logging(level=VERBOSITY_MAP[args.verbosity])

    try:
        # everything that can be checked is checked before reading data
        config = GridderConfig(custom_config=build_config(args), silent=args.verbosity == 'quiet')
        setup_gridder_logging(level=VERBOSITY_MAP[args.verbosity])

        if config.solver.eigenvalues_only:
            locations = None
        else:
            locations = build_locations(args)
            if not args.outgrid:
                raise ConfigurationError('Must specify the output file (-G)')
            apply_mask_region(config, locations)

        gridder = GpsGridder(config)

        records = read_observation_table(args.table, weighted=config.weight_mode != WeightMode.NONE)

        result = gridder.grid(records, locations)

        if result.spectrum is not None:
            _, filename, _ = parse_cutoff(args.cutoff)
            # the variance cutoff reports raw singular values, the others their ratio to the largest
            write_eigenvalues(filename, result.spectrum, raw=CUTOFF_MAP.get(args.cutoff[:1]) == CutoffType.VARIANCE)

        if result.field is not None:
            if isinstance(result.field, PointField):
                write_point_table(args.outgrid, result.field)
            else:
                write_grid(args.outgrid, result.field, config.geographic,
                           metadata={'poisson_ratio': config.elasticity.poisson_ratio,
                                     'fudge': result.model.shape.fudge,
                                     'solver': gridder.solver.description,
                                     'normalization': config.normalization.mode.description,
                                     'eigenvalues': f'{result.solution.n_used} of {result.solution.n_total}'})

    except (GridderException, UtilsException) as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == '__main__':
    main()
