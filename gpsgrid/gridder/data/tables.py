"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 3:30 PM

Whitespace separated text tables: observations in, output nodes in, evaluated points
and eigenvalues out. Lines starting with # or > are headers or segment markers.
"""
from typing import Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)

# app
from ..core.type_declarations import DataQualityError, GridderException
from ..core.data_classes import PointField, EigenSpectrum

COMMENTS = ('#', '>')


def _load(filename: str, min_columns: int, what: str) -> np.ndarray:
    try:
        table = np.loadtxt(filename, comments=COMMENTS, ndmin=2)
    except OSError as e:
        raise GridderException(f'Could not read {what} file {filename}: {e}') from e
    except ValueError as e:
        raise DataQualityError(f'Could not parse {what} file {filename}: {e}') from e

    if table.size == 0:
        raise DataQualityError(f'No records found in {what} file {filename}')

    if table.shape[1] < min_columns:
        raise DataQualityError(f'The {what} file {filename} needs at least {min_columns} columns '
                               f'(found {table.shape[1]})')

    logger.info(f'Read {table.shape[0]} records from {filename}')
    return table


def read_observation_table(filename: str, weighted: bool = False) -> np.ndarray:
    """x y u v [w_u w_v] records; the weight columns are only required when weighted"""
    return _load(filename, 6 if weighted else 4, 'data')


def read_node_table(filename: str) -> Tuple[np.ndarray, np.ndarray]:
    """x y of the output locations (any further columns are ignored)"""
    table = _load(filename, 2, 'node')
    return table[:, 0], table[:, 1]


def write_point_table(filename: str, field: PointField, fmt: str = '%.12g') -> None:
    logger.info(f'Writing {field.x.size} evaluated points to {filename}')
    np.savetxt(filename, field.as_table(), fmt=fmt, delimiter='\t')


def write_eigenvalues(filename: str, spectrum: EigenSpectrum, raw: bool = False) -> None:
    """rank and singular value (raw) or its ratio to the largest one"""
    logger.info(f'Writing {spectrum.singular_values.size} eigenvalues to {filename}')
    np.savetxt(filename, spectrum.as_table(raw), fmt=['%d', '%.12g'], delimiter='\t')
