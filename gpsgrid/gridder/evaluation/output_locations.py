"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 1:30 PM

Where to evaluate the fitted field: a regular lattice, a lattice restricted by a mask
or an explicit list of points. Every variant turns into a sequence of query
coordinates and knows how to put the evaluated values back in place.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union
import logging

import numpy as np

logger = logging.getLogger(__name__)

# app
from ..core.type_declarations import Registration, ConfigurationError
from ..core.data_classes import GridField, PointField

# tolerance used to decide if an increment fits the region an integer number of times
INCREMENT_TOL = 1.0e-6


class OutputLocations(ABC):

    @abstractmethod
    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """x, y of the locations to evaluate"""
        pass

    @abstractmethod
    def assemble(self, u: np.ndarray, v: np.ndarray) -> Union[GridField, PointField]:
        """place the values evaluated at coordinates() into the output structure"""
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        pass

    @classmethod
    def from_options(cls,
                     region: Optional[Sequence[float]] = None,
                     increment: Optional[Sequence[float]] = None,
                     registration: Registration = Registration.GRIDLINE,
                     mask: Optional[np.ndarray] = None,
                     nodes: Optional[Tuple[np.ndarray, np.ndarray]] = None) -> 'OutputLocations':
        """
        Determine the type of object needed and return it to the caller

        Exactly one of: region and increment (optionally with a mask over that lattice)
        or a list of nodes.
        """
        if nodes is not None:
            if mask is not None or increment is not None:
                raise ConfigurationError('Output nodes cannot be combined with a lattice increment or a mask')
            return PointList(*nodes)

        if region is None and increment is None:
            raise ConfigurationError('No output locations specified (use either region and increment, '
                                     'a mask grid, or a list of nodes)')

        if region is None or increment is None:
            raise ConfigurationError('Must specify both the region and the increment for gridding')

        lattice = RegularLattice.from_region(region, increment, registration)

        if mask is not None:
            return MaskedLattice.from_grid_values(lattice, mask)

        return lattice


@dataclass(frozen=True)
class RegularLattice(OutputLocations):
    """Equidistant lattice; values are stored with rows going from south to north"""
    west: float
    east: float
    south: float
    north: float
    x_inc: float
    y_inc: float
    registration: Registration = Registration.GRIDLINE

    def __post_init__(self):
        if not (self.east > self.west and self.north > self.south):
            raise ConfigurationError(f'Invalid region {self.west}/{self.east}/{self.south}/{self.north}')
        if not (self.x_inc > 0 and self.y_inc > 0):
            raise ConfigurationError(f'Grid increments must be positive (got {self.x_inc}/{self.y_inc})')

        for name, extent, inc in (('x', self.east - self.west, self.x_inc),
                                  ('y', self.north - self.south, self.y_inc)):
            cells = extent / inc
            if abs(cells - np.rint(cells)) > INCREMENT_TOL * max(1.0, cells):
                logger.warning(f'The {name} increment {inc} does not fit the region an integer number of '
                               f'times; using {self._count(extent, inc)} nodes')

            if self._count(extent, inc) < 1:
                raise ConfigurationError(f'The {name} increment {inc} is too large for the region')

    @classmethod
    def from_region(cls, region: Sequence[float], increment: Sequence[float],
                    registration: Registration = Registration.GRIDLINE) -> 'RegularLattice':
        if len(region) != 4:
            raise ConfigurationError(f'Region must be west/east/south/north (got {region})')

        increment = list(increment)
        if len(increment) == 1:
            increment = increment * 2
        if len(increment) != 2:
            raise ConfigurationError(f'Increment must be dx[/dy] (got {increment})')

        return cls(*[float(r) for r in region], float(increment[0]), float(increment[1]),
                   Registration(registration))

    def _count(self, extent: float, inc: float) -> int:
        return int(np.rint(extent / inc)) + (1 if self.registration == Registration.GRIDLINE else 0)

    @property
    def nx(self) -> int:
        return self._count(self.east - self.west, self.x_inc)

    @property
    def ny(self) -> int:
        return self._count(self.north - self.south, self.y_inc)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.ny, self.nx

    @property
    def size(self) -> int:
        return self.nx * self.ny

    @property
    def x_nodes(self) -> np.ndarray:
        offset = 0.5 * self.x_inc if self.registration == Registration.PIXEL else 0.0
        return self.west + offset + np.arange(self.nx) * self.x_inc

    @property
    def y_nodes(self) -> np.ndarray:
        offset = 0.5 * self.y_inc if self.registration == Registration.PIXEL else 0.0
        return self.south + offset + np.arange(self.ny) * self.y_inc

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        x, y = np.meshgrid(self.x_nodes, self.y_nodes)
        return x.ravel(), y.ravel()

    def assemble(self, u: np.ndarray, v: np.ndarray) -> GridField:
        return GridField(x=self.x_nodes, y=self.y_nodes,
                         u=np.asarray(u).reshape(self.shape), v=np.asarray(v).reshape(self.shape),
                         registration=int(self.registration))


class MaskedLattice(OutputLocations):
    """A lattice where only the nodes flagged as valid are evaluated (the rest are NaN)"""
    def __init__(self, lattice: RegularLattice, mask: np.ndarray):
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != lattice.shape:
            raise ConfigurationError(f'The mask shape {mask.shape} does not match the lattice shape {lattice.shape}')

        self.lattice = lattice
        self.mask = mask

    @classmethod
    def from_grid_values(cls, lattice: RegularLattice, values: np.ndarray) -> 'MaskedLattice':
        """nodes holding NaN are skipped, all other nodes are evaluated"""
        return cls(lattice, ~np.isnan(np.asarray(values, dtype=float)))

    @property
    def size(self) -> int:
        return int(np.count_nonzero(self.mask))

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        x, y = np.meshgrid(self.lattice.x_nodes, self.lattice.y_nodes)
        return x[self.mask], y[self.mask]

    def assemble(self, u: np.ndarray, v: np.ndarray) -> GridField:
        gu = np.full(self.lattice.shape, np.nan)
        gv = np.full(self.lattice.shape, np.nan)
        gu[self.mask] = u
        gv[self.mask] = v
        return GridField(x=self.lattice.x_nodes, y=self.lattice.y_nodes, u=gu, v=gv,
                         registration=int(self.lattice.registration))


class PointList(OutputLocations):
    """Explicit output locations; results keep the input order"""
    def __init__(self, x: np.ndarray, y: np.ndarray):
        self.x = np.array(x, dtype=float).ravel()
        self.y = np.array(y, dtype=float).ravel()
        if self.x.size != self.y.size:
            raise ConfigurationError('Output node x and y must have the same number of elements')

    @property
    def size(self) -> int:
        return self.x.size

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.x, self.y

    def assemble(self, u: np.ndarray, v: np.ndarray) -> PointField:
        return PointField(x=self.x.copy(), y=self.y.copy(), u=np.asarray(u), v=np.asarray(v))
