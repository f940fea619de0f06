"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 9:12 AM
"""

from enum import IntEnum, IntFlag, auto


class GridderException(Exception):
    pass


class ConfigurationError(GridderException):
    """Contradictory or missing options, detected before any data is read"""
    pass


class DataQualityError(GridderException):
    pass


class DuplicateConstraintError(DataQualityError):
    pass


class NumericalError(GridderException):
    pass


class SingularSystemError(NumericalError):
    pass


class DecompositionError(NumericalError):
    pass


class GridderResourceError(GridderException):
    pass


class SolverType(IntEnum):
    """Enum for the two ways of solving the linear system"""
    GAUSS_JORDAN = auto()
    SVD = auto()

    @property
    def description(self) -> str:
        descriptions = {
            SolverType.GAUSS_JORDAN: 'Gauss-Jordan elimination',
            SolverType.SVD: 'Truncated singular value decomposition'
        }
        return descriptions.get(self, 'UNKNOWN')


class CutoffType(IntEnum):
    """Enum for the eigenvalue selection rule of the SVD solver"""
    RATIO = auto()
    COUNT = auto()
    VARIANCE = auto()

    @property
    def description(self) -> str:
        descriptions = {
            CutoffType.RATIO: 'Ratio to largest eigenvalue',
            CutoffType.COUNT: 'Number of largest eigenvalues',
            CutoffType.VARIANCE: 'Percentage of data variance explained'
        }
        return descriptions.get(self, 'UNKNOWN')


class FudgeMode(IntEnum):
    """Enum for the way the singularity fudge is determined"""
    ABSOLUTE = auto()
    RELATIVE = auto()

    @property
    def description(self) -> str:
        descriptions = {
            FudgeMode.ABSOLUTE: 'Fixed value added to the squared distances',
            FudgeMode.RELATIVE: 'Factor times the shortest inter-point distance'
        }
        return descriptions.get(self, 'UNKNOWN')


class WeightMode(IntEnum):
    """Enum for the meaning of the optional weight columns"""
    NONE = auto()
    SIGMA = auto()
    WEIGHT = auto()

    @property
    def description(self) -> str:
        descriptions = {
            WeightMode.NONE: 'Unweighted',
            WeightMode.SIGMA: 'Weights from 1/sigma',
            WeightMode.WEIGHT: 'Weights given directly'
        }
        return descriptions.get(self, 'UNKNOWN')


class Registration(IntEnum):
    """Enum for lattice registration"""
    GRIDLINE = 0
    PIXEL = 1

    @property
    def description(self) -> str:
        descriptions = {
            Registration.GRIDLINE: 'Gridline registration (nodes on cell corners)',
            Registration.PIXEL: 'Pixel registration (nodes on cell centers)'
        }
        return descriptions.get(self, 'UNKNOWN')


class NormalizationMode(IntFlag):
    """The mean is always removed; these bits add trend removal and range scaling"""
    MEAN = 0
    TREND = 1
    RANGE = 2

    @property
    def description(self) -> str:
        parts = ['mean']
        if self & NormalizationMode.TREND:
            parts.append('planar trend')
        if self & NormalizationMode.RANGE:
            parts.append('range')
        return ' + '.join(parts)
