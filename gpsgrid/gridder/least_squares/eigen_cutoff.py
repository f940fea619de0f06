"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 10:20 AM

Rules that decide how many singular values the SVD solver keeps. Each rule is its
own class so that a ratio, a count and a variance percentage can never be confused.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

import numpy as np

from ..core.type_declarations import CutoffType, ConfigurationError


class EigenCutoff(ABC):
    """Base class of the singular value selection rules"""
    cutoff_type: CutoffType = None

    @abstractmethod
    def validate(self) -> None:
        pass

    @abstractmethod
    def select(self, singular_values: np.ndarray) -> int:
        """return how many of the (descending) singular values to keep"""
        pass

    @property
    @abstractmethod
    def value(self) -> float:
        pass

    @property
    def is_truncating(self) -> bool:
        """True if the rule can discard the zero eigenvalues caused by duplicate constraints"""
        return True

    def to_dict(self) -> dict:
        return {'type': self.cutoff_type.name.lower(), 'value': self.value}

    @classmethod
    def create_instance(cls, cutoff_type: Union[CutoffType, str], value: float) -> 'EigenCutoff':
        """Determine the type of object needed and return it to the caller"""
        if isinstance(cutoff_type, str):
            try:
                cutoff_type = CutoffType[cutoff_type.upper()]
            except KeyError:
                raise ConfigurationError(f'Unknown eigenvalue cutoff type {cutoff_type}')

        if cutoff_type == CutoffType.RATIO:
            instance = RatioCutoff(float(value))
        elif cutoff_type == CutoffType.COUNT:
            instance = CountCutoff(int(value))
        elif cutoff_type == CutoffType.VARIANCE:
            instance = VarianceCutoff(float(value))
        else:
            raise ConfigurationError(f'Eigenvalue cutoff {cutoff_type} not implemented')

        instance.validate()
        return instance


@dataclass(frozen=True)
class RatioCutoff(EigenCutoff):
    """keep singular values whose ratio to the largest one is at least ratio"""
    ratio: float = 0.0
    cutoff_type = CutoffType.RATIO

    @property
    def value(self) -> float:
        return self.ratio

    @property
    def is_truncating(self) -> bool:
        return self.ratio > 0.0

    def validate(self) -> None:
        if not np.isfinite(self.ratio) or self.ratio < 0.0:
            raise ConfigurationError(f'Eigenvalue ratio cutoff must be >= 0 (got {self.ratio})')

    def select(self, singular_values: np.ndarray) -> int:
        if singular_values.size == 0 or singular_values[0] <= 0.0:
            return 0
        keep = (singular_values > 0.0) & (singular_values >= self.ratio * singular_values[0])
        return int(np.count_nonzero(keep))


@dataclass(frozen=True)
class CountCutoff(EigenCutoff):
    """keep the largest count singular values"""
    count: int = 1
    cutoff_type = CutoffType.COUNT

    @property
    def value(self) -> float:
        return self.count

    def validate(self) -> None:
        if self.count < 1:
            raise ConfigurationError(f'Must keep at least one eigenvalue (got {self.count})')

    def select(self, singular_values: np.ndarray) -> int:
        # never use exactly zero singular values
        return min(self.count, int(np.count_nonzero(singular_values > 0.0)))


@dataclass(frozen=True)
class VarianceCutoff(EigenCutoff):
    """keep the fewest singular values that explain percent of the data variance"""
    percent: float = 100.0
    cutoff_type = CutoffType.VARIANCE

    @property
    def value(self) -> float:
        return self.percent

    def validate(self) -> None:
        if not np.isfinite(self.percent) or self.percent <= 0.0:
            raise ConfigurationError(f'Variance to explain must be positive (got {self.percent})')
        if self.percent > 100.0:
            raise ConfigurationError(f'Variance explained cannot exceed 100% (got {self.percent})')

    def select(self, singular_values: np.ndarray) -> int:
        explained = explained_variance(singular_values)
        if explained.size == 0 or not np.isfinite(explained[-1]):
            return 0
        k = int(np.searchsorted(explained, self.percent, side='left')) + 1
        return min(k, int(np.count_nonzero(singular_values > 0.0)))


def explained_variance(singular_values: np.ndarray) -> np.ndarray:
    """cumulative percentage of variance explained by the descending singular values"""
    s2 = np.square(singular_values)
    total = np.sum(s2)
    if total == 0.0:
        return np.zeros_like(s2)
    return 100.0 * np.cumsum(s2) / total
