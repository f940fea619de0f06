"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 2:40 PM
"""
from dataclasses import fields
from enum import IntEnum
from typing import Any, Dict, Optional, Sequence, Union
import json
import logging

logger = logging.getLogger(__name__)

# app
from ...Utils import load_json, file_write, json_converter
from ..core.type_declarations import WeightMode, SolverType, CutoffType, ConfigurationError
from ..core.logging_config import setup_gridder_logging
from ..core.data_classes import (ElasticityOptions, NormalizationOptions, SolverOptions, EvaluationOptions)
from ..least_squares.eigen_cutoff import EigenCutoff


class GridderConfig:
    """Central configuration manager for gridding operations"""

    # sections holding a dataclass of options
    _sections = {
        'elasticity': ElasticityOptions,
        'normalization': NormalizationOptions,
        'solver': SolverOptions,
        'evaluation': EvaluationOptions
    }

    def __init__(self,
                 custom_config: Optional[Dict[str, Any]] = None,
                 json_file: Union[str, dict] = None,
                 silent: bool = False):
        """
        Initialize gridder configuration

        Args:
            custom_config: Dictionary of custom configuration overrides
            json_file: either a json file path or a json dict or string to load data from
            silent: only report critical messages
        """
        setup_gridder_logging(level=logging.CRITICAL if silent else logging.INFO)

        # input coordinates are longitude, latitude (flat Earth distances in km)
        self.geographic: bool = False
        # west, east, south, north; used to bring longitudes into range
        self.region: Optional[Sequence[float]] = None
        self.weight_mode: WeightMode = WeightMode.NONE

        self.elasticity = ElasticityOptions()
        self.normalization = NormalizationOptions()
        self.solver = SolverOptions()
        self.evaluation = EvaluationOptions()

        if json_file:
            self.load_from_json(json_file)

        if custom_config:
            self.apply_custom_config(custom_config)

    def apply_custom_config(self, custom_config: Dict[str, Any]) -> None:
        """Apply custom configuration overrides"""
        for key, value in custom_config.items():
            if key in self._sections:
                section = getattr(self, key)
                current = {f.name: getattr(section, f.name) for f in fields(section)}
                unknown = set(value) - set(current)
                if unknown:
                    raise ConfigurationError(f'Unknown {key} option(s): {", ".join(sorted(unknown))}')
                current.update(value)
                try:
                    setattr(self, key, self._sections[key](**current))
                except (KeyError, ValueError) as e:
                    raise ConfigurationError(f'Invalid {key} option: {e}') from e

            elif key == 'geographic':
                self.geographic = bool(value)
            elif key == 'region':
                self.region = None if value is None else [float(r) for r in value]
            elif key == 'weight_mode':
                if isinstance(value, dict):
                    value = value['value']
                try:
                    self.weight_mode = WeightMode[value.upper()] if isinstance(value, str) else WeightMode(value)
                except (KeyError, ValueError) as e:
                    raise ConfigurationError(f'Invalid weight mode {value}') from e
            else:
                raise ConfigurationError(f'Unknown configuration key: {key}')

    def load_from_json(self, json_file: Union[str, dict]) -> None:
        self.apply_custom_config(load_json(json_file))

    def to_dict(self) -> Dict[str, Any]:
        config = {
            'geographic': self.geographic,
            'region': self.region,
            'weight_mode': {'value': self.weight_mode.value, 'description': self.weight_mode.description}
        }
        for key in self._sections:
            section = getattr(self, key)
            values = {}
            for f in fields(section):
                value = getattr(section, f.name)
                if isinstance(value, EigenCutoff):
                    value = value.to_dict()
                elif isinstance(value, IntEnum) and hasattr(value, 'description'):
                    value = {'value': value.value, 'description': value.description}
                values[f.name] = value
            config[key] = values

        return config

    def save_json(self, filename: str) -> None:
        file_write(filename, json.dumps(self.to_dict(), indent=4, default=json_converter))

    def validate(self) -> None:
        """Raise ConfigurationError for contradictory or invalid options"""
        self.solver.validate()
        self.evaluation.validate()

        if self.region is not None and len(self.region) != 4:
            raise ConfigurationError(f'Region must be west/east/south/north (got {self.region})')

        if self.solver.solver_type == SolverType.GAUSS_JORDAN and \
                not (self.solver.cutoff.cutoff_type == CutoffType.RATIO and self.solver.cutoff.value == 0):
            logger.warning('An eigenvalue cutoff was given but the system is solved by Gauss-Jordan elimination; '
                           'the cutoff will be ignored')

        if self.weight_mode != WeightMode.NONE and self.solver.solver_type == SolverType.GAUSS_JORDAN:
            logger.info('Weights only have an effect when the system is solved by SVD with a cutoff')

    def describe(self) -> str:
        return (f"nu = {self.elasticity.poisson_ratio}, fudge = {self.elasticity.fudge_value} "
                f"({self.elasticity.fudge_mode.description}), normalization = {self.normalization.mode.description}, "
                f"solver = {self.solver.solver_type.description}")
