"""
Unit tests for the gridder configuration.
"""

import json

import pytest

from gpsgrid.gridder.core.gridder_config import GridderConfig
from gpsgrid.gridder.core.type_declarations import (SolverType, CutoffType, FudgeMode, WeightMode,
                                                    NormalizationMode, ConfigurationError)
from gpsgrid.gridder.least_squares.eigen_cutoff import VarianceCutoff, CountCutoff


class TestGridderConfig:
    """Test defaults, overrides and persistence."""

    def test_defaults(self):
        config = GridderConfig(silent=True)

        assert config.elasticity.poisson_ratio == 0.25
        assert config.elasticity.fudge_mode == FudgeMode.RELATIVE
        assert config.normalization.mode == NormalizationMode.TREND | NormalizationMode.RANGE
        assert config.solver.solver_type == SolverType.GAUSS_JORDAN
        assert config.weight_mode == WeightMode.NONE
        assert not config.geographic

    def test_custom_config(self, make_config):
        config = make_config(geographic=True,
                             weight_mode='sigma',
                             elasticity={'poisson_ratio': 0.5},
                             solver={'solver_type': 'svd', 'cutoff': {'type': 'variance', 'value': 90}})

        assert config.geographic
        assert config.weight_mode == WeightMode.SIGMA
        assert config.elasticity.poisson_ratio == 0.5
        # untouched options keep their values
        assert config.elasticity.fudge_value == 0.01
        assert config.solver.cutoff == VarianceCutoff(90.0)
        assert config.solver.cutoff.cutoff_type == CutoffType.VARIANCE

    def test_json_round_trip(self, make_config, tmp_path):
        config = make_config(region=[0, 10, -5, 5],
                             weight_mode='weight',
                             elasticity={'fudge_mode': 'absolute', 'fudge_value': 2.0},
                             normalization={'remove_trend': False},
                             solver={'solver_type': 'svd', 'cutoff': {'type': 'count', 'value': 12},
                                     'memory_limit_mb': 512.0},
                             evaluation={'threads': 4, 'chunk_size': 1000})
        filename = tmp_path / 'gridder.json'
        config.save_json(str(filename))

        with open(filename) as f:
            stored = json.load(f)
        assert stored['solver']['cutoff'] == {'type': 'count', 'value': 12}

        loaded = GridderConfig(json_file=str(filename), silent=True)
        assert loaded.to_dict() == config.to_dict()
        assert loaded.elasticity.fudge_mode == FudgeMode.ABSOLUTE
        assert isinstance(loaded.solver.cutoff, CountCutoff)

    def test_unknown_key(self, make_config):
        with pytest.raises(ConfigurationError):
            make_config(interpolation='cubic')

    def test_unknown_section_option(self, make_config):
        with pytest.raises(ConfigurationError):
            make_config(solver={'tolerance': 1e-6})

    def test_invalid_cutoff(self, make_config):
        with pytest.raises(ConfigurationError):
            make_config(solver={'solver_type': 'svd', 'cutoff': {'type': 'variance', 'value': 150}})

    def test_options_reject_new_attributes(self):
        config = GridderConfig(silent=True)
        with pytest.raises(AttributeError):
            config.solver.tolerance = 1e-6

    def test_validate(self, make_config):
        with pytest.raises(ConfigurationError):
            make_config(evaluation={'threads': -1}).validate()
        with pytest.raises(ConfigurationError):
            make_config(solver={'memory_limit_mb': 0}).validate()
