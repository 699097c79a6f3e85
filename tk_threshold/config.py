"""
Run configuration for the exceedance threshold assessment.
"""

import numpy as np
import yaml
from pathlib import Path
from typing import Dict, List, Optional
import logging

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_GROWTH_DILUTION = 0.003  # per day
DEFAULT_CW_GRID = {'min': 0.01, 'max': 1.0, 'step': 0.001}  # ug/L
DEFAULT_F_VALUES = {'start': 0.1, 'stop': 0.9, 'step': 0.1}
DEFAULT_THRESHOLD = 2 * 5.96
DEFAULT_TARGET_EXCEEDANCE = 0.05


def regular_sequence(start: float, stop: float, step: float) -> np.ndarray:
    """
    Regular sequence from start to stop by step, including stop when it is
    reached within floating point tolerance.
    """
    if step <= 0:
        raise ConfigError(f"Sequence step must be positive, got {step}")
    if stop < start:
        raise ConfigError(f"Sequence stop ({stop}) is below start ({start})")

    n_steps = int(np.floor((stop - start) / step + 1e-9))
    return np.minimum(start + step * np.arange(n_steps + 1), stop)


class AssessmentConfig:
    """Explicit settings for one exceedance threshold run."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize AssessmentConfig.

        Parameters
        ----------
        config : Dict, optional
            Settings with keys 'growth_dilution', 'cw_grid' ({min, max, step}),
            'f_values' (number, list or {start, stop, step}), 'threshold',
            'target_exceedance', and the I/O keys 'input_file',
            'species_sheets' and 'output_dir'. Missing keys take the
            defaults above.
        """
        config = dict(config or {})
        self.config = config

        self.growth_dilution = self._number(config.get('growth_dilution', DEFAULT_GROWTH_DILUTION),
                                            'growth_dilution')

        grid = config.get('cw_grid', DEFAULT_CW_GRID)
        if not isinstance(grid, dict):
            raise ConfigError("cw_grid must be a mapping with 'min', 'max' and 'step'")
        grid = {**DEFAULT_CW_GRID, **grid}
        self.cw_min = self._number(grid['min'], 'cw_grid.min')
        self.cw_max = self._number(grid['max'], 'cw_grid.max')
        self.cw_step = self._number(grid['step'], 'cw_grid.step')

        self.f_values = self._parse_f_values(config.get('f_values', DEFAULT_F_VALUES))
        self.threshold = self._number(config.get('threshold', DEFAULT_THRESHOLD), 'threshold')
        self.target_exceedance = self._number(config.get('target_exceedance', DEFAULT_TARGET_EXCEEDANCE),
                                              'target_exceedance')

        self.input_file = config.get('input_file')
        sheets = config.get('species_sheets') or []
        self.species_sheets = [sheets] if isinstance(sheets, str) else list(sheets)
        self.output_dir = config.get('output_dir', 'outputs')

        self.validate()

    @classmethod
    def from_yaml(cls, config_path: str) -> 'AssessmentConfig':
        """Load configuration from a YAML file."""
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file {config_path} must contain a mapping")

        logger.info(f"Loaded configuration from {config_path}")
        return cls(config)

    @staticmethod
    def _number(value, name: str) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be numeric, got {value!r}")
        if not np.isfinite(number):
            raise ConfigError(f"{name} must be finite, got {value!r}")
        return number

    def _parse_f_values(self, value) -> List[float]:
        if isinstance(value, dict):
            missing = {'start', 'stop', 'step'} - set(value)
            if missing:
                raise ConfigError(f"f_values range is missing {sorted(missing)}")
            values = regular_sequence(self._number(value['start'], 'f_values.start'),
                                      self._number(value['stop'], 'f_values.stop'),
                                      self._number(value['step'], 'f_values.step'))
            return [float(v) for v in values]

        if isinstance(value, (list, tuple, np.ndarray)):
            return [self._number(v, 'f_values') for v in value]

        return [self._number(value, 'f_values')]

    def validate(self):
        """Check every setting; raises ConfigError on the first problem."""
        if self.growth_dilution < 0:
            raise ConfigError(f"growth_dilution must be >= 0, got {self.growth_dilution}")

        # The grid must exclude zero so that threshold / Cw is always defined
        if self.cw_min <= 0:
            raise ConfigError(f"cw_grid.min must be > 0, got {self.cw_min}")
        if self.cw_step <= 0:
            raise ConfigError(f"cw_grid.step must be > 0, got {self.cw_step}")
        if self.cw_min >= self.cw_max:
            raise ConfigError(f"cw_grid.min ({self.cw_min}) must be below cw_grid.max ({self.cw_max})")

        if not self.f_values:
            raise ConfigError("At least one dietary fraction (f_values) is required")
        for f in self.f_values:
            if not 0 < f < 1:
                raise ConfigError(f"Dietary fractions must lie in (0, 1), got {f}")

        if self.threshold <= 0:
            raise ConfigError(f"threshold must be positive, got {self.threshold}")
        if not 0 < self.target_exceedance < 1:
            raise ConfigError(f"target_exceedance must lie in (0, 1), got {self.target_exceedance}")

    def concentration_grid(self) -> np.ndarray:
        """Ambient concentration grid from cw_min to cw_max by cw_step."""
        return regular_sequence(self.cw_min, self.cw_max, self.cw_step)

    def to_dict(self) -> Dict:
        return {
            'growth_dilution': self.growth_dilution,
            'cw_grid': {'min': self.cw_min, 'max': self.cw_max, 'step': self.cw_step},
            'f_values': list(self.f_values),
            'threshold': self.threshold,
            'target_exceedance': self.target_exceedance,
            'input_file': self.input_file,
            'species_sheets': list(self.species_sheets),
            'output_dir': self.output_dir
        }
