"""
TK-informed water concentration thresholds at a target exceedance probability

This package propagates toxicokinetic parameter uncertainty through the
steady-state bioaccumulation model Css = ku * Cw / ((ke + g) * (1 - f)).
"""

__version__ = "1.0.0"

from . import data_processing
from . import models
from . import analysis
from .config import AssessmentConfig
from .exceptions import ConfigError, InsufficientDataError

__all__ = ["data_processing", "models", "analysis", "AssessmentConfig",
           "ConfigError", "InsufficientDataError"]
