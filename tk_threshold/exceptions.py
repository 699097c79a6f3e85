"""
Exceptions raised by the exceedance threshold pipeline.
"""


class ConfigError(ValueError):
    """
    Raised when the inputs or settings of a run are unusable, e.g. the
    parameter table has no ku/ke columns or the concentration grid is empty.
    Nothing is computed once this is raised.
    """
    pass


class InsufficientDataError(ValueError):
    """
    Raised when too few valid scale factors remain after filtering for the
    empirical quantiles and exceedance probabilities to mean anything.
    """
    pass
