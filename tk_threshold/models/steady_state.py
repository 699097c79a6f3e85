"""
Linear steady-state bioaccumulation model.

Css = ku * Cw / ((ke + g) * (1 - f)) = b * Cw
"""

import numpy as np
import pandas as pd
from typing import Sequence, Union
import logging

from ..exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

MIN_SCALE_FACTORS = 10


class SteadyStateModel:
    """Turn (ku, ke) draws into scale factors b of the model Css = b * Cw."""

    def __init__(self, growth_dilution: float = 0.0):
        """
        Initialize SteadyStateModel.

        Parameters
        ----------
        growth_dilution : float, optional
            Growth-dilution rate g, added to the elimination rate
        """
        self.growth_dilution = growth_dilution

    def scale_factor(self, ku: Union[float, np.ndarray],
                     ke: Union[float, np.ndarray],
                     f: float) -> Union[float, np.ndarray]:
        """
        b = ku / ((ke + g) * (1 - f)).

        Division by zero gives inf rather than an error; callers filter it.
        """
        with np.errstate(divide='ignore', invalid='ignore'):
            return np.asarray(ku, dtype=float) / ((np.asarray(ke, dtype=float) + self.growth_dilution) * (1.0 - f))

    @staticmethod
    def steady_state_concentration(b: Union[float, np.ndarray],
                                   cw: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Steady-state tissue concentration for scale factor(s) b at water concentration(s) cw."""
        return np.asarray(b, dtype=float) * np.asarray(cw, dtype=float)

    def scale_factors(self, draws: pd.DataFrame, f_values: Sequence[float]) -> np.ndarray:
        """
        Pool scale factors over all draws and dietary fractions.

        Parameters
        ----------
        draws : pd.DataFrame
            Filtered parameter draws with columns 'ku' and 'ke'
        f_values : sequence of float
            Dietary contribution fractions; each contributes one b per draw

        Returns
        -------
        np.ndarray
            Finite, non-negative scale factors, grouped by f in the given order
        """
        ku = draws['ku'].to_numpy(dtype=float)
        ke = draws['ke'].to_numpy(dtype=float)

        if len(f_values) == 0:
            b_draws = np.array([], dtype=float)
        else:
            b_draws = np.concatenate([np.atleast_1d(self.scale_factor(ku, ke, f)) for f in f_values])

        valid = np.isfinite(b_draws) & (b_draws >= 0)
        n_invalid = int((~valid).sum())
        b_draws = b_draws[valid]

        if n_invalid:
            logger.info(f"Discarded {n_invalid} non-finite or negative scale factors")

        if len(b_draws) < MIN_SCALE_FACTORS:
            raise InsufficientDataError(
                f"Too few valid b draws ({len(b_draws)} < {MIN_SCALE_FACTORS}). "
                "Check ku/ke values, growth dilution and dietary fractions."
            )

        logger.info(f"Pooled {len(b_draws)} scale factors from {len(draws)} draws "
                    f"x {len(f_values)} dietary fractions")

        return b_draws
