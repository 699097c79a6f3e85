"""
Quantile bands, exceedance curve and threshold inversion for the linear
steady-state model.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional
import logging
from scipy import stats

from ..models.steady_state import SteadyStateModel

logger = logging.getLogger(__name__)

QUANTILE_PROBS = (0.025, 0.25, 0.50, 0.75, 0.975)
QUANTILE_NAMES = ('q2.5', 'q25', 'q50', 'q75', 'q97.5')
CSS_COLUMNS = ('Css_q2.5', 'Css_q25', 'Css_med', 'Css_q75', 'Css_q97.5')


class ExceedanceAnalysis:
    """Derive exceedance probabilities and Cw* from pooled scale factors."""

    @staticmethod
    def scale_factor_quantiles(b_draws: np.ndarray) -> pd.Series:
        """
        Empirical quantiles of b at 2.5, 25, 50, 75 and 97.5 %.

        Uses linear interpolation between order statistics (Hyndman-Fan
        type 7, the numpy default).
        """
        values = np.percentile(np.asarray(b_draws, dtype=float),
                               [p * 100 for p in QUANTILE_PROBS])
        return pd.Series(values, index=list(QUANTILE_NAMES))

    def quantile_summary(self, b_draws: np.ndarray, cw_grid: np.ndarray) -> pd.DataFrame:
        """
        Steady-state tissue concentration bands over the concentration grid.

        Parameters
        ----------
        b_draws : np.ndarray
            Pooled scale factors
        cw_grid : np.ndarray
            Water concentrations

        Returns
        -------
        pd.DataFrame
            Columns 'Cw', 'Css_q2.5', 'Css_q25', 'Css_med', 'Css_q75', 'Css_q97.5'
        """
        cw_grid = np.asarray(cw_grid, dtype=float)
        b_q = self.scale_factor_quantiles(b_draws)

        # Css = b * Cw preserves quantiles under positive scaling
        summary = {'Cw': cw_grid}
        for name, column in zip(QUANTILE_NAMES, CSS_COLUMNS):
            summary[column] = SteadyStateModel.steady_state_concentration(b_q[name], cw_grid)

        return pd.DataFrame(summary)

    @staticmethod
    def summarize_scale_factors(b_draws: np.ndarray) -> Dict:
        """Descriptive statistics of the pooled scale factors."""
        b_draws = np.asarray(b_draws, dtype=float)
        mean = np.mean(b_draws)

        return {
            'n': int(len(b_draws)),
            'mean': float(mean),
            'median': float(np.median(b_draws)),
            'std': float(np.std(b_draws)),
            'cv': float(np.std(b_draws) / mean) if mean > 0 else 0.0,
            'skewness': float(stats.skew(b_draws)),
            'kurtosis': float(stats.kurtosis(b_draws)),
            'percentiles': {
                '2.5': float(np.percentile(b_draws, 2.5)),
                '5': float(np.percentile(b_draws, 5)),
                '25': float(np.percentile(b_draws, 25)),
                '50': float(np.percentile(b_draws, 50)),
                '75': float(np.percentile(b_draws, 75)),
                '95': float(np.percentile(b_draws, 95)),
                '97.5': float(np.percentile(b_draws, 97.5))
            }
        }

    @staticmethod
    def exceedance_curve(b_draws: np.ndarray, cw_grid: np.ndarray,
                         threshold: float) -> pd.DataFrame:
        """
        Exceedance(Cw) = P(Css > threshold) = P(b > threshold / Cw).

        Parameters
        ----------
        b_draws : np.ndarray
            Pooled scale factors
        cw_grid : np.ndarray
            Strictly positive water concentrations
        threshold : float
            Tissue threshold, same units as Css

        Returns
        -------
        pd.DataFrame
            Columns 'Cw' and 'exceed'
        """
        b_sorted = np.sort(np.asarray(b_draws, dtype=float))
        cw_grid = np.asarray(cw_grid, dtype=float)

        # count(b > x) = n - count(b <= x)
        n_at_or_below = np.searchsorted(b_sorted, threshold / cw_grid, side='right')
        exceed = (len(b_sorted) - n_at_or_below) / len(b_sorted)

        return pd.DataFrame({'Cw': cw_grid, 'exceed': exceed})

    @staticmethod
    def invert_exceedance(curve: pd.DataFrame, target: float) -> Optional[float]:
        """
        Water concentration at which the exceedance curve reaches target.

        Parameters
        ----------
        curve : pd.DataFrame
            Exceedance curve with columns 'Cw' and 'exceed', ordered by Cw
        target : float
            Target exceedance probability

        Returns
        -------
        float or None
            Interpolated Cw*, or None when target lies outside the range of
            the curve (widen the grid and rerun)
        """
        cw = curve['Cw'].to_numpy(dtype=float)
        exceed = curve['exceed'].to_numpy(dtype=float)

        if len(exceed) == 0 or not (exceed.min() <= target <= exceed.max()):
            logger.warning(f"Target exceedance {target} not bracketed by the Cw range; "
                           "Cw* is undefined. Consider expanding cw_grid min/max.")
            return None

        # Sampling noise can break monotonicity; take the running maximum
        monotone = np.maximum.accumulate(exceed)
        n_violations = int(np.sum(monotone != exceed))
        if n_violations:
            logger.warning(f"Exceedance curve not monotone at {n_violations} grid points; "
                           "using its running maximum")

        if target <= monotone[0]:
            return float(cw[0])

        # Last grid point at or below the target, so plateaus resolve to their highest Cw
        i = int(np.searchsorted(monotone, target, side='right')) - 1
        if monotone[i] == target:
            return float(cw[i])

        p_lo, p_hi = monotone[i], monotone[i + 1]
        return float(cw[i] + (target - p_lo) * (cw[i + 1] - cw[i]) / (p_hi - p_lo))
