"""
Loading and filtering of toxicokinetic parameter draws (MCMC samples).
"""

import pandas as pd
import numpy as np
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('ku', 'ke')
MIN_DRAWS = 10


class ParameterLoader:
    """Read ku/ke draws and keep the ones the steady-state model can use."""

    def __init__(self, growth_dilution: float = 0.0):
        """
        Initialize ParameterLoader.

        Parameters
        ----------
        growth_dilution : float, optional
            Growth-dilution rate g (per day); draws with ke + g <= 0 are dropped
        """
        self.growth_dilution = growth_dilution

    def load_records(self, filepath: str, sheet: Optional[str] = None) -> pd.DataFrame:
        """
        Load raw parameter records from a spreadsheet or CSV file.

        Parameters
        ----------
        filepath : str
            Path to an .xlsx/.xls or .csv file
        sheet : str, optional
            Sheet name for spreadsheets (one sheet per species)

        Returns
        -------
        pd.DataFrame
            Raw records, columns untouched
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Parameter file not found: {filepath}")

        logger.info(f"Loading parameter draws from {filepath}"
                    + (f" (sheet '{sheet}')" if sheet else ""))

        suffix = path.suffix.lower()
        if suffix in ('.xlsx', '.xls'):
            data = pd.read_excel(path, sheet_name=sheet if sheet is not None else 0)
        elif suffix == '.csv':
            data = pd.read_csv(path)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

        return data

    @staticmethod
    def locate_columns(columns: Iterable) -> Dict[str, str]:
        """
        Map the canonical names 'ku' and 'ke' onto the actual column labels,
        ignoring case. The first matching column wins.
        """
        mapping = {}
        for column in columns:
            key = str(column).strip().lower()
            if key in REQUIRED_COLUMNS and key not in mapping:
                mapping[key] = column

        missing = [name for name in REQUIRED_COLUMNS if name not in mapping]
        if missing:
            raise ConfigError("Could not find columns named 'ku' and 'ke' (case-insensitive); "
                              f"missing: {', '.join(missing)}")
        return mapping

    def extract_draws(self, records: Union[pd.DataFrame, Iterable[Dict]]) -> pd.DataFrame:
        """
        Extract the valid (ku, ke) draws from raw records.

        Parameters
        ----------
        records : pd.DataFrame or iterable of dict
            Raw records with ku/ke fields in any letter case

        Returns
        -------
        pd.DataFrame
            Columns 'ku' and 'ke'; rows with non-numeric or non-finite values,
            negative ku, or ke + g <= 0 removed
        """
        if not isinstance(records, pd.DataFrame):
            records = pd.DataFrame(list(records))

        mapping = self.locate_columns(records.columns)

        draws = pd.DataFrame({
            name: pd.to_numeric(records[mapping[name]], errors='coerce').astype(float)
            for name in REQUIRED_COLUMNS
        })

        keep = (
            np.isfinite(draws['ku'])
            & np.isfinite(draws['ke'])
            & (draws['ku'] >= 0)
            & ((draws['ke'] + self.growth_dilution) > 0)
        )
        draws = draws[keep].reset_index(drop=True)

        n_dropped = int((~keep).sum())
        logger.info(f"Kept {len(draws)} of {len(keep)} parameter draws ({n_dropped} filtered)")

        if len(draws) < MIN_DRAWS:
            logger.warning(f"Very few valid MCMC draws after filtering ({len(draws)}). "
                           "Check the input sheet, columns and units.")

        return draws

    def load_draws(self, filepath: str, sheet: Optional[str] = None) -> pd.DataFrame:
        """Load a parameter file and return its valid draws."""
        return self.extract_draws(self.load_records(filepath, sheet=sheet))
