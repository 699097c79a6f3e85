"""
Unit tests for parameter loading and the steady-state model.
"""

import unittest
import tempfile
import numpy as np
import pandas as pd
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tk_threshold.data_processing.load_parameters import ParameterLoader
from tk_threshold.models.steady_state import SteadyStateModel
from tk_threshold.exceptions import ConfigError, InsufficientDataError


class TestParameterLoader(unittest.TestCase):
    """Test extraction and filtering of ku/ke draws."""

    def setUp(self):
        """Set up test fixtures."""
        self.loader = ParameterLoader(growth_dilution=0.003)
        self.records = pd.DataFrame({
            'Iteration': range(7),
            'KU': [1.0, 'abc', -1.0, 1.0, np.inf, 1.0, 0.0],
            'Ke': [0.1, 0.1, 0.1, -0.5, 0.1, None, 0.2]
        })

    def test_case_insensitive_columns(self):
        """Columns are located regardless of letter case."""
        mapping = ParameterLoader.locate_columns(['Iteration', 'KU', 'kE'])
        self.assertEqual(mapping, {'ku': 'KU', 'ke': 'kE'})

    def test_missing_column_raises(self):
        """A table without ke cannot be used."""
        records = pd.DataFrame({'ku': [1.0, 2.0], 'k_e': [0.1, 0.2]})

        with self.assertRaises(ConfigError):
            self.loader.extract_draws(records)

    def test_filtering(self):
        """Non-numeric, non-finite, negative ku and ke + g <= 0 rows are dropped."""
        draws = self.loader.extract_draws(self.records)

        self.assertEqual(list(draws.columns), ['ku', 'ke'])
        self.assertEqual(len(draws), 2)
        self.assertEqual(draws['ku'].tolist(), [1.0, 0.0])
        self.assertEqual(draws['ke'].tolist(), [0.1, 0.2])

    def test_negative_ke_kept_when_growth_dilution_compensates(self):
        """Only ke + g has to be positive."""
        loader = ParameterLoader(growth_dilution=0.5)
        draws = loader.extract_draws(pd.DataFrame({'ku': [1.0] * 10, 'ke': [-0.2] * 10}))
        self.assertEqual(len(draws), 10)

    def test_small_sample_warning(self):
        """Fewer than 10 surviving draws logs a warning but still returns them."""
        with self.assertLogs('tk_threshold.data_processing.load_parameters', level='WARNING') as logs:
            draws = self.loader.extract_draws(self.records)

        self.assertEqual(len(draws), 2)
        self.assertTrue(any('Very few valid MCMC draws' in message for message in logs.output))

    def test_list_of_records(self):
        """Plain dict records are accepted."""
        records = [{'ku': 0.5 + i, 'ke': 0.1} for i in range(12)]
        draws = self.loader.extract_draws(records)
        self.assertEqual(len(draws), 12)

    def test_load_csv_and_excel(self):
        """Parameter files are read from CSV and from a named spreadsheet sheet."""
        data = pd.DataFrame({'ku': np.linspace(0.5, 1.5, 12), 'ke': np.full(12, 0.1)})

        with tempfile.TemporaryDirectory() as tmp:
            csv_path = Path(tmp) / 'draws.csv'
            data.to_csv(csv_path, index=False)
            self.assertEqual(len(self.loader.load_draws(str(csv_path))), 12)

            xlsx_path = Path(tmp) / 'draws.xlsx'
            with pd.ExcelWriter(xlsx_path) as writer:
                data.head(3).to_excel(writer, sheet_name='Other', index=False)
                data.to_excel(writer, sheet_name='A. kagoshimensis', index=False)

            draws = self.loader.load_draws(str(xlsx_path), sheet='A. kagoshimensis')
            self.assertEqual(len(draws), 12)

    def test_unsupported_or_missing_file(self):
        """Unknown extensions and missing files are reported."""
        with tempfile.TemporaryDirectory() as tmp:
            txt_path = Path(tmp) / 'draws.txt'
            txt_path.write_text('ku ke\n1 0.1\n')

            with self.assertRaises(ValueError):
                self.loader.load_records(str(txt_path))

            with self.assertRaises(FileNotFoundError):
                self.loader.load_records(str(Path(tmp) / 'absent.csv'))


class TestSteadyStateModel(unittest.TestCase):
    """Test the scaling transform b = ku / ((ke + g) * (1 - f))."""

    def setUp(self):
        """Set up test fixtures."""
        self.draws = pd.DataFrame({'ku': np.full(10, 1.0), 'ke': np.full(10, 0.1)})

    def test_single_draw_scale_factor(self):
        """ku=1, ke=0.1, g=0, f=0 gives b=10."""
        model = SteadyStateModel(growth_dilution=0.0)
        self.assertAlmostEqual(float(model.scale_factor(1.0, 0.1, 0.0)), 10.0)

    def test_scale_factor_with_growth_and_diet(self):
        """Growth dilution and dietary fraction enter the denominator."""
        model = SteadyStateModel(growth_dilution=0.1)
        expected = 2.0 / ((0.3 + 0.1) * (1 - 0.5))
        self.assertAlmostEqual(float(model.scale_factor(2.0, 0.3, 0.5)), expected)

    def test_steady_state_concentration_is_linear(self):
        """Css = b * Cw."""
        css = SteadyStateModel.steady_state_concentration(10.0, np.array([0.1, 1.0, 2.5]))
        np.testing.assert_allclose(css, [1.0, 10.0, 25.0])

    def test_pooling_over_dietary_fractions(self):
        """Each dietary fraction contributes one b per draw, concatenated in order."""
        model = SteadyStateModel(growth_dilution=0.0)
        b_draws = model.scale_factors(self.draws, [0.0, 0.5, 0.75])

        self.assertEqual(len(b_draws), 30)
        np.testing.assert_allclose(b_draws[:10], 10.0)
        np.testing.assert_allclose(b_draws[10:20], 20.0)
        np.testing.assert_allclose(b_draws[20:], 40.0)

    def test_invalid_scale_factors_discarded(self):
        """f = 1 (infinite b) and f > 1 (negative b) are dropped."""
        model = SteadyStateModel(growth_dilution=0.0)
        b_draws = model.scale_factors(self.draws, [0.5, 1.0, 2.0])

        self.assertEqual(len(b_draws), 10)
        self.assertTrue(np.all(np.isfinite(b_draws)))
        self.assertTrue(np.all(b_draws >= 0))

    def test_insufficient_scale_factors(self):
        """Fewer than 10 valid b draws aborts the run."""
        model = SteadyStateModel(growth_dilution=0.0)

        with self.assertRaises(InsufficientDataError):
            model.scale_factors(self.draws.head(5), [0.5])

        with self.assertRaises(InsufficientDataError):
            model.scale_factors(self.draws, [1.0])

    def test_few_draws_pooled_over_many_fractions(self):
        """Three draws over nine fractions still give enough scale factors."""
        model = SteadyStateModel(growth_dilution=0.003)
        f_values = [0.1 * i for i in range(1, 10)]
        b_draws = model.scale_factors(self.draws.head(3), f_values)
        self.assertEqual(len(b_draws), 27)


if __name__ == '__main__':
    unittest.main()
