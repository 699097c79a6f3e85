#!/usr/bin/env python
"""
Main pipeline script: exceedance curve and Cw* for each species sheet.
"""

import argparse
import json
import logging
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tk_threshold.config import AssessmentConfig
from tk_threshold.analysis.risk_assessment import ThresholdRiskAssessment


def setup_logging(output_dir: Path):
    """Setup logging configuration."""
    log_dir = output_dir / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / 'pipeline.log'),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger(__name__)


def species_slug(name) -> str:
    return str(name).strip().replace(' ', '_') if name else 'default'


def main(argv=None):
    """Main pipeline function."""
    parser = argparse.ArgumentParser(
        description='Compute the TK-informed water concentration threshold Cw* at a target exceedance'
    )
    parser.add_argument('--config', type=str, default=None,
                        help='Path to configuration YAML file')
    parser.add_argument('--input', type=str, default=None,
                        help='Parameter draws file (.xlsx or .csv); overrides input_file')
    parser.add_argument('--sheet', action='append', default=None,
                        help='Species sheet name (repeatable); overrides species_sheets')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory for results; overrides output_dir')

    args = parser.parse_args(argv)

    config = AssessmentConfig.from_yaml(args.config) if args.config else AssessmentConfig()

    output_dir = Path(args.output or config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(output_dir)
    logger.info("Starting exceedance threshold pipeline")
    logger.info(f"Configuration: {args.config or 'defaults'}")
    logger.info(f"Output directory: {output_dir}")

    input_file = args.input or config.input_file
    sheets = args.sheet or config.species_sheets or [None]

    try:
        if not input_file:
            raise ValueError("No parameter file given (use --input or input_file in the config)")

        assessor = ThresholdRiskAssessment(config)
        summary = {'config': config.to_dict(), 'species': {}}

        for sheet in sheets:
            results = assessor.run_file(input_file, sheet=sheet)
            slug = species_slug(sheet)

            results['css_summary'].to_csv(output_dir / f"Css_summary_vs_Cw_{slug}.csv", index=False)
            results['exceedance'].to_csv(output_dir / f"Css_exceedance_vs_Cw_{slug}.csv", index=False)

            summary['species'][sheet or slug] = {
                'cw_star': results['cw_star'],
                'bracketed': results['bracketed'],
                'n_draws': results['n_draws'],
                'n_scale_factors': results['n_scale_factors'],
                'b_quantiles': {k: float(v) for k, v in results['quantiles'].items()},
                'b_statistics': results['statistics']
            }

            print("\n" + assessor.format_summary(results) + "\n")

        with open(output_dir / 'assessment_summary.json', 'w') as f:
            json.dump(summary, f, indent=2)

        logger.info("Pipeline completed successfully!")
        logger.info(f"Results saved to: {output_dir}")

    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
