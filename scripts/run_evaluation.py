#!/usr/bin/env python3
"""
Evaluate recorded motion detection output against ground truth.

Replays classified frames (.npz files written with
``motion_eval.sensors.save_frame``) through the Evaluator and writes
scores.csv, ranges.csv and timings.txt to the output directory.

Usage:
    # Evaluate with the default config
    python scripts/run_evaluation.py --frames-dir data/frames

    # Custom range window and output directory
    python scripts/run_evaluation.py --frames-dir data/frames \\
        --output-dir outputs/run_01 --min-range 0.5 --max-range 30
"""

import argparse
import sys
from pathlib import Path

from tqdm import tqdm

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from motion_eval.eval.evaluator import Evaluator, EvaluatorConfig
from motion_eval.sensors.frame_loader import FrameLoader
from motion_eval.utils.config_loader import ConfigError, get_nested, load_config, set_nested
from motion_eval.utils.logger import setup_logger
from motion_eval.utils.timing import get_timing_collector


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Evaluate motion detection against ground truth",
    )
    parser.add_argument(
        "--config", type=str, default=str(PROJECT_ROOT / "configs" / "evaluation.yaml"),
        help="Path to YAML config",
    )
    parser.add_argument(
        "--frames-dir", type=str, required=True,
        help="Directory with classified .npz frames",
    )
    parser.add_argument("--output-dir", type=str, default=None, help="Override output directory")
    parser.add_argument("--ground-truth-dir", type=str, default=None, help="Override ground truth directory")
    parser.add_argument("--min-range", type=float, default=None, help="Override minimum range [m]")
    parser.add_argument("--max-range", type=float, default=None, help="Override maximum range [m]")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = load_config(args.config)

    overrides = {
        "evaluation.output_directory": args.output_dir,
        "evaluation.ground_truth.directory": args.ground_truth_dir,
        "evaluation.min_range": args.min_range,
        "evaluation.max_range": args.max_range,
    }
    for key, value in overrides.items():
        if value is not None:
            set_nested(config, key, value)

    logger = setup_logger(
        "motion_eval",
        level=args.log_level or get_nested(config, "logging.level", "INFO"),
        log_file=get_nested(config, "logging.log_file"),
    )

    try:
        eval_config = EvaluatorConfig.from_dict(config.get("evaluation", {}))
        evaluator = Evaluator(eval_config, logger=logger)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    loader = FrameLoader(args.frames_dir)
    timing = get_timing_collector()
    logger.info(f"Evaluating {len(loader)} frames from '{args.frames_dir}'")

    for frame in tqdm(loader.iterate_frames(), total=len(loader), desc="Evaluating"):
        with timing.timer("evaluation/frame"):
            evaluator.evaluate_frame(frame)

    logger.info("=" * 60)
    logger.info(f"Evaluated {evaluator.evaluated_frames}/{len(loader)} frames with ground truth")
    for level, metrics in evaluator.summary().items():
        logger.info(
            f"  {level.value:<8} IoU={metrics.iou:.4f} "
            f"Precision={metrics.precision:.4f} Recall={metrics.recall:.4f}"
        )
    logger.info(f"  Results: {evaluator.output_directory}")
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
