"""
Command-line entry point for the example models.

Usage:
    python -m hado xor
    python -m hado classify --epochs 50000 --learning-rate 0.01 --report-every 5000
    python -m hado xor -c config/xor.toml
    python -m hado bars --epochs 200 --learning-rate 0.05
"""

import argparse
import logging
import sys

from .config import TrainingConfiguration
from .examples import EXAMPLES
from .log import setup_logging
from .utils import set_random_seed

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parse command-line arguments.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        argparse.Namespace
    """
    parser = argparse.ArgumentParser(
        prog="hado",
        description="Train and test one of the example pipelines."
    )
    parser.add_argument("example", choices=sorted(EXAMPLES), help="Example model to run")
    parser.add_argument(
        "-c",
        "--config",
        help="Path to TOML configuration file (if provided, the training options are ignored)",
    )
    parser.add_argument("--epochs", type=int, default=1000, help="Number of epochs")
    parser.add_argument("--learning-rate", type=float, default=0.01, help="Learning rate")
    parser.add_argument("--report-every", type=int, default=100,
                        help="Log the mean loss every N epochs (0 disables)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Show a progress bar")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging()

    if args.config:
        config = TrainingConfiguration.load(args.config)
    else:
        config = TrainingConfiguration(
            epochs=args.epochs,
            learning_rate=args.learning_rate,
            report_every=args.report_every,
            seed=args.seed,
        )

    if config.seed is not None:
        set_random_seed(config.seed)

    model = EXAMPLES[args.example]()
    logger.info("Training %s example: %r", args.example, model)

    model.run_epochs(config.epochs, config.learning_rate,
                     report_every=config.report_every, verbose=args.verbose)
    mean_loss = model.run_tests()

    print(f"Mean test loss: {mean_loss:.6f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
