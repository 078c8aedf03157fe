#!/usr/bin/env python3
"""
Generate a terrain mesh and render its erosion frame by frame.

Usage:
    python run_simulation.py [--width W] [--height H] [--density D]
                             [--frames N] [--frame-skip K] [--seed S]
                             [--data-path DIR] [--render-path DIR]

Unspecified options fall back to EROSION_* environment variables, then to
the defaults in py_erosion.config.Settings.
"""

import argparse

from py_erosion.config import Settings
from py_erosion.log_config import configure_logging
from py_erosion.run import Runner


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Hydraulic erosion simulator")
    parser.add_argument("--width", type=int)
    parser.add_argument("--height", type=int)
    parser.add_argument("--density", type=int)
    parser.add_argument("--frames", dest="frame_count", type=int)
    parser.add_argument("--frame-skip", dest="frame_skip", type=int)
    parser.add_argument("--workers", type=int)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--data-path", dest="data_path")
    parser.add_argument("--render-path", dest="render_path")
    parser.add_argument("--log-format", dest="log_format", choices=["json", "plain"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if v is not None}
    settings = Settings(**overrides)

    configure_logging(settings.log_level, settings.log_format)
    Runner(settings).run()


if __name__ == "__main__":
    main()
