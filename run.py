#!/usr/bin/env python3
"""
Clinical Classification Report - one command to run everything.

Usage:
    python run.py              # Full report on the bundled dataset
    python run.py --quick      # Random search with few candidates, 3 folds
"""

import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(__file__))


def main():
    parser = argparse.ArgumentParser(
        description="Clinical Classification Report",
    )
    parser.add_argument(
        "--quick", action="store_true",
        help="Fast run: random search over 5 candidates with 3-fold CV",
    )
    args = parser.parse_args()

    from clinical_report.agent import ClinicalReportAgent
    if args.quick:
        agent = ClinicalReportAgent(search="random", n_iter=5, cv_folds=3)
    else:
        agent = ClinicalReportAgent()
    agent.run()


if __name__ == "__main__":
    main()
