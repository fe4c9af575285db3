"""
Clinical Classification Report.

A single-pass analysis pipeline that loads a tabular medical dataset,
performs exploratory analysis, tunes and cross-validates a set of
off-the-shelf classifiers, compares them on a held-out test set, and
renders a written report with figures.

DISCLAIMER: This is a research and teaching tool for analyzing tabular
medical datasets. It does NOT provide medical diagnoses, treatment
recommendations, or replace professional medical advice. All outputs are
for research and educational purposes only.
"""

__version__ = "0.1.0"
