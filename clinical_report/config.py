"""Configuration constants for the clinical classification report."""

import os

# Output paths
OUTPUT_DIR = os.environ.get("CLINICAL_REPORT_OUTPUT_DIR", "clinical_report_output")
FIGURES_SUBDIR = "figures"

# Reproducibility
RANDOM_STATE = 42

# Pipeline defaults
DEFAULT_DATASET = "breast_cancer"
DEFAULT_SCALING = "standard"
DEFAULT_TEST_SIZE = 0.2
DEFAULT_CV_FOLDS = 5
DEFAULT_SEARCH = "grid"
DEFAULT_N_ITER = 20
DEFAULT_SCORING = "roc_auc"
N_JOBS = int(os.environ.get("CLINICAL_REPORT_N_JOBS", "-1"))

SCALING_METHODS = ["standard", "minmax"]
SEARCH_STRATEGIES = ["grid", "random", "none"]

# EDA thresholds
HIGH_CORRELATION_THRESHOLD = 0.9
SIGNIFICANCE_LEVEL = 0.05
IMBALANCE_MODERATE = 1.5
IMBALANCE_SEVERE = 3.0
IQR_MULTIPLIER = 1.5
SKEW_THRESHOLD = 1.0

# Reporting
TOP_N_FEATURES = 10
PERMUTATION_REPEATS = 10
FIGURE_DPI = 150
