"""Hyperparameter search over the model catalogue."""

import time

import numpy as np
from scipy.stats import loguniform, randint, uniform
from sklearn.model_selection import GridSearchCV, RandomizedSearchCV, StratifiedKFold

from clinical_report.config import (
    DEFAULT_CV_FOLDS,
    DEFAULT_N_ITER,
    DEFAULT_SCORING,
    N_JOBS,
    RANDOM_STATE,
    SEARCH_STRATEGIES,
)
from clinical_report.utils import get_logger

log = get_logger(__name__)

# Explicit grids for exhaustive search.
PARAM_GRIDS = {
    "logistic_regression": {
        "C": [0.01, 0.1, 1.0, 10.0],
        "class_weight": [None, "balanced"],
    },
    "naive_bayes": {
        "var_smoothing": [1e-9, 1e-8, 1e-7, 1e-6],
    },
    "knn": {
        "n_neighbors": [3, 5, 7, 11, 15],
        "weights": ["uniform", "distance"],
    },
    "random_forest": {
        "n_estimators": [100, 300],
        "max_depth": [None, 5, 10],
        "max_features": ["sqrt", "log2"],
    },
    "gradient_boosting": {
        "n_estimators": [100, 200],
        "learning_rate": [0.05, 0.1],
        "max_depth": [2, 3],
    },
    "mlp": {
        "hidden_layer_sizes": [(16,), (32,), (32, 16)],
        "alpha": [1e-4, 1e-3, 1e-2],
    },
}

# Sampling distributions for randomized search.
PARAM_DISTRIBUTIONS = {
    "logistic_regression": {
        "C": loguniform(1e-3, 1e2),
        "class_weight": [None, "balanced"],
    },
    "naive_bayes": {
        "var_smoothing": loguniform(1e-11, 1e-5),
    },
    "knn": {
        "n_neighbors": randint(3, 31),
        "weights": ["uniform", "distance"],
        "p": [1, 2],
    },
    "random_forest": {
        "n_estimators": randint(100, 501),
        "max_depth": [None, 3, 5, 10, 20],
        "min_samples_leaf": randint(1, 11),
        "max_features": ["sqrt", "log2"],
    },
    "gradient_boosting": {
        "n_estimators": randint(50, 401),
        "learning_rate": loguniform(1e-2, 3e-1),
        "max_depth": randint(2, 6),
        "subsample": uniform(0.6, 0.4),
    },
    "mlp": {
        "hidden_layer_sizes": [(8,), (16,), (32,), (64,), (32, 16)],
        "alpha": loguniform(1e-5, 1e-1),
        "learning_rate_init": loguniform(1e-4, 1e-2),
    },
}


class HyperparameterTuner:
    """Configures scikit-learn grid or randomized search with stratified k-fold CV."""

    def __init__(self, search: str = "grid", cv_folds: int = DEFAULT_CV_FOLDS,
                 n_iter: int = DEFAULT_N_ITER, scoring: str = DEFAULT_SCORING,
                 n_jobs: int = N_JOBS, random_state: int = RANDOM_STATE):
        if search not in SEARCH_STRATEGIES:
            raise ValueError(
                f"Unknown search strategy: {search}. Available: {SEARCH_STRATEGIES}"
            )
        if cv_folds < 2:
            raise ValueError(f"cv_folds must be at least 2, got {cv_folds}")

        self.search = search
        self.cv_folds = cv_folds
        self.n_iter = n_iter
        self.scoring = scoring
        self.n_jobs = n_jobs
        self.random_state = random_state

    def make_cv(self) -> StratifiedKFold:
        """Fold assignment shared by every search and CV run."""
        return StratifiedKFold(
            n_splits=self.cv_folds, shuffle=True, random_state=self.random_state,
        )

    def tune(self, name: str, estimator, X: np.ndarray, y: np.ndarray) -> dict:
        """
        Search hyperparameters for one model.

        The estimator is not modified; callers rebuild it from ``best_params``.
        """
        if self.search == "none":
            return self._untuned()

        space = PARAM_GRIDS if self.search == "grid" else PARAM_DISTRIBUTIONS
        if name not in space:
            log.warning("No %s search space for '%s', using defaults", self.search, name)
            return self._untuned()

        if self.search == "grid":
            searcher = GridSearchCV(
                estimator,
                param_grid=space[name],
                scoring=self.scoring,
                cv=self.make_cv(),
                n_jobs=self.n_jobs,
                refit=False,
            )
        else:
            searcher = RandomizedSearchCV(
                estimator,
                param_distributions=space[name],
                n_iter=self.n_iter,
                scoring=self.scoring,
                cv=self.make_cv(),
                n_jobs=self.n_jobs,
                random_state=self.random_state,
                refit=False,
            )

        t0 = time.time()
        searcher.fit(X, y)
        elapsed = time.time() - t0

        cv_results = searcher.cv_results_
        candidates = [
            {
                "params": params,
                "mean_score": round(float(mean), 4),
                "std_score": round(float(std), 4),
                "rank": int(rank),
            }
            for params, mean, std, rank in zip(
                cv_results["params"],
                cv_results["mean_test_score"],
                cv_results["std_test_score"],
                cv_results["rank_test_score"],
            )
        ]
        candidates.sort(key=lambda c: c["rank"])

        log.info(
            "  %s search for %s: %d candidates, best %s=%.4f in %.1fs",
            self.search, name, len(candidates), self.scoring,
            searcher.best_score_, elapsed,
        )
        log.info("    best params: %s", searcher.best_params_)

        return {
            "search": self.search,
            "best_params": searcher.best_params_,
            "best_score": round(float(searcher.best_score_), 4),
            "n_candidates": len(candidates),
            "candidates": candidates,
            "search_time_seconds": round(elapsed, 3),
        }

    @staticmethod
    def _untuned() -> dict:
        return {
            "search": "none",
            "best_params": {},
            "best_score": None,
            "n_candidates": 0,
            "candidates": [],
            "search_time_seconds": 0.0,
        }
