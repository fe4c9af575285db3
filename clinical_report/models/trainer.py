"""Model training module for the classifier comparison."""

import time

import numpy as np
from joblib import parallel_config
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import cross_validate
from sklearn.naive_bayes import GaussianNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.neural_network import MLPClassifier

from clinical_report.config import (
    DEFAULT_CV_FOLDS,
    DEFAULT_N_ITER,
    DEFAULT_SCORING,
    N_JOBS,
    RANDOM_STATE,
)
from clinical_report.models.tuning import HyperparameterTuner
from clinical_report.utils import get_logger

log = get_logger(__name__)

# Model configurations: name -> (class, kwargs)
MODEL_CONFIGS = {
    "logistic_regression": (
        LogisticRegression,
        {"max_iter": 2000, "random_state": RANDOM_STATE, "C": 1.0},
    ),
    "naive_bayes": (
        GaussianNB,
        {},
    ),
    "knn": (
        KNeighborsClassifier,
        {"n_neighbors": 5},
    ),
    "random_forest": (
        RandomForestClassifier,
        {"n_estimators": 100, "random_state": RANDOM_STATE},
    ),
    "gradient_boosting": (
        GradientBoostingClassifier,
        {"n_estimators": 100, "random_state": RANDOM_STATE, "learning_rate": 0.1},
    ),
    "mlp": (
        MLPClassifier,
        {
            "hidden_layer_sizes": (32,),
            "max_iter": 1000,
            "random_state": RANDOM_STATE,
            "early_stopping": True,
        },
    ),
}

CV_METRICS = ["accuracy", "roc_auc"]


class ModelTrainer:
    """Tunes, cross-validates and fits each classifier in the comparison."""

    def __init__(self, models: list[str] | None = None, cv_folds: int = DEFAULT_CV_FOLDS,
                 search: str = "grid", n_iter: int = DEFAULT_N_ITER,
                 scoring: str = DEFAULT_SCORING, n_jobs: int = N_JOBS,
                 random_state: int = RANDOM_STATE):
        """
        Args:
            models: list of model names to train, or None for all.
            cv_folds: number of stratified cross-validation folds.
            search: hyperparameter search strategy ("grid", "random", "none").
            n_iter: candidates sampled by randomized search.
            scoring: metric optimized by the search.
            n_jobs: worker count handed to the joblib backend.
        """
        if models is None:
            models = list(MODEL_CONFIGS.keys())

        unknown = set(models) - set(MODEL_CONFIGS.keys())
        if unknown:
            raise ValueError(
                f"Unknown models: {sorted(unknown)}. Available: {list(MODEL_CONFIGS.keys())}"
            )
        if not models:
            raise ValueError("At least one model must be selected")

        self.model_names = list(models)
        self.cv_folds = cv_folds
        self.n_jobs = n_jobs
        self.tuner = HyperparameterTuner(
            search=search,
            cv_folds=cv_folds,
            n_iter=n_iter,
            scoring=scoring,
            n_jobs=n_jobs,
            random_state=random_state,
        )
        self.trained_models = {}
        self.cv_results = {}

    @staticmethod
    def list_available_models() -> list[str]:
        """Return all available model names."""
        return list(MODEL_CONFIGS.keys())

    def run(self, processed_data: dict) -> dict:
        """
        Tune, cross-validate and fit all selected models.

        Returns dict with trained models, per-fold CV scores and tuning results.
        """
        X_train = processed_data["X_train"]
        y_train = processed_data["y_train"]

        log.info(
            "Training %d models with %d-fold CV on %d samples (search=%s)",
            len(self.model_names), self.cv_folds, len(X_train), self.tuner.search,
        )

        results = []
        with parallel_config(n_jobs=self.n_jobs):
            for name in self.model_names:
                results.append(self._train_one(name, X_train, y_train))

        # Sort by CV AUC
        results.sort(key=lambda x: x["cv_roc_auc_mean"], reverse=True)

        best = results[0]
        log.info(
            "Best model: %s (CV AUC=%.4f)",
            best["name"], best["cv_roc_auc_mean"],
        )

        return {
            "results": results,
            "best_model_name": best["name"],
            "best_model": best["model"],
            "trained_models": self.trained_models,
            "cv_scores": self.cv_results,
            "cv_folds": self.cv_folds,
            "search": self.tuner.search,
            "scoring": self.tuner.scoring,
        }

    def _train_one(self, name: str, X_train: np.ndarray, y_train: np.ndarray) -> dict:
        cls, kwargs = MODEL_CONFIGS[name]
        log.info("Training: %s", name)

        tuning = self.tuner.tune(name, cls(**kwargs), X_train, y_train)
        params = {**kwargs, **tuning["best_params"]}
        model = cls(**params)

        # Cross-validation on the shared folds
        t0 = time.time()
        cv = cross_validate(
            model, X_train, y_train,
            cv=self.tuner.make_cv(), scoring=CV_METRICS, n_jobs=self.n_jobs,
        )
        cv_time = time.time() - t0

        # Fit on full training set
        t0 = time.time()
        model.fit(X_train, y_train)
        train_time = time.time() - t0

        train_acc = model.score(X_train, y_train)

        fold_scores = {metric: cv[f"test_{metric}"] for metric in CV_METRICS}
        self.trained_models[name] = model
        self.cv_results[name] = fold_scores

        entry = {
            "name": name,
            "estimator": cls.__name__,
            "model": model,
            "params": params,
            "tuning": tuning,
            "cv_accuracy_mean": round(float(fold_scores["accuracy"].mean()), 4),
            "cv_accuracy_std": round(float(fold_scores["accuracy"].std()), 4),
            "cv_roc_auc_mean": round(float(fold_scores["roc_auc"].mean()), 4),
            "cv_roc_auc_std": round(float(fold_scores["roc_auc"].std()), 4),
            "cv_scores": {m: s.tolist() for m, s in fold_scores.items()},
            "train_accuracy": round(float(train_acc), 4),
            "cv_time_seconds": round(cv_time, 3),
            "train_time_seconds": round(train_time, 3),
        }

        log.info(
            "  %s: CV AUC=%.4f (+/- %.4f), CV acc=%.4f, train acc=%.4f",
            name, entry["cv_roc_auc_mean"], entry["cv_roc_auc_std"],
            entry["cv_accuracy_mean"], entry["train_accuracy"],
        )
        return entry
