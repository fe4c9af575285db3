"""Model evaluation module with test-set metrics and resample comparisons."""

from itertools import combinations

import numpy as np
from scipy import stats
from sklearn.inspection import permutation_importance
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    brier_score_loss,
    confusion_matrix,
    f1_score,
    matthews_corrcoef,
    precision_score,
    recall_score,
    roc_auc_score,
    roc_curve,
)

from clinical_report.config import (
    N_JOBS,
    PERMUTATION_REPEATS,
    RANDOM_STATE,
    SIGNIFICANCE_LEVEL,
    TOP_N_FEATURES,
)
from clinical_report.utils import get_logger

log = get_logger(__name__)


class ModelEvaluator:
    """Evaluates trained models on the held-out test set."""

    def __init__(self, random_state: int = RANDOM_STATE, n_jobs: int = N_JOBS,
                 top_n: int = TOP_N_FEATURES):
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.top_n = top_n

    def run(self, training_results: dict, processed_data: dict) -> dict:
        """
        Evaluate all trained models on the held-out test set.

        Returns a dict with per-model metrics, the best model, and pairwise
        comparisons of the cross-validation resamples.
        """
        X_test = processed_data["X_test"]
        y_test = processed_data["y_test"]
        feature_names = processed_data["feature_names"]
        trained_models = training_results["trained_models"]

        log.info("Evaluating %d models on %d test samples", len(trained_models), len(X_test))

        evaluations = {}
        roc_curves = {}

        for name, model in trained_models.items():
            y_pred = model.predict(X_test)

            # Probability predictions if available
            y_prob = None
            if hasattr(model, "predict_proba"):
                y_prob = model.predict_proba(X_test)[:, 1]

            metrics = self.classification_metrics(y_test, y_pred, y_prob)

            if y_prob is not None:
                fpr, tpr, thresholds = roc_curve(y_test, y_prob)
                roc_curves[name] = {
                    "fpr": fpr.tolist(),
                    "tpr": tpr.tolist(),
                    "thresholds": thresholds.tolist(),
                    "auc": metrics["roc_auc"],
                }

            importance = self.feature_importance(model, feature_names, X_test, y_test)
            if importance:
                metrics["top_features"] = importance[:self.top_n]

            evaluations[name] = metrics

            log.info(
                "  %s: acc=%.4f, sens=%.4f, spec=%.4f, f1=%.4f, auc=%s, mcc=%.4f",
                name,
                metrics["accuracy"],
                metrics["recall"],
                metrics["specificity"],
                metrics["f1"],
                metrics.get("roc_auc", "N/A"),
                metrics["mcc"],
            )

        best_name, criterion = self._select_best(evaluations)
        log.info(
            "Best model on test set: %s (%s=%.4f)",
            best_name, criterion, evaluations[best_name][criterion],
        )

        comparisons = compare_resamples(training_results.get("cv_scores", {}))

        return {
            "evaluations": evaluations,
            "roc_curves": roc_curves,
            "best_model_name": best_name,
            "selection_metric": criterion,
            "best_metrics": evaluations[best_name],
            "resample_comparisons": comparisons,
        }

    @staticmethod
    def classification_metrics(y_true: np.ndarray, y_pred: np.ndarray,
                               y_prob: np.ndarray | None = None) -> dict:
        """Binary classification metrics with class 1 as positive."""
        cm = confusion_matrix(y_true, y_pred, labels=[0, 1])
        tn, fp, fn, tp = cm.ravel()
        specificity = tn / (tn + fp) if (tn + fp) > 0 else 0.0

        metrics = {
            "accuracy": round(float(accuracy_score(y_true, y_pred)), 4),
            "balanced_accuracy": round(float(balanced_accuracy_score(y_true, y_pred)), 4),
            "precision": round(float(precision_score(y_true, y_pred, zero_division=0)), 4),
            "recall": round(float(recall_score(y_true, y_pred, zero_division=0)), 4),
            "specificity": round(float(specificity), 4),
            "f1": round(float(f1_score(y_true, y_pred, zero_division=0)), 4),
            "mcc": round(float(matthews_corrcoef(y_true, y_pred)), 4),
            "confusion_matrix": cm.tolist(),
        }

        if y_prob is not None:
            metrics["roc_auc"] = round(float(roc_auc_score(y_true, y_prob)), 4)
            metrics["brier_score"] = round(float(brier_score_loss(y_true, y_prob)), 4)

        return metrics

    def feature_importance(self, model, feature_names: list[str],
                           X: np.ndarray, y: np.ndarray) -> list[dict]:
        """
        Variable importance for any fitted model.

        Uses impurity importances or absolute coefficients when the model has
        them, otherwise permutation importance on the given data.
        """
        if hasattr(model, "feature_importances_"):
            importances = model.feature_importances_
            method = "impurity"
        elif hasattr(model, "coef_"):
            importances = np.abs(model.coef_).flatten()
            method = "coefficient"
        else:
            result = permutation_importance(
                model, X, y,
                scoring="roc_auc",
                n_repeats=PERMUTATION_REPEATS,
                random_state=self.random_state,
                n_jobs=self.n_jobs,
            )
            importances = result.importances_mean
            method = "permutation"

        paired = list(zip(feature_names, importances))
        paired.sort(key=lambda x: x[1], reverse=True)

        return [
            {"feature": name, "importance": round(float(imp), 6), "method": method}
            for name, imp in paired
        ]

    @staticmethod
    def _select_best(evaluations: dict) -> tuple[str, str]:
        with_auc = [n for n in evaluations if "roc_auc" in evaluations[n]]
        if with_auc:
            return max(with_auc, key=lambda n: evaluations[n]["roc_auc"]), "roc_auc"
        return max(evaluations, key=lambda n: evaluations[n]["f1"]), "f1"


def compare_resamples(cv_scores: dict, metric: str = "roc_auc",
                      alpha: float = SIGNIFICANCE_LEVEL) -> list[dict]:
    """
    Paired t-tests between every pair of models on their per-fold CV scores.

    Valid because all models are cross-validated on the same folds.
    """
    names = [n for n in cv_scores if metric in cv_scores[n]]
    if len(names) < 2:
        return []

    comparisons = []
    for a, b in combinations(names, 2):
        scores_a = np.asarray(cv_scores[a][metric], dtype=float)
        scores_b = np.asarray(cv_scores[b][metric], dtype=float)
        diff = scores_a - scores_b

        if np.allclose(diff, diff[0]):
            # Zero variance in the differences: the t statistic is undefined.
            t_stat = 0.0
            p_val = 1.0 if np.isclose(diff[0], 0.0) else 0.0
        else:
            t_stat, p_val = stats.ttest_rel(scores_a, scores_b)

        comparisons.append({
            "model_a": a,
            "model_b": b,
            "metric": metric,
            "mean_difference": round(float(diff.mean()), 4),
            "t_statistic": round(float(t_stat), 4),
            "p_value": float(p_val),
            "significant": bool(p_val < alpha),
        })

    comparisons.sort(key=lambda c: c["p_value"])
    log.info(
        "Resample comparison: %d/%d model pairs differ significantly on %s",
        sum(c["significant"] for c in comparisons), len(comparisons), metric,
    )
    return comparisons
