"""Report assembly and rendering (text summary, JSON, Markdown)."""

import json
import math
import os
from datetime import datetime, timezone

import numpy as np

from clinical_report import __version__
from clinical_report.utils import get_logger

log = get_logger(__name__)

DISCLAIMER = (
    "DISCLAIMER: This report is produced by a research and teaching tool for "
    "analyzing tabular medical datasets. It does NOT provide medical diagnoses, "
    "treatment recommendations, or replace professional medical advice. "
    "All outputs are for research and educational purposes only."
)


class Reporter:
    """Compiles pipeline outputs into a report and renders it."""

    def generate(self, dataset_metadata: dict, eda_report: dict,
                 preprocessing_info: dict, training_results: dict,
                 evaluation_results: dict, figures: dict | None = None) -> dict:
        """Assemble the final report dict. Estimator objects are left out."""
        models = []
        for entry in training_results["results"]:
            models.append({k: v for k, v in entry.items() if k != "model"})

        report = {
            "title": f"Classification Report: {dataset_metadata['name']}",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "disclaimer": DISCLAIMER,
            "dataset": dataset_metadata,
            "eda": eda_report,
            "preprocessing": preprocessing_info,
            "training": {
                "cv_folds": training_results.get("cv_folds"),
                "search": training_results.get("search"),
                "scoring": training_results.get("scoring"),
                "best_cv_model": training_results["best_model_name"],
                "models": models,
            },
            "evaluation": {
                "best_model": evaluation_results["best_model_name"],
                "selection_metric": evaluation_results["selection_metric"],
                "best_metrics": evaluation_results["best_metrics"],
                "models": evaluation_results["evaluations"],
                "resample_comparisons": evaluation_results.get("resample_comparisons", []),
            },
            "figures": figures or {},
        }

        log.info("Report generated for %d models", len(models))
        return report

    def print_summary(self, report: dict) -> str:
        """Return a fixed-width text summary of the report."""
        dataset = report["dataset"]
        balance = report["eda"]["class_balance"]
        training = report["training"]
        evaluation = report["evaluation"]

        lines = [
            "=" * 78,
            report["title"].upper(),
            "=" * 78,
            f"Samples: {dataset['n_samples']}   Features: {dataset['n_features']}   "
            f"Positive class: {dataset['positive_label']}",
            f"Class balance: {balance['status']} (ratio={balance['imbalance_ratio']:.2f})",
            f"Search: {training['search']}   CV folds: {training['cv_folds']}   "
            f"Scoring: {training['scoring']}",
            "",
            f"{'Model':<22}{'CV AUC':>10}{'Test AUC':>10}{'Acc':>8}{'Sens':>8}{'Spec':>8}{'F1':>8}",
            "-" * 78,
        ]

        for entry in training["models"]:
            metrics = evaluation["models"].get(entry["name"], {})
            test_auc = metrics.get("roc_auc")
            lines.append(
                f"{entry['name']:<22}"
                f"{entry['cv_roc_auc_mean']:>10.4f}"
                f"{_fmt(test_auc):>10}"
                f"{_fmt(metrics.get('accuracy')):>8}"
                f"{_fmt(metrics.get('recall')):>8}"
                f"{_fmt(metrics.get('specificity')):>8}"
                f"{_fmt(metrics.get('f1')):>8}"
            )

        best = evaluation["best_model"]
        lines += [
            "-" * 78,
            f"Best model on test set: {best} "
            f"({evaluation['selection_metric']}={evaluation['best_metrics'][evaluation['selection_metric']]:.4f})",
            "",
            report["disclaimer"],
            "=" * 78,
        ]
        return "\n".join(lines)

    def render_markdown(self, report: dict) -> str:
        """Render the written report as Markdown."""
        dataset = report["dataset"]
        eda = report["eda"]
        prep = report["preprocessing"]
        training = report["training"]
        evaluation = report["evaluation"]
        figures = report.get("figures", {})

        out = [
            f"# {report['title']}",
            "",
            f"_Generated {report['generated_at']} (clinical_report {report['version']})_",
            "",
            f"> {report['disclaimer']}",
            "",
            "## 1. Dataset",
            "",
            f"- Samples: {dataset['n_samples']}",
            f"- Features: {dataset['n_features']} ({dataset.get('n_categorical', 0)} categorical)",
            f"- Positive class: `{dataset['positive_label']}`; "
            f"negative class: `{dataset['negative_label']}`",
            f"- Missing values: {dataset.get('n_missing_values', 0)}",
            "",
            "## 2. Exploratory analysis",
            "",
            "### Class balance",
            "",
        ]

        balance = eda["class_balance"]
        class_names = {0: dataset["negative_label"], 1: dataset["positive_label"]}
        out.append(_table(
            ["Class", "Count", "Proportion"],
            [[class_names.get(int(cls), cls), count, f"{balance['proportions'][cls]:.3f}"]
             for cls, count in balance["counts"].items()],
        ))
        out += [
            "",
            f"Imbalance ratio {balance['imbalance_ratio']:.2f} ({balance['status']}).",
            "",
        ]
        out += _figure_links(figures, ["class_distribution"])

        top = eda.get("top_discriminative_features", [])
        if top:
            out += ["### Most discriminative features", ""]
            out.append(_table(
                ["Feature", "Mean (neg)", "Mean (pos)", "t", "p", "Cohen's d"],
                [[t["feature"], t["mean_negative"], t["mean_positive"], t["t_statistic"],
                  f"{t['p_value']:.2e}", t["effect_size_cohens_d"]] for t in top],
            ))
            out.append("")
            out += _figure_links(figures, ["feature_distributions", "feature_boxplots"])

        assoc = eda.get("categorical_associations", [])
        if assoc:
            out += ["### Categorical associations (chi-square)", ""]
            out.append(_table(
                ["Feature", "chi2", "dof", "p", "Significant"],
                [[a["feature"], a["chi2"], a["dof"], f"{a['p_value']:.2e}",
                  "yes" if a["significant"] else "no"] for a in assoc],
            ))
            out.append("")

        corr = eda.get("feature_correlations", {})
        out += [
            "### Correlations",
            "",
            f"{corr.get('n_highly_correlated', 0)} feature pairs have |r| > "
            f"{corr.get('threshold', 0.9)}.",
            "",
        ]
        for pair in corr.get("highly_correlated_pairs", [])[:10]:
            out.append(f"- `{pair['feature_1']}` / `{pair['feature_2']}`: r = {pair['correlation']}")
        if corr.get("highly_correlated_pairs"):
            out.append("")
        out += _figure_links(figures, ["correlation_heatmap"])

        outliers = eda.get("outlier_summary", {})
        out += [
            f"IQR outliers: {outliers.get('total_outlier_values', 0)} values across "
            f"{outliers.get('n_features_with_outliers', 0)} features. "
            f"Highly skewed features: {len(eda.get('distribution_shape', {}).get('highly_skewed', []))}.",
            "",
            "## 3. Preprocessing",
            "",
            f"- Duplicates removed: {prep['duplicates_removed']}",
            f"- Missing values imputed: {prep['missing_values_imputed']}",
            f"- Features after encoding: {prep.get('n_features_after_encoding', dataset['n_features'])}",
            f"- Scaling: {prep['scaling']}",
            f"- Train / test: {prep['train_samples']} / {prep['test_samples']} "
            f"(stratified, {prep['test_size']:.0%} test)",
            "",
            "## 4. Models",
            "",
            f"Hyperparameters were selected by **{training['search']}** search on "
            f"{training['cv_folds']}-fold stratified cross-validation, optimizing "
            f"`{training['scoring']}`.",
            "",
        ]

        out.append(_table(
            ["Model", "CV AUC", "CV acc", "Test AUC", "Sens", "Spec", "F1", "MCC"],
            [
                [
                    e["name"],
                    f"{e['cv_roc_auc_mean']:.4f} ± {e['cv_roc_auc_std']:.4f}",
                    f"{e['cv_accuracy_mean']:.4f}",
                    _fmt(evaluation["models"][e["name"]].get("roc_auc")),
                    _fmt(evaluation["models"][e["name"]]["recall"]),
                    _fmt(evaluation["models"][e["name"]]["specificity"]),
                    _fmt(evaluation["models"][e["name"]]["f1"]),
                    _fmt(evaluation["models"][e["name"]]["mcc"]),
                ]
                for e in training["models"]
            ],
        ))
        out.append("")
        out += _figure_links(figures, ["cv_comparison", "roc_curves", "confusion_matrices"])

        tuned = [e for e in training["models"] if e["tuning"]["best_params"]]
        if tuned:
            out += ["### Selected hyperparameters", ""]
            for e in tuned:
                params = ", ".join(f"{k}={v}" for k, v in e["tuning"]["best_params"].items())
                out.append(
                    f"- **{e['name']}**: {params} "
                    f"(CV {training['scoring']} {e['tuning']['best_score']}, "
                    f"{e['tuning']['n_candidates']} candidates)"
                )
            out.append("")
            out += _figure_links(figures, ["tuning_results"])

        comparisons = evaluation.get("resample_comparisons", [])
        if comparisons:
            out += ["### Resample comparison (paired t-test on CV folds)", ""]
            out.append(_table(
                ["Model A", "Model B", "Mean diff", "t", "p", "Significant"],
                [[c["model_a"], c["model_b"], c["mean_difference"], c["t_statistic"],
                  f"{c['p_value']:.3g}", "yes" if c["significant"] else "no"]
                 for c in comparisons],
            ))
            out.append("")

        best = evaluation["best_model"]
        best_metrics = evaluation["best_metrics"]
        cm = best_metrics["confusion_matrix"]
        out += [
            "## 5. Best model",
            "",
            f"**{best}** has the highest test-set {evaluation['selection_metric']} "
            f"({best_metrics[evaluation['selection_metric']]:.4f}).",
            "",
            _table(
                ["", "Predicted negative", "Predicted positive"],
                [["Actual negative", cm[0][0], cm[0][1]],
                 ["Actual positive", cm[1][0], cm[1][1]]],
            ),
            "",
        ]

        features = best_metrics.get("top_features", [])
        if features:
            out += [f"Top features ({features[0]['method']} importance):", ""]
            for i, f in enumerate(features, start=1):
                out.append(f"{i}. `{f['feature']}` ({f['importance']:.4f})")
            out.append("")
        out += _figure_links(figures, [f"feature_importance_{best}"])

        return "\n".join(out).rstrip() + "\n"

    def save_json(self, report: dict, path: str):
        """Write the report to disk as JSON."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(self._make_serializable(report), f, indent=2)
        log.info("JSON report saved to: %s", path)

    def save_markdown(self, report: dict, path: str):
        """Write the rendered Markdown report to disk."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            f.write(self.render_markdown(report))
        log.info("Markdown report saved to: %s", path)

    def _make_serializable(self, obj):
        """Recursively convert numpy types, tuples and NaN to JSON-safe values."""
        if isinstance(obj, dict):
            return {str(k): self._make_serializable(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self._make_serializable(v) for v in obj]
        if isinstance(obj, np.ndarray):
            return [self._make_serializable(v) for v in obj.tolist()]
        if isinstance(obj, np.generic):
            obj = obj.item()
        if isinstance(obj, float) and not math.isfinite(obj):
            return None
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        return str(obj)


def _fmt(value) -> str:
    return "N/A" if value is None else f"{value:.4f}"


def _table(headers: list[str], rows: list[list]) -> str:
    lines = [
        "| " + " | ".join(str(h) for h in headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(str(c) for c in row) + " |")
    return "\n".join(lines)


def _figure_links(figures: dict, keys: list[str]) -> list[str]:
    lines = []
    for key in keys:
        fig = figures.get(key)
        if fig and fig.get("status") == "success":
            lines += [f"![{fig['description']}]({fig['relative_path']})", ""]
    return lines
