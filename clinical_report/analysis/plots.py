"""Figures for the exploratory analysis and the model comparison."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from clinical_report.config import FIGURE_DPI

CLASS_COLORS = ["#2196F3", "#F44336"]


def _save(fig, output_dir: str | Path, filename: str, description: str) -> dict[str, Any]:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / filename
    fig.savefig(output_path, dpi=FIGURE_DPI, bbox_inches="tight")
    plt.close(fig)
    return {
        "status": "success",
        "output_file": str(output_path),
        "description": description,
    }


def _skipped(reason: str) -> dict[str, Any]:
    return {"status": "skipped", "reason": reason}


def _grid(n: int, ncols: int = 3) -> tuple[int, int]:
    ncols = min(ncols, n)
    return math.ceil(n / ncols), ncols


# ---------------------------------------------------------------------------
# Exploratory figures
# ---------------------------------------------------------------------------
def plot_class_distribution(
    df: pd.DataFrame,
    target_name: str,
    output_dir: str | Path,
    class_labels: tuple[str, str] = ("negative", "positive"),
    output_filename: str = "class_distribution.png",
) -> dict[str, Any]:
    """Bar chart of the outcome classes with counts annotated."""
    counts = df[target_name].value_counts().reindex([0, 1], fill_value=0)
    names = [str(label) for label in class_labels]

    fig, ax = plt.subplots(figsize=(7, 5))
    bars = ax.bar(names, counts.values, color=CLASS_COLORS, edgecolor="black", linewidth=1.2)
    for bar in bars:
        height = bar.get_height()
        ax.text(bar.get_x() + bar.get_width() / 2, height, f"{int(height)}",
                ha="center", va="bottom", fontweight="bold")
    ax.set_ylabel("Count", fontsize=12)
    ax.set_title("Class Distribution", fontsize=14, fontweight="bold")
    ax.grid(axis="y", alpha=0.3)

    return _save(
        fig, output_dir, output_filename,
        f"Class distribution: {names[0]}={int(counts[0])}, {names[1]}={int(counts[1])}",
    )


def plot_feature_distributions(
    df: pd.DataFrame,
    features: list[str],
    target_name: str,
    output_dir: str | Path,
    class_labels: tuple[str, str] = ("negative", "positive"),
    output_filename: str = "feature_distributions.png",
) -> dict[str, Any]:
    """Overlaid per-class histograms, one panel per feature."""
    if not features:
        return _skipped("no features to plot")

    nrows, ncols = _grid(len(features))
    fig, axes = plt.subplots(nrows, ncols, figsize=(5 * ncols, 3.5 * nrows), squeeze=False)

    for ax, feat in zip(axes.flat, features):
        for cls, color in zip([0, 1], CLASS_COLORS):
            values = df.loc[df[target_name] == cls, feat].dropna()
            ax.hist(values, bins=20, alpha=0.55, color=color,
                    label=str(class_labels[cls]), edgecolor="black", linewidth=0.3)
        ax.set_title(feat, fontsize=10, fontweight="bold")
        ax.grid(True, alpha=0.3)
    axes.flat[0].legend(fontsize=8)
    for ax in list(axes.flat)[len(features):]:
        ax.set_visible(False)

    fig.suptitle("Feature Distributions by Class", fontsize=14, fontweight="bold")
    fig.tight_layout()
    return _save(fig, output_dir, output_filename,
                 f"Per-class histograms of {len(features)} features")


def plot_feature_boxplots(
    df: pd.DataFrame,
    features: list[str],
    target_name: str,
    output_dir: str | Path,
    class_labels: tuple[str, str] = ("negative", "positive"),
    output_filename: str = "feature_boxplots.png",
) -> dict[str, Any]:
    """Per-class box plots, one panel per feature."""
    if not features:
        return _skipped("no features to plot")

    nrows, ncols = _grid(len(features))
    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3.5 * nrows), squeeze=False)

    for ax, feat in zip(axes.flat, features):
        data = [df.loc[df[target_name] == cls, feat].dropna().values for cls in [0, 1]]
        box = ax.boxplot(data, patch_artist=True, widths=0.6)
        for patch, color in zip(box["boxes"], CLASS_COLORS):
            patch.set_facecolor(color)
            patch.set_alpha(0.6)
        ax.set_xticks([1, 2])
        ax.set_xticklabels([str(label) for label in class_labels])
        ax.set_title(feat, fontsize=10, fontweight="bold")
        ax.grid(axis="y", alpha=0.3)
    for ax in list(axes.flat)[len(features):]:
        ax.set_visible(False)

    fig.suptitle("Feature Box Plots by Class", fontsize=14, fontweight="bold")
    fig.tight_layout()
    return _save(fig, output_dir, output_filename,
                 f"Per-class box plots of {len(features)} features")


def plot_correlation_heatmap(
    df: pd.DataFrame,
    features: list[str],
    output_dir: str | Path,
    output_filename: str = "correlation_heatmap.png",
) -> dict[str, Any]:
    """Pearson correlation matrix of the numeric features."""
    if len(features) < 2:
        return _skipped("fewer than two numeric features")

    corr = df[features].corr().values
    size = max(6, 0.35 * len(features))
    fig, ax = plt.subplots(figsize=(size + 1.5, size))
    im = ax.imshow(corr, cmap="coolwarm", vmin=-1, vmax=1)
    ax.set_xticks(range(len(features)))
    ax.set_yticks(range(len(features)))
    ax.set_xticklabels(features, rotation=90, fontsize=7)
    ax.set_yticklabels(features, fontsize=7)
    if len(features) <= 12:
        for i in range(len(features)):
            for j in range(len(features)):
                ax.text(j, i, f"{corr[i, j]:.2f}", ha="center", va="center", fontsize=7)
    cbar = fig.colorbar(im, ax=ax, shrink=0.8)
    cbar.set_label("Pearson r")
    ax.set_title("Feature Correlation Heatmap", fontsize=14, fontweight="bold")

    return _save(fig, output_dir, output_filename,
                 f"Correlation heatmap of {len(features)} numeric features")


# ---------------------------------------------------------------------------
# Model comparison figures
# ---------------------------------------------------------------------------
def plot_roc_curves(
    roc_curves: dict[str, dict],
    output_dir: str | Path,
    output_filename: str = "roc_curves.png",
) -> dict[str, Any]:
    """Test-set ROC curves of every model on one set of axes."""
    if not roc_curves:
        return _skipped("no model exposes class probabilities")

    fig, ax = plt.subplots(figsize=(8, 7))
    ordered = sorted(roc_curves.items(), key=lambda kv: kv[1]["auc"], reverse=True)
    for name, curve in ordered:
        ax.plot(curve["fpr"], curve["tpr"], linewidth=2,
                label=f"{name} (AUC = {curve['auc']:.3f})")
    ax.plot([0, 1], [0, 1], color="gray", linestyle="--", linewidth=1, label="Chance")
    ax.set_xlabel("False Positive Rate (1 - Specificity)", fontsize=12)
    ax.set_ylabel("True Positive Rate (Sensitivity)", fontsize=12)
    ax.set_title("ROC Curves on the Test Set", fontsize=14, fontweight="bold")
    ax.legend(loc="lower right", fontsize=9)
    ax.grid(True, alpha=0.3)

    return _save(fig, output_dir, output_filename,
                 f"ROC curves for {len(roc_curves)} models")


def plot_confusion_matrices(
    evaluations: dict[str, dict],
    output_dir: str | Path,
    class_labels: tuple[str, str] = ("negative", "positive"),
    output_filename: str = "confusion_matrices.png",
) -> dict[str, Any]:
    """Annotated confusion matrix panel for each model."""
    if not evaluations:
        return _skipped("no evaluated models")

    names = list(evaluations)
    nrows, ncols = _grid(len(names))
    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3.8 * nrows), squeeze=False)
    labels = [str(label) for label in class_labels]

    for ax, name in zip(axes.flat, names):
        cm = np.asarray(evaluations[name]["confusion_matrix"])
        ax.imshow(cm, cmap="Blues")
        threshold = cm.max() / 2 if cm.max() > 0 else 0
        for i in range(cm.shape[0]):
            for j in range(cm.shape[1]):
                ax.text(j, i, str(cm[i, j]), ha="center", va="center", fontweight="bold",
                        color="white" if cm[i, j] > threshold else "black")
        ax.set_xticks([0, 1])
        ax.set_yticks([0, 1])
        ax.set_xticklabels(labels)
        ax.set_yticklabels(labels)
        ax.set_xlabel("Predicted")
        ax.set_ylabel("Actual")
        ax.set_title(name, fontsize=11, fontweight="bold")
    for ax in list(axes.flat)[len(names):]:
        ax.set_visible(False)

    fig.suptitle("Confusion Matrices (Test Set)", fontsize=14, fontweight="bold")
    fig.tight_layout()
    return _save(fig, output_dir, output_filename,
                 f"Confusion matrices for {len(names)} models")


def plot_feature_importance(
    importances: list[dict],
    model_name: str,
    output_dir: str | Path,
    output_filename: str | None = None,
) -> dict[str, Any]:
    """Horizontal bar chart of a model's variable importance."""
    if not importances:
        return _skipped(f"no importances for {model_name}")

    ordered = importances[::-1]
    method = importances[0].get("method", "importance")
    fig, ax = plt.subplots(figsize=(8, 0.4 * len(ordered) + 1.5))
    ax.barh([i["feature"] for i in ordered], [i["importance"] for i in ordered],
            color="#4CAF50", edgecolor="black", linewidth=0.5)
    ax.set_xlabel(f"Importance ({method})", fontsize=12)
    ax.set_title(f"Variable Importance: {model_name}", fontsize=14, fontweight="bold")
    ax.grid(axis="x", alpha=0.3)

    if output_filename is None:
        output_filename = f"feature_importance_{model_name}.png"
    return _save(fig, output_dir, output_filename,
                 f"Top {len(importances)} features of {model_name} by {method} importance")


def plot_cv_comparison(
    cv_scores: dict[str, dict],
    output_dir: str | Path,
    metric: str = "roc_auc",
    output_filename: str | None = None,
) -> dict[str, Any]:
    """Box plots of per-fold cross-validation scores, one box per model."""
    names = [n for n in cv_scores if metric in cv_scores[n]]
    if not names:
        return _skipped(f"no cross-validation scores for {metric}")

    names.sort(key=lambda n: np.mean(cv_scores[n][metric]), reverse=True)
    data = [np.asarray(cv_scores[n][metric]) for n in names]

    fig, ax = plt.subplots(figsize=(max(7, 1.4 * len(names)), 5))
    ax.boxplot(data, widths=0.6)
    for i, scores in enumerate(data, start=1):
        ax.scatter(np.full(len(scores), i), scores, color="#FF9800", s=18, zorder=3)
    ax.set_xticks(range(1, len(names) + 1))
    ax.set_xticklabels(names, rotation=30, ha="right")
    ax.set_ylabel(f"CV {metric}", fontsize=12)
    ax.set_title("Cross-Validation Resamples", fontsize=14, fontweight="bold")
    ax.grid(axis="y", alpha=0.3)

    if output_filename is None:
        output_filename = (
            "cv_comparison.png" if metric == "roc_auc" else f"cv_comparison_{metric}.png"
        )
    return _save(fig, output_dir, output_filename,
                 f"Per-fold CV {metric} for {len(names)} models")


def plot_tuning_results(
    results: list[dict],
    output_dir: str | Path,
    output_filename: str = "tuning_results.png",
) -> dict[str, Any]:
    """Mean CV score of each searched candidate, ranked, one panel per model."""
    tuned = [r for r in results if r["tuning"]["candidates"]]
    if not tuned:
        return _skipped("no hyperparameter search was run")

    nrows, ncols = _grid(len(tuned))
    fig, axes = plt.subplots(nrows, ncols, figsize=(5 * ncols, 3.5 * nrows), squeeze=False)

    for ax, entry in zip(axes.flat, tuned):
        candidates = entry["tuning"]["candidates"]
        means = np.array([c["mean_score"] for c in candidates])
        stds = np.array([c["std_score"] for c in candidates])
        ranks = np.arange(1, len(candidates) + 1)
        ax.errorbar(ranks, means, yerr=stds, fmt="o-", markersize=3,
                    color="#3F51B5", ecolor="#9FA8DA", capsize=2)
        ax.set_xlabel("Candidate rank")
        ax.set_ylabel("Mean CV score")
        ax.set_title(f"{entry['name']} ({entry['tuning']['search']})",
                     fontsize=10, fontweight="bold")
        ax.grid(True, alpha=0.3)
    for ax in list(axes.flat)[len(tuned):]:
        ax.set_visible(False)

    fig.suptitle("Hyperparameter Search Results", fontsize=14, fontweight="bold")
    fig.tight_layout()
    return _save(fig, output_dir, output_filename,
                 f"Search results for {len(tuned)} tuned models")
