"""Exploratory data analysis module for tabular medical datasets."""

import numpy as np
import pandas as pd
from scipy import stats

from clinical_report.config import (
    HIGH_CORRELATION_THRESHOLD,
    IMBALANCE_MODERATE,
    IMBALANCE_SEVERE,
    IQR_MULTIPLIER,
    SIGNIFICANCE_LEVEL,
    SKEW_THRESHOLD,
    TOP_N_FEATURES,
)
from clinical_report.utils import get_logger

log = get_logger(__name__)


class DataExplorer:
    """Performs exploratory data analysis on a binary-outcome dataset."""

    def __init__(self, top_n: int = TOP_N_FEATURES):
        self.top_n = top_n
        self.report = {}

    def run(self, dataset: dict) -> dict:
        """
        Run full exploratory analysis on a dataset.

        Returns a comprehensive EDA report dict.
        """
        df = dataset["df"]
        feature_names = dataset["feature_names"]
        categorical = dataset.get("categorical_features", [])
        numeric = [f for f in feature_names if f not in categorical]
        target_name = dataset["target_name"]

        log.info(
            "Running exploratory data analysis on %d samples (%d numeric, %d categorical)",
            len(df), len(numeric), len(categorical),
        )

        self.report = {
            "basic_stats": self._basic_stats(df, numeric),
            "missing_values": self._missing_values(df, feature_names),
            "class_balance": self._class_balance(df, target_name),
            "feature_correlations": self._correlations(df, numeric),
            "target_correlations": self._target_correlations(df, numeric, target_name),
            "top_discriminative_features": self._discriminative_features(
                df, numeric, target_name
            ),
            "categorical_associations": self._categorical_associations(
                df, categorical, target_name
            ),
            "distribution_shape": self._distribution_shape(df, numeric),
            "outlier_summary": self._outlier_analysis(df, numeric),
        }

        log.info("EDA complete: %d analysis sections generated", len(self.report))
        return self.report

    def _basic_stats(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Compute basic descriptive statistics."""
        if not features:
            return {"shape": df.shape, "summary": {}, "dtypes": {}}
        desc = df[features].describe()
        return {
            "shape": df.shape,
            "summary": desc.to_dict(),
            "dtypes": df[features].dtypes.astype(str).to_dict(),
        }

    def _missing_values(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Count missing values per feature."""
        counts = df[features].isnull().sum()
        counts = counts[counts > 0].sort_values(ascending=False)
        log.info("Missing values: %d features affected", len(counts))
        return {
            "counts": {k: int(v) for k, v in counts.items()},
            "percentages": {k: round(100.0 * v / len(df), 2) for k, v in counts.items()},
            "total": int(counts.sum()),
        }

    def _class_balance(self, df: pd.DataFrame, target: str) -> dict:
        """Analyze target class distribution."""
        counts = df[target].value_counts()
        proportions = df[target].value_counts(normalize=True)
        imbalance_ratio = counts.max() / counts.min() if counts.min() > 0 else float("inf")

        balance_status = "balanced" if imbalance_ratio < IMBALANCE_MODERATE else (
            "moderate_imbalance" if imbalance_ratio < IMBALANCE_SEVERE else "severe_imbalance"
        )

        log.info(
            "Class balance: %s (ratio=%.2f)", balance_status, imbalance_ratio
        )

        return {
            "counts": counts.to_dict(),
            "proportions": proportions.to_dict(),
            "imbalance_ratio": float(imbalance_ratio),
            "status": balance_status,
        }

    def _correlations(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Compute feature correlation matrix and identify highly correlated pairs."""
        corr_matrix = df[features].corr()

        high_corr_pairs = []
        for i in range(len(features)):
            for j in range(i + 1, len(features)):
                r = corr_matrix.iloc[i, j]
                if abs(r) > HIGH_CORRELATION_THRESHOLD:
                    high_corr_pairs.append({
                        "feature_1": features[i],
                        "feature_2": features[j],
                        "correlation": round(float(r), 4),
                    })

        high_corr_pairs.sort(key=lambda x: abs(x["correlation"]), reverse=True)
        log.info(
            "Found %d highly correlated feature pairs (|r|>%.1f)",
            len(high_corr_pairs), HIGH_CORRELATION_THRESHOLD,
        )

        return {
            "threshold": HIGH_CORRELATION_THRESHOLD,
            "highly_correlated_pairs": high_corr_pairs,
            "n_highly_correlated": len(high_corr_pairs),
        }

    def _target_correlations(self, df: pd.DataFrame, features: list[str],
                             target: str) -> list[dict]:
        """Point-biserial correlation of each numeric feature with the outcome."""
        results = []
        for feat in features:
            subset = df[[feat, target]].dropna()
            if subset[feat].nunique() < 2:
                continue
            r, p_val = stats.pointbiserialr(subset[target], subset[feat])
            results.append({
                "feature": feat,
                "r": round(float(r), 4),
                "p_value": float(p_val),
            })

        results.sort(key=lambda x: abs(x["r"]), reverse=True)
        return results

    def _discriminative_features(self, df: pd.DataFrame, features: list[str],
                                  target: str) -> list[dict]:
        """
        Rank features by discriminative power using Welch's t-test between
        classes, with Cohen's d against the pooled standard deviation.
        """
        classes = sorted(df[target].unique())
        if len(classes) != 2:
            log.warning("Discriminative analysis requires exactly 2 classes, found %d", len(classes))
            return []

        results = []
        group_0 = df[df[target] == classes[0]]
        group_1 = df[df[target] == classes[1]]

        for feat in features:
            a = group_0[feat].dropna()
            b = group_1[feat].dropna()
            if len(a) < 2 or len(b) < 2 or df[feat].nunique() < 2:
                log.warning("Skipping t-test for '%s': constant or too few values", feat)
                continue

            t_stat, p_val = stats.ttest_ind(a, b, equal_var=False)
            pooled = np.sqrt(
                ((len(a) - 1) * a.var() + (len(b) - 1) * b.var()) / (len(a) + len(b) - 2)
            )
            diff = abs(a.mean() - b.mean())
            if pooled > 0:
                effect_size = diff / pooled
            else:
                # Zero within-class spread: any mean gap is a perfect separation.
                effect_size = float("inf") if diff > 0 else 0.0

            results.append({
                "feature": feat,
                "mean_negative": round(float(a.mean()), 4),
                "mean_positive": round(float(b.mean()), 4),
                "t_statistic": round(float(t_stat), 4),
                "p_value": float(p_val),
                "effect_size_cohens_d": round(float(effect_size), 4),
            })

        results.sort(key=lambda x: abs(x["t_statistic"]), reverse=True)
        top_n = results[:self.top_n]

        log.info("Top discriminative features:")
        for i, r in enumerate(top_n[:5]):
            log.info(
                "  %d. %s (t=%.2f, d=%.2f, p=%.2e)",
                i + 1, r["feature"], r["t_statistic"],
                r["effect_size_cohens_d"], r["p_value"],
            )

        return top_n

    def _categorical_associations(self, df: pd.DataFrame, features: list[str],
                                  target: str) -> list[dict]:
        """Chi-square test of independence between each categorical feature and the target."""
        results = []
        for feat in features:
            table = pd.crosstab(df[feat], df[target])
            if table.shape[0] < 2 or table.shape[1] < 2:
                log.warning("Skipping chi-square test for '%s': single level", feat)
                continue
            chi2, p_val, dof, _ = stats.chi2_contingency(table)
            results.append({
                "feature": feat,
                "chi2": round(float(chi2), 4),
                "dof": int(dof),
                "p_value": float(p_val),
                "significant": bool(p_val < SIGNIFICANCE_LEVEL),
            })

        results.sort(key=lambda x: x["p_value"])
        if results:
            log.info(
                "Chi-square tests: %d/%d categorical features associated with the outcome",
                sum(r["significant"] for r in results), len(results),
            )
        return results

    def _distribution_shape(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Skewness and excess kurtosis of each numeric feature."""
        if not features:
            return {"skewness": {}, "kurtosis": {}, "highly_skewed": []}
        skew = df[features].skew()
        kurt = df[features].kurt()
        highly_skewed = [f for f in features if abs(skew[f]) > SKEW_THRESHOLD]
        log.info("Distribution shape: %d highly skewed features", len(highly_skewed))
        return {
            "skewness": {f: round(float(skew[f]), 4) for f in features},
            "kurtosis": {f: round(float(kurt[f]), 4) for f in features},
            "highly_skewed": highly_skewed,
        }

    def _outlier_analysis(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Detect outliers using IQR method."""
        outlier_counts = {}
        total_outliers = 0

        for feat in features:
            q1 = df[feat].quantile(0.25)
            q3 = df[feat].quantile(0.75)
            iqr = q3 - q1
            lower = q1 - IQR_MULTIPLIER * iqr
            upper = q3 + IQR_MULTIPLIER * iqr
            n_outliers = int(((df[feat] < lower) | (df[feat] > upper)).sum())
            if n_outliers > 0:
                outlier_counts[feat] = n_outliers
                total_outliers += n_outliers

        log.info(
            "Outlier analysis: %d total outliers across %d features",
            total_outliers, len(outlier_counts),
        )

        return {
            "features_with_outliers": outlier_counts,
            "total_outlier_values": total_outliers,
            "n_features_with_outliers": len(outlier_counts),
        }
