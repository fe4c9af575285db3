import numpy as np
import pandas as pd

from clinical_report.analysis import DataExplorer


def test_report_sections(patient_dataset):
    report = DataExplorer().run(patient_dataset)
    assert set(report) == {
        "basic_stats",
        "missing_values",
        "class_balance",
        "feature_correlations",
        "target_correlations",
        "top_discriminative_features",
        "categorical_associations",
        "distribution_shape",
        "outlier_summary",
    }
    assert report["basic_stats"]["shape"] == (120, 7)
    assert "smoker" not in report["basic_stats"]["summary"]


def test_missing_values(patient_dataset):
    missing = DataExplorer().run(patient_dataset)["missing_values"]
    assert missing["counts"] == {"glucose": 3, "smoker": 2}
    assert missing["total"] == 5
    assert missing["percentages"]["glucose"] == 2.5


def test_class_balance(patient_dataset):
    balance = DataExplorer().run(patient_dataset)["class_balance"]
    assert balance["counts"] == {0: 78, 1: 42}
    assert balance["status"] == "moderate_imbalance"
    assert round(balance["imbalance_ratio"], 3) == round(78 / 42, 3)


def test_discriminative_features_sorted_and_constant_skipped(patient_dataset):
    dataset = dict(patient_dataset)
    df = patient_dataset["df"].copy()
    df["constant"] = 1.0
    dataset["df"] = df
    dataset["feature_names"] = patient_dataset["feature_names"] + ["constant"]

    top = DataExplorer().run(dataset)["top_discriminative_features"]
    names = [t["feature"] for t in top]
    assert "constant" not in names
    assert len(names) == 5
    t_abs = [abs(t["t_statistic"]) for t in top]
    assert t_abs == sorted(t_abs, reverse=True)
    assert all(t["effect_size_cohens_d"] >= 0 for t in top)


def test_categorical_association(patient_dataset):
    assoc = DataExplorer().run(patient_dataset)["categorical_associations"]
    assert [a["feature"] for a in assoc] == ["smoker"]
    assert assoc[0]["dof"] == 1
    assert 0.0 <= assoc[0]["p_value"] <= 1.0


def test_breast_cancer_correlations(breast_cancer):
    report = DataExplorer().run(breast_cancer)
    pairs = report["feature_correlations"]["highly_correlated_pairs"]
    assert report["feature_correlations"]["n_highly_correlated"] == len(pairs) > 0
    assert all(abs(p["correlation"]) > 0.9 for p in pairs)
    names = {frozenset((p["feature_1"], p["feature_2"])) for p in pairs}
    assert frozenset(("mean radius", "mean perimeter")) in names
    # Malignant tumours are larger: positive correlation with the target.
    target_corr = {t["feature"]: t["r"] for t in report["target_correlations"]}
    assert target_corr["mean radius"] > 0.5


def test_outliers_and_skew():
    rng = np.random.default_rng(1)
    values = np.concatenate([rng.normal(0, 1, 98), [25.0, 30.0]])
    df = pd.DataFrame({"x": values, "target": [0, 1] * 50})
    dataset = {"df": df, "feature_names": ["x"], "categorical_features": [], "target_name": "target"}
    report = DataExplorer().run(dataset)
    assert report["outlier_summary"]["features_with_outliers"]["x"] >= 2
    assert report["distribution_shape"]["highly_skewed"] == ["x"]


def test_severe_imbalance():
    df = pd.DataFrame({"x": np.arange(40, dtype=float), "target": [1] * 5 + [0] * 35})
    dataset = {"df": df, "feature_names": ["x"], "categorical_features": [], "target_name": "target"}
    balance = DataExplorer().run(dataset)["class_balance"]
    assert balance["status"] == "severe_imbalance"


def test_single_level_categorical_is_skipped(patient_dataset):
    dataset = dict(patient_dataset)
    df = patient_dataset["df"].copy()
    df["site"] = "A"
    dataset["df"] = df
    dataset["feature_names"] = patient_dataset["feature_names"] + ["site"]
    dataset["categorical_features"] = patient_dataset["categorical_features"] + ["site"]

    assoc = DataExplorer().run(dataset)["categorical_associations"]
    assert [a["feature"] for a in assoc] == ["smoker"]


def test_perfect_separator_has_infinite_effect_size():
    from clinical_report.evaluation import Reporter

    labels = [0] * 10 + [1] * 10
    df = pd.DataFrame({"x": [0.0] * 10 + [1.0] * 10, "target": labels})
    dataset = {"df": df, "feature_names": ["x"], "categorical_features": [], "target_name": "target"}
    top = DataExplorer().run(dataset)["top_discriminative_features"]
    assert top[0]["feature"] == "x"
    assert top[0]["effect_size_cohens_d"] == float("inf")
    assert Reporter()._make_serializable(top[0])["effect_size_cohens_d"] is None
