import json

import numpy as np
import pytest

from clinical_report.evaluation import ModelEvaluator, Reporter, compare_resamples


@pytest.fixture
def evaluation_results(training_results, processed):
    return ModelEvaluator(n_jobs=1).run(training_results, processed)


class TestModelEvaluator:
    def test_classification_metrics(self):
        y_true = np.array([0, 0, 1, 1])
        y_pred = np.array([0, 1, 1, 1])
        y_prob = np.array([0.1, 0.6, 0.8, 0.9])
        metrics = ModelEvaluator.classification_metrics(y_true, y_pred, y_prob)

        assert metrics["confusion_matrix"] == [[1, 1], [0, 2]]
        assert metrics["accuracy"] == 0.75
        assert metrics["recall"] == 1.0
        assert metrics["specificity"] == 0.5
        assert metrics["precision"] == 0.6667
        assert metrics["roc_auc"] == 1.0
        assert "brier_score" in metrics

    def test_metrics_without_probabilities(self):
        metrics = ModelEvaluator.classification_metrics(np.array([0, 1]), np.array([0, 1]))
        assert "roc_auc" not in metrics
        assert metrics["f1"] == 1.0

    def test_importance_methods(self, training_results, processed):
        evaluator = ModelEvaluator(n_jobs=1)
        methods = {}
        for name, model in training_results["trained_models"].items():
            importance = evaluator.feature_importance(
                model, processed["feature_names"], processed["X_test"], processed["y_test"],
            )
            assert len(importance) == len(processed["feature_names"])
            values = [i["importance"] for i in importance]
            assert values == sorted(values, reverse=True)
            methods[name] = importance[0]["method"]

        assert methods == {
            "logistic_regression": "coefficient",
            "naive_bayes": "permutation",
            "random_forest": "impurity",
        }

    def test_run(self, evaluation_results, training_results):
        evaluations = evaluation_results["evaluations"]
        assert set(evaluations) == set(training_results["trained_models"])
        assert evaluation_results["selection_metric"] == "roc_auc"
        best = evaluation_results["best_model_name"]
        assert evaluations[best]["roc_auc"] == max(e["roc_auc"] for e in evaluations.values())
        assert set(evaluation_results["roc_curves"]) == set(evaluations)
        assert len(evaluations[best]["top_features"]) <= 10
        assert len(evaluation_results["resample_comparisons"]) == 3

    def test_roc_curve_points(self, evaluation_results):
        for curve in evaluation_results["roc_curves"].values():
            assert curve["fpr"][0] == 0.0 and curve["fpr"][-1] == 1.0
            assert curve["tpr"][-1] == 1.0
            assert len(curve["fpr"]) == len(curve["tpr"]) == len(curve["thresholds"])


class TestCompareResamples:
    def test_needs_two_models(self):
        assert compare_resamples({"a": {"roc_auc": [0.9, 0.8, 0.85]}}) == []

    def test_identical_scores_are_not_different(self):
        scores = [0.9, 0.8, 0.85]
        result = compare_resamples({"a": {"roc_auc": scores}, "b": {"roc_auc": scores}})
        assert result[0]["p_value"] == 1.0
        assert result[0]["significant"] is False

    def test_consistent_difference(self):
        cv_scores = {
            "good": {"roc_auc": np.array([0.95, 0.93, 0.96, 0.94, 0.97])},
            "poor": {"roc_auc": np.array([0.71, 0.70, 0.74, 0.69, 0.73])},
        }
        result = compare_resamples(cv_scores)
        assert len(result) == 1
        assert result[0]["model_a"] == "good"
        assert result[0]["mean_difference"] > 0.2
        assert result[0]["significant"] is True


class TestReporter:
    def test_make_serializable(self):
        reporter = Reporter()
        obj = {
            1: np.int64(3),
            "nan": np.float64("nan"),
            "inf": float("inf"),
            "arr": np.array([1.5, 2.5]),
            "tuple": (1, 2),
            "flag": np.bool_(True),
        }
        out = reporter._make_serializable(obj)
        assert out == {
            "1": 3,
            "nan": None,
            "inf": None,
            "arr": [1.5, 2.5],
            "tuple": [1, 2],
            "flag": True,
        }
        json.dumps(out)

    def test_generate_and_render(self, tmp_path, patient_dataset, processed,
                                 training_results, evaluation_results):
        from clinical_report.analysis import DataExplorer

        reporter = Reporter()
        report = reporter.generate(
            dataset_metadata=processed["metadata"],
            eda_report=DataExplorer().run(patient_dataset),
            preprocessing_info=processed["preprocessing_info"],
            training_results=training_results,
            evaluation_results=evaluation_results,
        )
        assert all("model" not in m for m in report["training"]["models"])
        assert report["evaluation"]["best_model"] == evaluation_results["best_model_name"]

        summary = reporter.print_summary(report)
        for name in training_results["trained_models"]:
            assert name in summary

        markdown = reporter.render_markdown(report)
        assert markdown.startswith("# Classification Report")
        assert "## 4. Models" in markdown
        assert "## 5. Best model" in markdown
        assert "| Model | CV AUC |" in markdown
        assert "smoker" in markdown
        assert "| healthy | 78 | 0.650 |" in markdown
        assert "| disease | 42 | 0.350 |" in markdown

        reporter.save_json(report, str(tmp_path / "out" / "report.json"))
        reporter.save_markdown(report, str(tmp_path / "out" / "report.md"))
        loaded = json.loads((tmp_path / "out" / "report.json").read_text())
        assert loaded["dataset"]["positive_label"] == "disease"
        assert (tmp_path / "out" / "report.md").read_text() == markdown
