import numpy as np
import pandas as pd
import pytest

from clinical_report.data import DatasetLoader, Preprocessor


class TestDatasetLoader:
    def test_breast_cancer_encodes_malignant_as_positive(self, breast_cancer):
        meta = breast_cancer["metadata"]
        assert meta["n_samples"] == 569
        assert meta["n_features"] == 30
        assert meta["positive_label"] == "malignant"
        assert meta["class_distribution"] == {0: 357, 1: 212}
        assert breast_cancer["categorical_features"] == []

    def test_unknown_dataset(self):
        with pytest.raises(ValueError, match="Unknown dataset"):
            DatasetLoader().load("not_a_dataset")

    def test_csv_defaults_to_minority_positive(self, patient_dataset):
        meta = patient_dataset["metadata"]
        assert meta["positive_label"] == "disease"
        assert meta["negative_label"] == "healthy"
        assert meta["class_distribution"] == {0: 78, 1: 42}
        assert patient_dataset["categorical_features"] == ["smoker"]
        assert "patient_id" not in patient_dataset["feature_names"]
        assert "outcome" not in patient_dataset["df"].columns
        assert meta["n_missing_values"] == 5

    def test_csv_explicit_positive_label(self, patient_csv):
        dataset = DatasetLoader().load_csv(str(patient_csv), "outcome", positive_label="healthy")
        assert dataset["metadata"]["class_distribution"] == {0: 42, 1: 78}

    def test_csv_unknown_positive_label(self, patient_csv):
        with pytest.raises(ValueError, match="Positive label"):
            DatasetLoader().load_csv(str(patient_csv), "outcome", positive_label="maybe")

    def test_csv_missing_target(self, patient_csv):
        with pytest.raises(ValueError, match="not found"):
            DatasetLoader().load_csv(str(patient_csv), "diagnosis")

    def test_csv_unknown_drop_column(self, patient_csv):
        with pytest.raises(ValueError, match="unknown columns"):
            DatasetLoader().load_csv(str(patient_csv), "outcome", drop_columns=["mrn"])

    def test_csv_rejects_multiclass_target(self, tmp_path):
        path = tmp_path / "three.csv"
        pd.DataFrame({"x": [1, 2, 3, 4, 5, 6], "y": ["a", "b", "c", "a", "b", "c"]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="exactly 2 classes"):
            DatasetLoader().load_csv(str(path), "y")

    def test_csv_numeric_target_keeps_one_positive(self, tmp_path):
        path = tmp_path / "binary.csv"
        # 1 is the majority here, but a 0/1 target is taken as-is.
        pd.DataFrame({"x": range(10), "y": [1] * 7 + [0] * 3}).to_csv(path, index=False)
        dataset = DatasetLoader().load_csv(str(path), "y")
        assert dataset["metadata"]["positive_label"] == 1
        assert dataset["df"]["target"].sum() == 7

    def test_csv_drops_unlabeled_rows(self, tmp_path):
        path = tmp_path / "unlabeled.csv"
        pd.DataFrame({"x": range(6), "y": ["a", "b", None, "a", "b", "a"]}).to_csv(path, index=False)
        dataset = DatasetLoader().load_csv(str(path), "y")
        assert dataset["metadata"]["n_samples"] == 5

    def test_csv_positive_label_matches_float_target(self, tmp_path):
        path = tmp_path / "float_target.csv"
        # The missing target turns the column into floats: 0.0 and 1.0.
        pd.DataFrame({"x": range(8), "y": [0, 1, 0, 1, None, 0, 1, 0]}).to_csv(path, index=False)
        dataset = DatasetLoader().load_csv(str(path), "y", positive_label="0")
        assert dataset["metadata"]["positive_label"] == 0.0
        assert dataset["metadata"]["class_distribution"] == {0: 3, 1: 4}


class TestPreprocessor:
    def test_split_is_stratified_and_complete(self, processed):
        y_train, y_test = processed["y_train"], processed["y_test"]
        assert len(y_train) + len(y_test) == 120
        assert len(y_test) == 30
        assert abs(y_train.mean() - y_test.mean()) < 0.05
        assert not np.isnan(processed["X_train"]).any()
        assert not np.isnan(processed["X_test"]).any()

    def test_categorical_features_are_one_hot_encoded(self, processed):
        names = processed["feature_names"]
        assert names[:5] == ["age", "bmi", "glucose", "pressure", "insulin"]
        assert "smoker_yes" in names
        assert "smoker" not in names
        assert processed["X_train"].shape[1] == len(names)

    def test_scaler_is_fitted_on_training_split_only(self, processed):
        scaler = processed["scaler"]
        assert scaler.n_samples_seen_ == len(processed["X_train"])
        np.testing.assert_allclose(processed["X_train"].mean(axis=0), 0.0, atol=1e-8)

    def test_preprocessing_info(self, processed):
        info = processed["preprocessing_info"]
        assert info["missing_values_imputed"] == 5
        assert info["duplicates_removed"] == 0
        assert info["categorical_encoded"] == ["smoker"]
        assert info["train_samples"] == 90

    def test_minmax_scaling(self, patient_dataset):
        processed = Preprocessor(scaling="minmax").run(patient_dataset)
        assert processed["X_train"].min() >= -1e-9
        assert processed["X_train"].max() <= 1.0 + 1e-9

    def test_duplicates_are_removed(self, breast_cancer):
        dataset = dict(breast_cancer)
        dataset["df"] = pd.concat([breast_cancer["df"], breast_cancer["df"].head(10)], ignore_index=True)
        processed = Preprocessor().run(dataset)
        assert processed["preprocessing_info"]["duplicates_removed"] == 10
        assert len(processed["y_train"]) + len(processed["y_test"]) == 569

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="scaling"):
            Preprocessor(scaling="robust")
        with pytest.raises(ValueError, match="test_size"):
            Preprocessor(test_size=1.5)

    def test_all_missing_feature_is_dropped(self, tmp_path, patient_csv):
        from clinical_report.models import ModelTrainer

        df = pd.read_csv(patient_csv)
        df["lab_result"] = np.nan
        path = tmp_path / "empty_column.csv"
        df.to_csv(path, index=False)
        dataset = DatasetLoader().load_csv(str(path), "outcome", drop_columns=["patient_id"])

        processed = Preprocessor().run(dataset)
        assert processed["preprocessing_info"]["all_missing_dropped"] == ["lab_result"]
        assert "lab_result" not in processed["feature_names"]
        assert processed["X_train"].shape[1] == len(processed["feature_names"])
        assert not np.isnan(processed["X_train"]).any()

        results = ModelTrainer(
            models=["logistic_regression"], cv_folds=3, search="none", n_jobs=1,
        ).run(processed)
        assert results["best_model_name"] == "logistic_regression"

    def test_only_missing_features_is_an_error(self, tmp_path):
        path = tmp_path / "nothing.csv"
        pd.DataFrame({"x": [np.nan] * 6, "y": [0, 1] * 3}).to_csv(path, index=False)
        dataset = DatasetLoader().load_csv(str(path), "y")
        with pytest.raises(ValueError, match="No features left"):
            Preprocessor().run(dataset)
