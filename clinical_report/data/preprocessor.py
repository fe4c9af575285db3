"""Data preprocessing module for tabular medical datasets."""

import pandas as pd
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler, MinMaxScaler

from clinical_report.config import RANDOM_STATE, SCALING_METHODS
from clinical_report.utils import get_logger

log = get_logger(__name__)


class Preprocessor:
    """Handles data cleaning, encoding, scaling, and train/test splitting."""

    def __init__(self, scaling: str = "standard", test_size: float = 0.2,
                 random_state: int = RANDOM_STATE):
        if scaling not in SCALING_METHODS:
            raise ValueError(
                f"Unknown scaling method: {scaling}. Available: {SCALING_METHODS}"
            )
        if not 0.0 < test_size < 1.0:
            raise ValueError(f"test_size must be in (0, 1), got {test_size}")

        self.scaling = scaling
        self.test_size = test_size
        self.random_state = random_state
        self.scaler = None

    def run(self, dataset: dict) -> dict:
        """
        Full preprocessing pipeline.

        Takes a dataset dict from DatasetLoader and returns a processed dict
        with train/test splits and scaled features.
        """
        df = dataset["df"].copy()
        feature_names = list(dataset["feature_names"])
        categorical = list(dataset.get("categorical_features", []))
        numeric = [f for f in feature_names if f not in categorical]
        target_name = dataset["target_name"]

        log.info("Starting preprocessing pipeline")

        # Step 1: Remove duplicate rows
        n_dups = int(df.duplicated().sum())
        if n_dups > 0:
            log.info("Removing %d duplicate rows", n_dups)
            df = df.drop_duplicates().reset_index(drop=True)

        # Step 2: Drop features with no observed values; nothing to impute from
        all_missing = [f for f in feature_names if df[f].isnull().all()]
        if all_missing:
            log.warning("Dropping %d all-missing features: %s", len(all_missing), all_missing)
            df = df.drop(columns=all_missing)
            feature_names = [f for f in feature_names if f not in all_missing]
            categorical = [f for f in categorical if f not in all_missing]
            numeric = [f for f in numeric if f not in all_missing]
        if not feature_names:
            raise ValueError("No features left after dropping all-missing columns")

        # Step 3: Handle missing values
        missing_before = int(df[feature_names].isnull().sum().sum())
        if missing_before > 0:
            log.info(
                "Found %d missing values, imputing median (numeric) / mode (categorical)",
                missing_before,
            )
            for col in numeric:
                if df[col].isnull().any():
                    df[col] = df[col].fillna(df[col].median())
            for col in categorical:
                if df[col].isnull().any():
                    df[col] = df[col].fillna(df[col].mode().iloc[0])
        else:
            log.info("No missing values detected")

        # Step 4: One-hot encode categorical features
        if categorical:
            df = pd.get_dummies(df, columns=categorical, drop_first=True, dtype=float)
            encoded = [c for c in df.columns if c != target_name and c not in numeric]
            feature_names = numeric + encoded
            log.info(
                "One-hot encoded %d categorical features into %d columns",
                len(categorical), len(encoded),
            )

        # Step 5: Stratified train/test split
        X = df[feature_names].to_numpy(dtype=float)
        y = df[target_name].to_numpy(dtype=int)

        X_train, X_test, y_train, y_test = train_test_split(
            X, y,
            test_size=self.test_size,
            random_state=self.random_state,
            stratify=y,
        )
        log.info(
            "Split: %d train / %d test (%.0f%% test)",
            len(X_train), len(X_test), self.test_size * 100,
        )

        # Step 6: Feature scaling, fitted on the training split only
        if self.scaling == "standard":
            self.scaler = StandardScaler()
        else:
            self.scaler = MinMaxScaler()

        X_train_scaled = self.scaler.fit_transform(X_train)
        X_test_scaled = self.scaler.transform(X_test)

        log.info("Applied %s scaling", self.scaling)

        return {
            "X_train": X_train_scaled,
            "X_test": X_test_scaled,
            "y_train": y_train,
            "y_test": y_test,
            "feature_names": feature_names,
            "target_name": target_name,
            "scaler": self.scaler,
            "metadata": dataset["metadata"],
            "preprocessing_info": {
                "missing_values_imputed": missing_before,
                "duplicates_removed": n_dups,
                "all_missing_dropped": all_missing,
                "categorical_encoded": categorical,
                "n_features_after_encoding": len(feature_names),
                "scaling": self.scaling,
                "test_size": self.test_size,
                "train_samples": len(X_train),
                "test_samples": len(X_test),
            },
        }
