"""Dataset loading module for tabular medical datasets."""

import numpy as np
import pandas as pd
from sklearn.datasets import load_breast_cancer

from clinical_report.utils import get_logger

log = get_logger(__name__)

# Registry of bundled datasets. ``positive_class`` is the raw target code of
# the disease class; it is re-encoded to 1 on load.
DATASET_REGISTRY = {
    "breast_cancer": {
        "loader": load_breast_cancer,
        "description": "Wisconsin Diagnostic Breast Cancer dataset (569 samples, 30 features)",
        "task": "binary_classification",
        "positive_label": "malignant",
        "negative_label": "benign",
        "positive_class": 0,
    },
}

TARGET_NAME = "target"


class DatasetLoader:
    """Loads and serves medical datasets for analysis."""

    @staticmethod
    def list_available() -> list[str]:
        """Return names of all available datasets."""
        return list(DATASET_REGISTRY.keys())

    def load(self, name: str = "breast_cancer") -> dict:
        """
        Load a bundled dataset by name.

        Returns a dict with keys:
            - df: pd.DataFrame with features and a 0/1 target (1 = positive)
            - feature_names: list of feature column names
            - categorical_features: subset of feature_names that are categorical
            - target_name: name of the target column
            - task: classification task type
            - metadata: extra info about the dataset
        """
        if name not in DATASET_REGISTRY:
            raise ValueError(
                f"Unknown dataset '{name}'. "
                f"Available: {self.list_available()}"
            )

        entry = DATASET_REGISTRY[name]
        log.info("Loading dataset: %s", name)
        log.info("Description: %s", entry["description"])

        raw = entry["loader"]()
        feature_names = list(raw.feature_names)

        df = pd.DataFrame(raw.data, columns=feature_names)
        df[TARGET_NAME] = (raw.target == entry["positive_class"]).astype(int)

        return self._build_result(
            df,
            name=name,
            feature_names=feature_names,
            categorical_features=[],
            target_name=TARGET_NAME,
            positive_label=entry["positive_label"],
            negative_label=entry["negative_label"],
            task=entry["task"],
        )

    def load_csv(self, path: str, target_column: str,
                 positive_label=None, drop_columns: list[str] | None = None) -> dict:
        """
        Load a binary-outcome dataset from a CSV file.

        The target is re-encoded to 0/1. When ``positive_label`` is not given,
        a {0, 1} target keeps 1 as positive; any other pair of labels takes the
        minority class as positive.
        """
        log.info("Loading CSV dataset from: %s", path)
        df = pd.read_csv(path)

        if target_column not in df.columns:
            raise ValueError(
                f"Target column '{target_column}' not found. "
                f"Available: {list(df.columns)}"
            )

        drop_columns = drop_columns or []
        missing_drops = [c for c in drop_columns if c not in df.columns]
        if missing_drops:
            raise ValueError(f"Cannot drop unknown columns: {missing_drops}")
        if target_column in drop_columns:
            raise ValueError("The target column cannot be dropped")
        df = df.drop(columns=drop_columns)

        n_unlabeled = int(df[target_column].isnull().sum())
        if n_unlabeled > 0:
            log.warning("Dropping %d rows with a missing target", n_unlabeled)
            df = df.dropna(subset=[target_column]).reset_index(drop=True)

        labels = df[target_column].unique()
        if len(labels) != 2:
            raise ValueError(
                f"Target column '{target_column}' must have exactly 2 classes, "
                f"found {len(labels)}: {sorted(map(str, labels))}"
            )

        positive, negative = self._resolve_labels(df[target_column], positive_label)
        log.info("Positive class: %r, negative class: %r", positive, negative)

        target = (df[target_column] == positive).astype(int)
        df = df.drop(columns=[target_column])
        df[TARGET_NAME] = target

        feature_names = [c for c in df.columns if c != TARGET_NAME]
        categorical = [
            c for c in feature_names
            if not pd.api.types.is_numeric_dtype(df[c])
            or pd.api.types.is_bool_dtype(df[c])
        ]

        return self._build_result(
            df,
            name=str(path),
            feature_names=feature_names,
            categorical_features=categorical,
            target_name=TARGET_NAME,
            positive_label=positive,
            negative_label=negative,
            task="binary_classification",
        )

    @staticmethod
    def _resolve_labels(target: pd.Series, positive_label=None) -> tuple:
        """Pick the (positive, negative) raw labels of a two-class target."""
        labels = list(target.unique())

        if positive_label is not None:
            # CLI values arrive as strings; match them against the raw labels.
            matches = [label for label in labels if _label_matches(label, positive_label)]
            if not matches:
                raise ValueError(
                    f"Positive label {positive_label!r} not found in target. "
                    f"Available: {sorted(map(str, labels))}"
                )
            positive = matches[0]
        elif set(labels) <= {0, 1}:
            positive = 1
        else:
            counts = target.value_counts()
            minority = counts[counts == counts.min()].index
            positive = sorted(minority, key=str)[-1]

        negative = next(label for label in labels if label != positive)
        return positive, negative

    def _build_result(self, df: pd.DataFrame, name: str, feature_names: list[str],
                      categorical_features: list[str], target_name: str,
                      positive_label, negative_label, task: str) -> dict:
        metadata = {
            "name": name,
            "n_samples": len(df),
            "n_features": len(feature_names),
            "n_categorical": len(categorical_features),
            "task": task,
            "positive_label": _to_native(positive_label),
            "negative_label": _to_native(negative_label),
            "class_distribution": {
                int(k): int(v) for k, v in df[target_name].value_counts().items()
            },
            "n_missing_values": int(df[feature_names].isnull().sum().sum()),
        }

        log.info(
            "Loaded %d samples with %d features (%d categorical)",
            metadata["n_samples"],
            metadata["n_features"],
            metadata["n_categorical"],
        )

        return {
            "df": df,
            "feature_names": feature_names,
            "categorical_features": categorical_features,
            "target_name": target_name,
            "task": task,
            "metadata": metadata,
        }


def _to_native(value):
    """Convert numpy scalar labels to plain Python values."""
    if isinstance(value, np.generic):
        return value.item()
    return value


def _label_matches(label, wanted) -> bool:
    """Compare a raw target label with a user-supplied one, numerically when both parse."""
    if label == wanted or str(label) == str(wanted):
        return True
    try:
        return float(label) == float(wanted)
    except (TypeError, ValueError):
        return False
