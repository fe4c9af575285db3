"""
Clinical classification report pipeline.

Orchestrates the full analysis: data loading -> EDA -> preprocessing ->
model tuning and training -> evaluation -> figures -> written report.
Runs end-to-end in a single pass once launched.
"""

import os
import traceback
from typing import Callable

from clinical_report import __version__, config
from clinical_report.analysis import DataExplorer, plots
from clinical_report.data import DatasetLoader, Preprocessor
from clinical_report.evaluation import ModelEvaluator, Reporter
from clinical_report.evaluation.reporter import DISCLAIMER
from clinical_report.models import ModelTrainer
from clinical_report.utils import get_logger

log = get_logger(__name__)

STAGES = [
    "Data Loading",
    "Exploratory Analysis",
    "Preprocessing",
    "Model Training",
    "Evaluation",
    "Visualization",
    "Report Generation",
]

# Number of discriminative features drawn in the distribution figures
PLOTTED_FEATURES = 6


class ClinicalReportAgent:
    """
    Runs a complete classification analysis over one medical dataset.

    Stages:
        1. Data Loading         - bundled dataset or CSV file
        2. Exploratory Analysis - descriptive statistics and tests
        3. Preprocessing        - clean, encode, split, scale
        4. Model Training       - tune, cross-validate and fit each model
        5. Evaluation           - test-set metrics, ROC, importance
        6. Visualization        - EDA and model comparison figures
        7. Report Generation    - text summary, JSON and Markdown report
    """

    def __init__(
        self,
        dataset: str = config.DEFAULT_DATASET,
        csv_path: str | None = None,
        target_column: str | None = None,
        positive_label: str | None = None,
        drop_columns: list[str] | None = None,
        models: list[str] | None = None,
        scaling: str = config.DEFAULT_SCALING,
        test_size: float = config.DEFAULT_TEST_SIZE,
        cv_folds: int = config.DEFAULT_CV_FOLDS,
        search: str = config.DEFAULT_SEARCH,
        n_iter: int = config.DEFAULT_N_ITER,
        n_jobs: int = config.N_JOBS,
        output_dir: str = config.OUTPUT_DIR,
        make_plots: bool = True,
        on_progress: Callable[[int, int, str], None] | None = None,
    ):
        if csv_path is not None and target_column is None:
            raise ValueError("A target column is required when loading a CSV file")

        self.dataset_name = dataset
        self.csv_path = csv_path
        self.target_column = target_column
        self.positive_label = positive_label
        self.drop_columns = drop_columns
        self.model_names = models
        self.scaling = scaling
        self.test_size = test_size
        self.cv_folds = cv_folds
        self.search = search
        self.n_iter = n_iter
        self.n_jobs = n_jobs
        self.output_dir = output_dir
        self.make_plots = make_plots
        self.on_progress = on_progress

        # Pipeline state
        self._raw_data = None
        self._eda_report = None
        self._processed_data = None
        self._training_results = None
        self._evaluation_results = None
        self._figures = {}
        self._report = None

    def run(self) -> dict:
        """
        Execute the full pipeline.

        Returns the final report dict.
        """
        log.info("=" * 60)
        log.info("CLINICAL CLASSIFICATION REPORT v%s", __version__)
        log.info("=" * 60)
        log.info("")
        log.info(DISCLAIMER)
        log.info("")

        stage_fns = [
            self._stage_load,
            self._stage_eda,
            self._stage_preprocess,
            self._stage_train,
            self._stage_evaluate,
            self._stage_visualize,
            self._stage_report,
        ]
        total = len(STAGES)

        for index, (stage_name, stage_fn) in enumerate(zip(STAGES, stage_fns), start=1):
            label = f"{index}/{total} {stage_name}"
            if self.on_progress is not None:
                self.on_progress(index, total, stage_name)
            log.info("")
            log.info("-" * 60)
            log.info("STAGE: %s", label)
            log.info("-" * 60)
            try:
                stage_fn()
            except Exception:
                log.error("Stage '%s' failed:\n%s", label, traceback.format_exc())
                raise

        return self._report

    def _stage_load(self):
        loader = DatasetLoader()
        if self.csv_path is not None:
            self._raw_data = loader.load_csv(
                self.csv_path,
                self.target_column,
                positive_label=self.positive_label,
                drop_columns=self.drop_columns,
            )
        else:
            self._raw_data = loader.load(self.dataset_name)

    def _stage_eda(self):
        explorer = DataExplorer()
        self._eda_report = explorer.run(self._raw_data)

    def _stage_preprocess(self):
        preprocessor = Preprocessor(
            scaling=self.scaling,
            test_size=self.test_size,
        )
        self._processed_data = preprocessor.run(self._raw_data)

    def _stage_train(self):
        trainer = ModelTrainer(
            models=self.model_names,
            cv_folds=self.cv_folds,
            search=self.search,
            n_iter=self.n_iter,
            n_jobs=self.n_jobs,
        )
        self._training_results = trainer.run(self._processed_data)

    def _stage_evaluate(self):
        evaluator = ModelEvaluator(n_jobs=self.n_jobs)
        self._evaluation_results = evaluator.run(
            self._training_results, self._processed_data
        )

    def _stage_visualize(self):
        if not self.make_plots:
            log.info("Plotting disabled, skipping figures")
            return

        figures_dir = os.path.join(self.output_dir, config.FIGURES_SUBDIR)
        df = self._raw_data["df"]
        target = self._raw_data["target_name"]
        metadata = self._raw_data["metadata"]
        labels = (str(metadata["negative_label"]), str(metadata["positive_label"]))
        categorical = self._raw_data["categorical_features"]
        numeric = [f for f in self._raw_data["feature_names"] if f not in categorical]
        top = [t["feature"] for t in self._eda_report["top_discriminative_features"]]
        top = top[:PLOTTED_FEATURES]
        evaluations = self._evaluation_results["evaluations"]

        figures = {
            "class_distribution": plots.plot_class_distribution(
                df, target, figures_dir, class_labels=labels),
            "feature_distributions": plots.plot_feature_distributions(
                df, top, target, figures_dir, class_labels=labels),
            "feature_boxplots": plots.plot_feature_boxplots(
                df, top, target, figures_dir, class_labels=labels),
            "correlation_heatmap": plots.plot_correlation_heatmap(
                df, numeric, figures_dir),
            "cv_comparison": plots.plot_cv_comparison(
                self._training_results["cv_scores"], figures_dir),
            "tuning_results": plots.plot_tuning_results(
                self._training_results["results"], figures_dir),
            "roc_curves": plots.plot_roc_curves(
                self._evaluation_results["roc_curves"], figures_dir),
            "confusion_matrices": plots.plot_confusion_matrices(
                evaluations, figures_dir, class_labels=labels),
        }
        for name, metrics in evaluations.items():
            figures[f"feature_importance_{name}"] = plots.plot_feature_importance(
                metrics.get("top_features", []), name, figures_dir)

        for key, fig in figures.items():
            if fig["status"] == "success":
                fig["relative_path"] = os.path.relpath(fig["output_file"], self.output_dir)
            else:
                log.warning("Figure '%s' skipped: %s", key, fig["reason"])

        self._figures = figures
        n_saved = sum(f["status"] == "success" for f in figures.values())
        log.info("Saved %d figures to %s", n_saved, figures_dir)

    def _stage_report(self):
        reporter = Reporter()
        self._report = reporter.generate(
            dataset_metadata=self._processed_data["metadata"],
            eda_report=self._eda_report,
            preprocessing_info=self._processed_data["preprocessing_info"],
            training_results=self._training_results,
            evaluation_results=self._evaluation_results,
            figures=self._figures,
        )

        # Print summary
        summary = reporter.print_summary(self._report)
        print("\n" + summary)

        os.makedirs(self.output_dir, exist_ok=True)
        json_path = os.path.join(self.output_dir, "report.json")
        reporter.save_json(self._report, json_path)
        md_path = os.path.join(self.output_dir, "report.md")
        reporter.save_markdown(self._report, md_path)
        log.info("Report written to: %s", self.output_dir)
