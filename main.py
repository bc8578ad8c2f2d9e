"""
k-NN Quality Classifier - Main Entry Point

This script runs the k-NN evaluation pipeline:
1. Load configuration (via Hydra)
2. Load the labeled data set
3. Optionally tune k
4. Evaluate with stratified cross-validation or a holdout split
5. Report correct/wrong counts, accuracy and the confusion matrix
"""

import hydra
from omegaconf import DictConfig, OmegaConf

from knn_quality.analysis.confusion_matrix import ConfusionMatrix
from knn_quality.data.dataset import QualityDataset
from knn_quality.models.knn import KNNClassifier


def evaluate(cfg: DictConfig, dataset: QualityDataset, k: int) -> ConfusionMatrix:
    """
    Evaluate a classifier with the given k in the configured mode.

    Args:
        cfg: Hydra config object
        dataset: Loaded data set
        k: Number of voting neighbors

    Returns:
        Confusion matrix of the evaluation.
    """
    classifier = KNNClassifier(
        k=k,
        distance=cfg.model.distance,
        weights=cfg.model.weights,
        dtype=cfg.data.dtype
    )
    mode = cfg.evaluation.mode

    if mode == 'cross_validate':
        return classifier.cross_validate(
            dataset.samples,
            n_folds=cfg.evaluation.folds,
            seed=cfg.data.seed,
            distribute_remainder=cfg.evaluation.distribute_remainder
        )
    if mode == 'holdout':
        train_dataset, test_dataset = dataset.split(
            train_ratio=cfg.data.train_ratio,
            shuffle=True,
            seed=cfg.data.seed
        )
        classifier.fit(train_dataset.samples)
        return classifier.predict(test_dataset.samples)

    raise ValueError(f"Unknown evaluation mode '{mode}', expected 'cross_validate' or 'holdout'")


@hydra.main(version_base=None, config_path="configs", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main function to run the k-NN evaluation pipeline."""
    print("k-NN Quality Classifier")
    print("=" * 40)

    print("\n1. Configuration loaded via Hydra:")
    print(OmegaConf.to_yaml(cfg))

    print("\n2. Loading dataset...")
    dataset = QualityDataset.from_csv(
        hydra.utils.to_absolute_path(cfg.data.path),
        delimiter=cfg.data.delimiter,
        skip_header=cfg.data.skip_header,
        decimal_comma=cfg.data.decimal_comma,
        dtype=cfg.data.dtype
    )
    dataset.print_summary("Full Dataset Summary")

    best_k = cfg.model.k
    tune_k = list(cfg.evaluation.tune_k or [])
    if tune_k:
        print("\n3. Tuning k...")
        best_acc = -1.0
        for k in tune_k:
            acc = evaluate(cfg, dataset, k).accuracy()
            print(f"     k={k}: Accuracy = {acc*100:.1f}%")
            if acc > best_acc:
                best_acc = acc
                best_k = k
        print(f"   ✓ Best k found: {best_k} (Acc: {best_acc*100:.1f}%)")
    else:
        print("\n3. Skipping k tuning (evaluation.tune_k empty)")

    print(f"\n4. Evaluating ({cfg.evaluation.mode}, k={best_k}, {cfg.model.distance})...")
    result = evaluate(cfg, dataset, best_k)

    result.print_summary("Evaluation Results", show_table=cfg.output.print_table)

    if cfg.output.plot_confusion_matrix:
        from knn_quality.utils.plotting import plot_confusion_matrix

        out_path = hydra.utils.to_absolute_path(cfg.output.plot_path)
        plot_confusion_matrix(result, out_path=out_path)
        print(f"\n   Confusion matrix plot saved to {out_path}")

    print("\n" + "=" * 40)
    print("Pipeline Complete!")


if __name__ == "__main__":
    main()
