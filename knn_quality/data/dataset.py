"""
Dataset loading and handling for quality classification.
"""

from pathlib import Path
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple
import logging
import random

import numpy as np

from knn_quality.exceptions import DimensionMismatchError, EmptyInputError

logger = logging.getLogger(__name__)

SUPPORTED_DTYPES = {
    "float32": np.float32,
    "float64": np.float64,
}


def resolve_dtype(dtype: Any) -> type:
    """
    Map a dtype name or numpy type to one of the supported scalar families.

    Args:
        dtype: ``"float32"``, ``"float64"``, ``np.float32`` or ``np.float64``.

    Returns:
        The numpy scalar type.

    Raises:
        ValueError: If the dtype is not single or double precision.
    """
    if isinstance(dtype, str):
        if dtype not in SUPPORTED_DTYPES:
            raise ValueError(f"Unsupported dtype '{dtype}', expected one of {list(SUPPORTED_DTYPES)}")
        return SUPPORTED_DTYPES[dtype]
    scalar = np.dtype(dtype).type
    if scalar not in (np.float32, np.float64):
        raise ValueError(f"Unsupported dtype {dtype!r}, expected float32 or float64")
    return scalar


class LabeledVector:
    """A dense feature vector with an attached quality label."""

    __slots__ = ("values", "label")

    def __init__(self, values: Iterable[float], label: Optional[Hashable] = None,
                 dtype: Any = np.float32):
        """
        Args:
            values: Attribute values in order.
            label: Opaque, hashable quality attribute. ``None`` is allowed.
            dtype: Scalar family of the stored values.
        """
        self.values = np.asarray(values, dtype=resolve_dtype(dtype)).reshape(-1)
        self.label = label

    @property
    def dim(self) -> int:
        return self.values.shape[0]

    def __len__(self) -> int:
        return self.values.shape[0]

    def __getitem__(self, idx: int) -> float:
        return self.values[idx]

    def __repr__(self) -> str:
        return f"LabeledVector({self.values.tolist()}, label={self.label!r})"


class QualityDataset:
    """Dataset class for loading and handling labeled feature vectors."""

    def __init__(self, path: Optional[str] = None, delimiter: str = ";",
                 skip_header: bool = True, decimal_comma: bool = True,
                 dtype: Any = np.float32):
        """
        Initialize the dataset.

        Args:
            path: Path to a delimiter-separated file (optional).
            delimiter: Field separator.
            skip_header: Whether the first line is a header row.
            decimal_comma: Whether ``,`` is used as decimal separator.
            dtype: Scalar family of the feature vectors.
        """
        self.path = Path(path) if path else None
        self.delimiter = delimiter
        self.skip_header = skip_header
        self.decimal_comma = decimal_comma
        self.dtype = resolve_dtype(dtype)
        self.samples: List[LabeledVector] = []
        self._loaded = path is None

    @classmethod
    def from_csv(cls, path: str, **kwargs) -> "QualityDataset":
        """Create and load a dataset from a CSV file in one step."""
        return cls(path, **kwargs).load()

    @classmethod
    def from_vectors(cls, vectors: Iterable[LabeledVector],
                     dtype: Any = np.float32) -> "QualityDataset":
        """Wrap already constructed vectors in a dataset."""
        dataset = cls(dtype=dtype)
        dataset.samples = list(vectors)
        return dataset

    def load(self) -> "QualityDataset":
        """
        Load the dataset from the configured file.

        Expects one observation per line:
            attr1;attr2;...;attrN;label

        Returns:
            self for method chaining.
        """
        if self.path is None:
            raise RuntimeError("No data path configured.")
        if not self.path.exists():
            raise FileNotFoundError(f"Data file not found: {self.path}")

        self.samples = []
        dim = None
        with open(self.path, "r", encoding="utf-8") as fh:
            for line_no, line in enumerate(fh, start=1):
                if self.skip_header and line_no == 1:
                    continue
                line = line.strip()
                if not line:
                    continue

                entries = line.split(self.delimiter)
                if len(entries) < 2:
                    raise ValueError(f"Line {line_no}: expected attributes and a label, got '{line}'")

                values = []
                for entry in entries[:-1]:
                    entry = entry.strip()
                    if self.decimal_comma:
                        entry = entry.replace(",", ".")
                    try:
                        values.append(float(entry))
                    except ValueError:
                        raise ValueError(f"Line {line_no}: cannot parse attribute '{entry}'") from None

                if dim is None:
                    dim = len(values)
                elif len(values) != dim:
                    raise DimensionMismatchError(
                        f"Line {line_no}: expected {dim} attributes, got {len(values)}"
                    )

                self.samples.append(LabeledVector(values, entries[-1].strip(), dtype=self.dtype))

        self._loaded = True
        logger.info(f"Loaded {len(self.samples)} samples from {self.path}")
        return self

    def __len__(self) -> int:
        """Return the number of samples in the dataset."""
        if not self._loaded:
            raise RuntimeError("Dataset not loaded. Call load() first.")
        return len(self.samples)

    def __getitem__(self, idx: int) -> LabeledVector:
        if not self._loaded:
            raise RuntimeError("Dataset not loaded. Call load() first.")
        return self.samples[idx]

    def __iter__(self):
        return iter(self.samples)

    @property
    def labels(self) -> List[Hashable]:
        """Distinct labels in first-seen order."""
        return list(self.group_by_label().keys())

    @property
    def dim(self) -> int:
        if not self.samples:
            raise EmptyInputError("Dataset is empty.")
        return self.samples[0].dim

    def group_by_label(self) -> Dict[Hashable, List[LabeledVector]]:
        """
        Group the samples into per-label pools.

        Returns:
            Mapping label -> vectors, both in first-seen order.
        """
        return group_by_label(self.samples)

    def _create_subset(self, samples: List[LabeledVector]) -> "QualityDataset":
        subset = QualityDataset.from_vectors(samples, dtype=self.dtype)
        subset.path = self.path
        return subset

    def split(
        self,
        train_ratio: float = 0.8,
        shuffle: bool = True,
        seed: Optional[int] = None
    ) -> Tuple["QualityDataset", "QualityDataset"]:
        """
        Split the dataset into training and test sets.

        Uses stratified splitting to maintain the label distribution.

        Args:
            train_ratio: Ratio of samples for training (default: 0.8).
            shuffle: Whether to shuffle before splitting.
            seed: Random seed for reproducibility.

        Returns:
            Tuple of (train_dataset, test_dataset).

        Raises:
            RuntimeError: If dataset is not loaded.
            ValueError: If the ratio is not strictly between 0 and 1.
        """
        if not self._loaded:
            raise RuntimeError("Dataset not loaded. Call load() first.")
        if not 0.0 < train_ratio < 1.0:
            raise ValueError(f"train_ratio must be in (0, 1), got {train_ratio}")

        rng = random.Random(seed)

        train_samples = []
        test_samples = []
        for pool in self.group_by_label().values():
            pool = list(pool)
            if shuffle:
                rng.shuffle(pool)
            n_train = int(len(pool) * train_ratio)
            train_samples.extend(pool[:n_train])
            test_samples.extend(pool[n_train:])

        if shuffle:
            rng.shuffle(train_samples)
            rng.shuffle(test_samples)

        return self._create_subset(train_samples), self._create_subset(test_samples)

    def summary(self) -> Dict[str, Any]:
        """
        Get a summary of the dataset.

        Returns:
            Dictionary with dataset statistics.
        """
        if not self._loaded:
            return {"loaded": False}

        distribution = {label: len(pool) for label, pool in self.group_by_label().items()}
        return {
            "loaded": True,
            "total_samples": len(self.samples),
            "dimensions": self.samples[0].dim if self.samples else 0,
            "num_labels": len(distribution),
            "label_distribution": distribution,
            "path": str(self.path) if self.path else None,
        }

    def print_summary(self, title: str = "Dataset Summary") -> None:
        """
        Print a formatted summary of the dataset.

        Args:
            title: Title to display at the top of the summary.
        """
        stats = self.summary()

        print(f"\n   {title}")
        print(f"   {'=' * 50}")

        if not stats.get("loaded", False):
            print("   Dataset not loaded.")
            return

        print(f"   Source: {stats['path']}")
        print(f"   Total Samples: {stats['total_samples']}")
        print(f"   Dimensions: {stats['dimensions']}")
        print(f"   Number of Labels: {stats['num_labels']}")
        print(f"\n   Label Distribution:")
        print(f"   {'-' * 30}")

        for label, count in stats["label_distribution"].items():
            percentage = (count / stats["total_samples"]) * 100
            bar = '█' * int(percentage / 5)
            print(f"   {str(label):12} | {count:5} samples | {percentage:5.1f}% | {bar}")

        print(f"   {'-' * 30}")

    def __repr__(self) -> str:
        if not self._loaded:
            return f"QualityDataset(path='{self.path}', loaded=False)"
        return f"QualityDataset(path='{self.path}', samples={len(self.samples)})"


def group_by_label(vectors: Iterable[LabeledVector]) -> Dict[Hashable, List[LabeledVector]]:
    """Group vectors into per-label pools, preserving first-seen order."""
    pools: Dict[Hashable, List[LabeledVector]] = {}
    for vector in vectors:
        pools.setdefault(vector.label, []).append(vector)
    return pools
