
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Tuple
import numpy as np

from ..data.dataset import Dataset, normalize
from .options import IndexOptions


class Index(ABC):
    # fixed per metric variant, never set by callers
    normalize_dataset: bool = False

    def __init__(self, options: Optional[IndexOptions] = None):
        self.options = options or IndexOptions()

    @abstractmethod
    def insert(self, key: str, target: np.ndarray): ...

    @abstractmethod
    def remove(self, key: str): ...

    @abstractmethod
    def search(self, target: np.ndarray, neighbors: int) -> List[Tuple[str, float]]:
        """Return up to `neighbors` (key, distance) pairs, nearest first."""
        ...

    @abstractmethod
    def check(self) -> bool: ...

    @abstractmethod
    def size(self) -> int: ...

    def prepare_dataset(self, dataset: Dataset):
        if self.normalize_dataset:
            normalize(dataset)


class KeyMapper:
    """
    String keys <-> integer engine labels. Each insert gets a fresh label so an
    updated key never collides with the engine's record of its previous vector.
    """

    def __init__(self):
        self._labels: Dict[str, int] = {}
        self._keys: Dict[int, str] = {}
        self._next = 0

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, key: str) -> bool:
        return key in self._labels

    def get(self, key: str) -> Optional[int]:
        return self._labels.get(key)

    def reserve(self) -> int:
        label = self._next
        self._next += 1
        return label

    def bind(self, key: str, label: int) -> Optional[int]:
        """Point `key` at `label`; returns the label it replaced, if any."""
        old = self._labels.get(key)
        if old is not None:
            del self._keys[old]
        self._labels[key] = label
        self._keys[label] = key
        return old

    def assign(self, key: str) -> int:
        label = self.reserve()
        self.bind(key, label)
        return label

    def release(self, key: str) -> Optional[int]:
        label = self._labels.pop(key, None)
        if label is not None:
            del self._keys[label]
        return label

    def key(self, label: int) -> str:
        return self._keys[int(label)]

    def labels(self) -> Iterator[int]:
        return iter(self._keys)

    def consistent(self) -> bool:
        return len(self._labels) == len(self._keys) and all(
            self._keys.get(label) == key for key, label in self._labels.items()
        )
