from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

from models.errors import GridIndexError, UnknownLabelError


class LabelTable:
    """Immutable, ordered list of label names (index -> name)."""

    def __init__(self, names: Iterable[str]) -> None:
        self._names: Tuple[str, ...] = tuple(str(name) for name in names)

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __getitem__(self, index: int) -> str:
        return self._names[index]

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LabelTable):
            return self._names == other._names
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"LabelTable({list(self._names)!r})"

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def name_of(self, index: int) -> str:
        """Map a label index to its name."""
        index = int(index)
        if index < 0 or index >= len(self._names):
            raise UnknownLabelError(index)
        return self._names[index]

    def indices_of(self, name: str) -> list[int]:
        """Return every index carrying this name (tables may repeat names)."""
        if name not in self._names:
            raise UnknownLabelError(name)
        return [idx for idx, value in enumerate(self._names) if value == name]


class LabelGrid:
    """
    Per-pixel label indices produced by one inference call.

    The grid is read-only: a new inference replaces the whole object.
    Axes follow numpy order, (row, col) == (height index, width index).
    """

    def __init__(
        self,
        indices: Any,
        label_table: LabelTable | Sequence[str],
        shape: Optional[Tuple[int, int]] = None,
    ) -> None:
        table = label_table if isinstance(label_table, LabelTable) else LabelTable(label_table)
        arr = np.asarray(indices)
        if shape is not None:
            height, width = (int(v) for v in shape)
            if arr.size != height * width:
                raise ValueError(
                    f"Grid data has {arr.size} values, expected {height}x{width}={height * width}."
                )
            arr = arr.reshape(height, width)
        if arr.ndim != 2:
            raise ValueError(f"Label grid must be 2D (H,W), got {arr.ndim}D.")
        if arr.size == 0:
            raise ValueError("Label grid is empty.")
        if not np.issubdtype(arr.dtype, np.integer):
            raise ValueError(f"Label grid must hold integers, got {arr.dtype}.")

        min_idx = int(arr.min())
        max_idx = int(arr.max())
        if min_idx < 0 or max_idx >= len(table):
            raise ValueError(
                f"Label indices span [{min_idx}, {max_idx}] but the label table has {len(table)} entries."
            )

        grid = np.array(arr, dtype=np.int32, copy=True)
        grid.setflags(write=False)
        self._indices = grid
        self._table = table

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #
    @property
    def indices(self) -> np.ndarray:
        """Read-only (H,W) int32 index array."""
        return self._indices

    @property
    def label_table(self) -> LabelTable:
        return self._table

    @property
    def shape(self) -> Tuple[int, int]:
        return (int(self._indices.shape[0]), int(self._indices.shape[1]))

    @property
    def height(self) -> int:
        return self.shape[0]

    @property
    def width(self) -> int:
        return self.shape[1]

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def unique_indices(self) -> list[int]:
        """Distinct indices present in the grid, ascending."""
        return [int(v) for v in np.unique(self._indices)]

    def unique_labels(self) -> list[str]:
        """Names of the distinct indices present, ordered by index value."""
        return [self._table.name_of(idx) for idx in self.unique_indices()]

    def label_index_at(self, row: int, col: int) -> int:
        """Bounds-checked raw index lookup."""
        row, col = int(row), int(col)
        height, width = self.shape
        if not (0 <= row < height) or not (0 <= col < width):
            raise GridIndexError(f"Cell ({row}, {col}) outside grid of shape {self.shape}.")
        return int(self._indices[row, col])

    def label_at(self, row: int, col: int) -> str:
        """Bounds-checked label name lookup."""
        return self._table.name_of(self.label_index_at(row, col))

    def mask_for(self, label: str) -> np.ndarray:
        """Boolean (H,W) mask of the cells whose label name equals ``label``."""
        if label not in self._table:
            return np.zeros(self.shape, dtype=bool)
        return np.isin(self._indices, self._table.indices_of(label))

    def __repr__(self) -> str:
        return f"LabelGrid(shape={self.shape}, labels={len(self._table)})"
