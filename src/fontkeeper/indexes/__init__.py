from __future__ import annotations

from fontkeeper.indexes.collection import FontCollection, IndexLoadResult, IndexLoadStatus
from fontkeeper.indexes.enumerators import FontistPaths, FormulaPaths, SystemPaths, UserPaths
from fontkeeper.indexes.font_indexes import (
    FontCollectionIndex,
    FontistIndex,
    SystemIndex,
    UserIndex,
)
from fontkeeper.indexes.formula_indexes import (
    DefaultFamilyFormulaIndex,
    FilenameFormulaIndex,
    FormulaIndex,
    PreferredFamilyFormulaIndex,
)
from fontkeeper.indexes.snapshot import ChangeType, DirectoryChange, DirectorySnapshot
from fontkeeper.indexes.updater import IncrementalIndexUpdater

__all__ = [
    # collection
    "FontCollection",
    "IndexLoadResult",
    "IndexLoadStatus",
    # enumerators
    "FontistPaths",
    "FormulaPaths",
    "SystemPaths",
    "UserPaths",
    # font indexes
    "FontCollectionIndex",
    "FontistIndex",
    "SystemIndex",
    "UserIndex",
    # formula indexes
    "DefaultFamilyFormulaIndex",
    "FilenameFormulaIndex",
    "FormulaIndex",
    "PreferredFamilyFormulaIndex",
    # snapshots
    "ChangeType",
    "DirectoryChange",
    "DirectorySnapshot",
    "IncrementalIndexUpdater",
]
