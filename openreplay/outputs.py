"""Discovery and selection of model outputs.

The catalog lists every output in the tree once, in tree order. Selection
matches caller supplied regular expressions against full output paths and
keeps only outputs of the requested value type.
"""

import re
import warnings
from dataclasses import dataclass
from typing import List, Sequence

from openreplay.errors import TypeMismatchWarning
from openreplay.model.component import Output
from openreplay.model.model import Model
from openreplay.model.values import ValueType


@dataclass(frozen=True)
class CatalogEntry:
    """One output in the catalog.

    Attributes:
        path: Full output path, e.g. "/forceset/m1/activation".
        value_type: Declared value type of the output.
        output: Handle used to evaluate the output.
    """

    path: str
    value_type: ValueType
    output: Output


def build_output_catalog(model: Model) -> List[CatalogEntry]:
    """Enumerate all outputs of an initialized model in tree order."""
    catalog = []
    for comp in model.components():
        for name in comp.get_output_names():
            output = comp.get_output(name)
            catalog.append(CatalogEntry(output.path, output.value_type, output))
    return catalog


def compile_patterns(patterns: Sequence[str]) -> List[re.Pattern]:
    if isinstance(patterns, str):
        raise TypeError("patterns must be a sequence of strings, not a single string")
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ValueError(f"Invalid output path pattern {pattern!r}: {e}") from e
    return compiled


def select_outputs(
    catalog: Sequence[CatalogEntry], patterns: Sequence[str], value_type: ValueType
) -> List[CatalogEntry]:
    """Select outputs whose path fully matches a pattern and whose type matches.

    Entries are returned in the order in which they were first matched: the
    catalog is walked once and, for each entry, patterns are tried in order.
    An output matched by several patterns is selected once. Matched outputs
    of another type are skipped with a `TypeMismatchWarning`.

    Args:
        catalog: Entries from `build_output_catalog`.
        patterns: Regular expressions matched against the whole output path
            (".*activation" matches "/forceset/m1/activation"; "activation"
            does not).
        value_type: Requested value type.

    Returns:
        Selected catalog entries, without duplicates.
    """
    value_type = ValueType(value_type)
    compiled = compile_patterns(patterns)
    selected = []
    seen = set()
    skipped = set()
    for entry in catalog:
        for regex in compiled:
            if not regex.fullmatch(entry.path):
                continue
            if entry.value_type is value_type:
                if entry.path not in seen:
                    seen.add(entry.path)
                    selected.append(entry)
            elif entry.path not in skipped:
                skipped.add(entry.path)
                warnings.warn(
                    f"Ignoring output {entry.path} of type {entry.value_type.value}; "
                    f"requested type is {value_type.value}.",
                    TypeMismatchWarning,
                    stacklevel=2,
                )
    return selected


def subscribe_outputs(
    model: Model, patterns: Sequence[str], value_type: ValueType
) -> List[CatalogEntry]:
    return select_outputs(build_output_catalog(model), patterns, value_type)
