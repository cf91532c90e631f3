"""Data structures for decoded observations and emitted series."""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

# Sorted (name, value) pairs; compared structurally.
LabelKey = Tuple[Tuple[str, str], ...]

SCALAR_KINDS = ("counter", "gauge", "untyped")


@dataclass(frozen=True)
class Observation:
    """A single labeled value within a metric family."""
    labels: Mapping[str, str]
    value: float
    timestamp: Optional[float] = None


@dataclass
class MetricFamily:
    """A decoded metric family: name, help, kind and its observations."""
    name: str
    help: str
    kind: str
    observations: List[Observation] = field(default_factory=list)


@dataclass
class EmittedSeries:
    """One relabeled series ready for exposition."""
    name: str
    help: str
    kind: str
    labels: Dict[str, str]
    value: float
