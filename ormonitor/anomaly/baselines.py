"""
Baseline lookup for duration classification.

Baselines are computed offline from historical records; this module only
resolves them. A missing baseline is an expected outcome (a novel procedure or
surgeon pairing), reported as None rather than raised.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .schema import Baseline

logger = logging.getLogger(__name__)

BaselineKey = Tuple[str, Optional[str]]


class BaselineStore:
    """
    Read-only store of baselines keyed by (procedure, surgeon).

    Lookup order:
    - (procedure, surgeon) when a surgeon is given
    - (procedure, None) as the procedure-wide fallback
    """

    def __init__(self, baselines: Optional[Dict[BaselineKey, Baseline]] = None) -> None:
        self._baselines: Dict[BaselineKey, Baseline] = dict(baselines or {})

    @classmethod
    def from_baselines(cls, baselines: Iterable[Baseline]) -> "BaselineStore":
        index: Dict[BaselineKey, Baseline] = {}
        for baseline in baselines:
            key = (baseline.procedure_key, baseline.surgeon_key or None)
            if key in index:
                logger.warning("Duplicate baseline for %s; keeping the later entry", key)
            index[key] = baseline
        return cls(index)

    def lookup(self, procedure_key: str, surgeon_key: Optional[str] = None) -> Optional[Baseline]:
        if surgeon_key:
            specific = self._baselines.get((procedure_key, surgeon_key))
            if specific is not None:
                return specific
        return self._baselines.get((procedure_key, None))

    def __len__(self) -> int:
        return len(self._baselines)

    def __contains__(self, key: object) -> bool:
        return key in self._baselines

    def __iter__(self) -> Iterator[Baseline]:
        return iter(self._baselines.values())
