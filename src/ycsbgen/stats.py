"""
Summary statistics over a produced operation stream
"""

from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

from .operation import Operation, OpType


class OperationStatsAnalyzer:
    """Operation mix and key skew of a finished run"""

    def __init__(self, operations: Iterable[Operation]):
        self.operations: List[Operation] = list(operations)

    def operation_mix(self) -> pd.DataFrame:
        """One row per operation kind: count and share of the stream"""
        total = len(self.operations)
        counts = {op_type: 0 for op_type in OpType}
        for op in self.operations:
            counts[op.kind] += 1
        rows = [{
            'Operation': op_type.value,
            'Count': count,
            'Share (%)': round(count / total * 100, 2) if total > 0 else 0.0,
        } for op_type, count in counts.items()]
        return pd.DataFrame(rows, columns=['Operation', 'Count', 'Share (%)'])

    def key_skew(self, include_inserts: bool = False) -> Dict[str, Any]:
        """
        Access concentration over the keys of the stream

        Args:
            include_inserts: Also count keys of INSERT operations

        Returns:
            Dictionary with distinct key count, hottest key share, share of
            accesses that hit the hottest 1% / 10% of keys and the median
            accesses per key
        """
        keys = [op.key for op in self.operations if include_inserts or op.kind != OpType.INSERT]
        if not keys:
            return {
                'accesses': 0,
                'distinct_keys': 0,
                'top_key_share': 0.0,
                'top_1pct_share': 0.0,
                'top_10pct_share': 0.0,
                'median_accesses_per_key': 0.0,
            }

        _, frequencies = np.unique(np.array(keys), return_counts=True)
        frequencies = np.sort(frequencies)[::-1]
        total = frequencies.sum()

        def top_share(fraction: float) -> float:
            top_n = max(1, int(np.ceil(len(frequencies) * fraction)))
            return float(frequencies[:top_n].sum() / total)

        return {
            'accesses': int(total),
            'distinct_keys': int(len(frequencies)),
            'top_key_share': float(frequencies[0] / total),
            'top_1pct_share': top_share(0.01),
            'top_10pct_share': top_share(0.10),
            'median_accesses_per_key': float(np.percentile(frequencies, 50)),
        }
