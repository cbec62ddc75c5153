"""
Event indexing for maximum entropy training.

The trainer never sees predicate or outcome strings: an indexer compresses
the event stream into parallel integer arrays (``IndexedData``) first.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from ..core.types import Event
from ..errors import ErrorCollector, IndexedDataError
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass
class IndexedData:
    """Parallel arrays describing a compressed training set.

    Attributes:
        contexts: Sorted predicate ids of each unique event
        outcome_list: Outcome id of each unique event
        num_times_events_seen: Repetition count of each unique event
        pred_counts: Occurrence count of each predicate over all events
        outcome_labels: Outcome label of each outcome id
        pred_labels: Predicate label of each predicate id
        values: Optional real values aligned with ``contexts``
    """

    contexts: List[np.ndarray]
    outcome_list: np.ndarray
    num_times_events_seen: np.ndarray
    pred_counts: np.ndarray
    outcome_labels: List[str]
    pred_labels: List[str]
    values: Optional[List[Optional[np.ndarray]]] = None

    @property
    def num_unique_events(self) -> int:
        return len(self.contexts)

    @property
    def num_events(self) -> int:
        return int(np.sum(self.num_times_events_seen))

    def validate(self) -> None:
        """Raise IndexedDataError if the arrays disagree with each other."""
        errors = ErrorCollector()
        n = len(self.contexts)
        num_outcomes = len(self.outcome_labels)
        num_preds = len(self.pred_labels)

        if len(self.outcome_list) != n:
            errors.add("outcome_list", "one outcome per event expected",
                       expected=n, actual=len(self.outcome_list))
        if len(self.num_times_events_seen) != n:
            errors.add("num_times_events_seen", "one repetition count per event expected",
                       expected=n, actual=len(self.num_times_events_seen))
        if len(self.pred_counts) != num_preds:
            errors.add("pred_counts", "one count per predicate label expected",
                       expected=num_preds, actual=len(self.pred_counts))
        if self.values is not None and len(self.values) != n:
            errors.add("values", "one value row per event expected",
                       expected=n, actual=len(self.values))
        if n == 0:
            errors.add("contexts", "at least one event is required", expected=">0", actual=0)
        if num_outcomes == 0:
            errors.add("outcome_labels", "at least one outcome is required",
                       expected=">0", actual=0)

        if not errors.has_errors():
            outcomes = np.asarray(self.outcome_list)
            if outcomes.size and (outcomes.min() < 0 or outcomes.max() >= num_outcomes):
                errors.add("outcome_list", "outcome id out of range",
                           expected=f"[0, {num_outcomes})",
                           actual=(int(outcomes.min()), int(outcomes.max())))
            seen = np.asarray(self.num_times_events_seen)
            if seen.size and seen.min() < 1:
                errors.add("num_times_events_seen", "repetition counts must be positive",
                           expected=">=1", actual=int(seen.min()))
            for ei, context in enumerate(self.contexts):
                if len(context) and (min(context) < 0 or max(context) >= num_preds):
                    errors.add("contexts", f"predicate id out of range in event {ei}",
                               expected=f"[0, {num_preds})",
                               actual=(int(min(context)), int(max(context))))
                    break
                if self.values is not None and self.values[ei] is not None \
                        and len(self.values[ei]) != len(context):
                    errors.add("values", f"value row of event {ei} does not match its context",
                               expected=len(context), actual=len(self.values[ei]))
                    break

        errors.raise_if_errors(IndexedDataError)


@runtime_checkable
class DataIndexer(Protocol):
    """Anything that can hand the trainer its indexed data."""

    def indexed_data(self) -> IndexedData: ...


class OnePassDataIndexer:
    """Indexes an in-memory event collection in a single pass.

    Predicates seen fewer than ``cutoff`` times are dropped; events left
    without any predicate are dropped with a warning. With ``sort`` enabled,
    identical events are merged and counted.

    Args:
        events: Training events
        cutoff: Minimum number of occurrences for a predicate to be kept
        sort: Merge duplicate events
    """

    def __init__(self, events: Iterable[Event], cutoff: int = 0, sort: bool = True):
        self.cutoff = cutoff
        self.sort = sort
        events = list(events)
        logger.info("Indexing %d events using cutoff of %d", len(events), cutoff)

        predicate_index, pred_counts = self._compute_predicate_index(events, cutoff)
        indexed, outcome_labels = self._index(events, predicate_index)
        self.num_events = len(indexed)
        merged = self._sort_and_merge(indexed, sort)
        if sort:
            logger.info("Reduced %d events to %d unique events", len(indexed), len(merged))

        has_values = any(values is not None for _, _, values, _ in merged)
        self._data = IndexedData(
            contexts=[pids for _, pids, _, _ in merged],
            outcome_list=np.array([oc for oc, _, _, _ in merged], dtype=np.int64),
            num_times_events_seen=np.array([seen for _, _, _, seen in merged], dtype=np.int64),
            pred_counts=np.asarray(pred_counts, dtype=np.int64),
            outcome_labels=outcome_labels,
            pred_labels=list(predicate_index),
            values=[values for _, _, values, _ in merged] if has_values else None,
        )

    def indexed_data(self) -> IndexedData:
        return self._data

    @staticmethod
    def _compute_predicate_index(
        events: Sequence[Event], cutoff: int
    ) -> Tuple[Dict[str, int], List[int]]:
        counter: Dict[str, int] = {}
        for event in events:
            for predicate in event.context:
                counter[predicate] = counter.get(predicate, 0) + 1

        predicate_index: Dict[str, int] = {}
        pred_counts: List[int] = []
        for predicate, count in counter.items():
            if count >= cutoff:
                predicate_index[predicate] = len(predicate_index)
                pred_counts.append(count)
        return predicate_index, pred_counts

    @staticmethod
    def _index(events: Sequence[Event], predicate_index: Dict[str, int]):
        outcome_map: Dict[str, int] = {}
        indexed = []
        for event in events:
            oc = outcome_map.setdefault(event.outcome, len(outcome_map))
            pids: List[int] = []
            values: Optional[List[float]] = [] if event.values is not None else None
            for i, predicate in enumerate(event.context):
                pid = predicate_index.get(predicate)
                if pid is None:
                    continue
                pids.append(pid)
                if values is not None:
                    values.append(event.values[i])

            if not pids:
                logger.warning("Dropped event %s", event)
                continue

            order = np.argsort(np.asarray(pids), kind="stable")
            sorted_pids = np.asarray(pids, dtype=np.int64)[order]
            sorted_values = (
                np.asarray(values, dtype=np.float64)[order] if values is not None else None
            )
            indexed.append((oc, sorted_pids, sorted_values))

        outcome_labels = [None] * len(outcome_map)
        for label, oc in outcome_map.items():
            outcome_labels[oc] = label
        return indexed, outcome_labels

    @staticmethod
    def _sort_and_merge(indexed, sort: bool):
        if not sort:
            return [(oc, pids, values, 1) for oc, pids, values in indexed]

        def key(item):
            oc, pids, values, _ = item
            vals = values.tolist() if values is not None else [1.0] * len(pids)
            return (oc, tuple(zip(pids.tolist(), vals)))

        items = sorted(((oc, pids, values, 1) for oc, pids, values in indexed), key=key)
        merged = []
        last_key = None
        for item in items:
            k = key(item)
            if merged and k == last_key:
                oc, pids, values, seen = merged[-1]
                merged[-1] = (oc, pids, values, seen + 1)
            else:
                merged.append(item)
                last_key = k
        return merged


def index_events(events: Iterable[Event], cutoff: int = 0, sort: bool = True) -> IndexedData:
    """Index ``events`` with a one-pass indexer."""
    return OnePassDataIndexer(events, cutoff, sort).indexed_data()
