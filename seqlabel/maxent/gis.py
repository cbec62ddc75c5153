"""
Generalized Iterative Scaling (GIS) trainer.

Fits the weight table of a maximum entropy model to indexed training data.
Model expectations are computed over contiguous shards of the events, one
shard per worker thread; every worker accumulates into its own table and the
tables are summed before the weights are updated, so the result does not
depend on the number of threads beyond floating point summation order.

Example:
    >>> from seqlabel.maxent import GISTrainer, OnePassDataIndexer
    >>> indexer = OnePassDataIndexer(events, cutoff=1)
    >>> model = GISTrainer().train_model(100, indexer)
"""

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import numpy as np

from ..config import TrainingParameters
from ..core.types import Event
from ..errors import ConfigurationError, TrainingError
from ..logging import get_logger, log_time
from .context import MutableContext
from .indexer import DataIndexer, IndexedData, OnePassDataIndexer
from .model import EvalParameters, GISModel, eval_context
from .prior import Prior, UniformPrior

logger = get_logger(__name__)

LL_THRESHOLD = 1e-4
NEWTON_MAX_ITERATIONS = 50
NEWTON_TOLERANCE = 1e-6


@dataclass
class ShardResult:
    """What one worker reports back for its shard of events."""

    expectations: List[np.ndarray]
    loglikelihood: float = 0.0
    num_events: int = 0
    num_correct: int = 0


class GISTrainer:
    """
    Trains maximum entropy models with Generalized Iterative Scaling.

    Args:
        smoothing: ``"none"``, ``"simple"`` (every predicate is active for
            every outcome and unseen pairs get a pseudo-count) or
            ``"gaussian"`` (Gaussian prior on the weights)
        smoothing_observation: Pseudo-count used by simple smoothing
        gaussian_sigma: Width of the Gaussian prior
    """

    SMOOTHING_MODES = TrainingParameters.SMOOTHING_MODES

    def __init__(
        self,
        smoothing: str = "none",
        smoothing_observation: float = TrainingParameters.SMOOTHING_OBSERVATION_DEFAULT,
        gaussian_sigma: float = TrainingParameters.GAUSSIAN_SIGMA_DEFAULT,
    ):
        if smoothing not in self.SMOOTHING_MODES:
            raise ValueError(
                f"smoothing must be one of {self.SMOOTHING_MODES}, got {smoothing!r}"
            )
        if smoothing_observation <= 0:
            raise ValueError(f"smoothing observation must be positive: {smoothing_observation}")
        if gaussian_sigma <= 0:
            raise ValueError(f"gaussian sigma must be positive: {gaussian_sigma}")
        self.smoothing = smoothing
        self.smoothing_observation = smoothing_observation
        self.gaussian_sigma = gaussian_sigma

    @property
    def use_simple_smoothing(self) -> bool:
        return self.smoothing == "simple"

    @property
    def use_gaussian_smoothing(self) -> bool:
        return self.smoothing == "gaussian"

    # =========================================================================
    # TRAINING
    # =========================================================================

    def train_model(
        self,
        iterations: int,
        data: Union[IndexedData, DataIndexer],
        prior: Optional[Prior] = None,
        cutoff: int = 0,
        threads: int = 1,
    ) -> GISModel:
        """Train a model.

        Args:
            iterations: Maximum number of GIS iterations
            data: Indexed training data, or an indexer producing it
            prior: Outcome prior (uniform by default)
            cutoff: Predicates seen fewer times get no active outcomes
            threads: Number of worker threads computing model expectations

        Returns:
            The trained model, with correction constant 1 and correction
            parameter 0

        Raises:
            ValueError: If ``threads`` is smaller than one
            IndexedDataError: If the indexed arrays are inconsistent
        """
        if threads < 1:
            raise ValueError(f"threads must be at least one or greater but is {threads}!")

        indexed = data if isinstance(data, IndexedData) else data.indexed_data()
        indexed.validate()

        prior = prior or UniformPrior()
        state = _TrainingState(indexed, prior, cutoff, threads)
        logger.info("Number of Event Tokens: %d", state.num_unique_events)
        logger.info("    Number of Outcomes: %d", state.num_outcomes)
        logger.info("  Number of Predicates: %d", state.num_preds)

        self._init_tables(state)

        if threads == 1:
            logger.info("Computing model parameters ...")
        else:
            logger.info("Computing model parameters in %d threads...", threads)

        with log_time(logger, msg="GIS training"):
            self._find_parameters(iterations, state)

        return GISModel(
            state.params,
            state.pred_labels,
            state.outcome_labels,
            correction_constant=1,
            correction_param=0.0,
            prior=prior,
        )

    def _init_tables(self, state: "_TrainingState") -> None:
        """Set up weights and observed expectations for every predicate."""
        pred_count = np.zeros((state.num_preds, state.num_outcomes), dtype=np.float64)
        for ei, context in enumerate(state.contexts):
            seen = state.num_times_events_seen[ei]
            row = state.values[ei] if state.values is not None else None
            if row is None:
                np.add.at(pred_count, (context, state.outcome_list[ei]), seen)
            else:
                np.add.at(pred_count, (context, state.outcome_list[ei]), seen * row)

        all_outcomes = np.arange(state.num_outcomes, dtype=np.int64)
        for pi in range(state.num_preds):
            if self.use_simple_smoothing:
                pattern = all_outcomes
            elif state.pred_counts[pi] >= state.cutoff:
                pattern = np.flatnonzero(pred_count[pi] > 0)
            else:
                pattern = all_outcomes[:0]

            observed = pred_count[pi, pattern].copy()
            if self.use_simple_smoothing:
                observed[observed == 0] = self.smoothing_observation

            state.params.append(MutableContext(pattern, np.zeros(pattern.size)))
            state.observed.append(observed)

        state.eval_params = EvalParameters(state.params, state.num_outcomes)

    def _find_parameters(self, iterations: int, state: "_TrainingState") -> None:
        logger.info("Performing %d iterations.", iterations)
        prev_ll = 0.0
        previous_weights: Optional[List[np.ndarray]] = None

        executor = ThreadPoolExecutor(max_workers=state.threads) if state.threads > 1 else None
        try:
            for i in range(1, iterations + 1):
                weights = [p.parameters.copy() for p in state.params]
                curr_ll = self._next_iteration(i, state, executor)
                if i > 1:
                    if prev_ll > curr_ll:
                        logger.warning(
                            "Model Diverging: loglikelihood decreased at iteration %d "
                            "(%.6f -> %.6f), keeping the previous parameters",
                            i, prev_ll, curr_ll,
                        )
                        for ctx, w in zip(state.params, previous_weights):
                            ctx.parameters[:] = w
                        break
                    if curr_ll - prev_ll < LL_THRESHOLD:
                        break
                prev_ll = curr_ll
                previous_weights = weights
        finally:
            if executor is not None:
                executor.shutdown()

    def _next_iteration(
        self, iteration: int, state: "_TrainingState", executor: Optional[ThreadPoolExecutor]
    ) -> float:
        """Run one iteration of GIS and return the log-likelihood."""
        shards = state.shards()
        if executor is None:
            results = [state.compute_shard(start, length) for start, length in shards]
        else:
            futures = [executor.submit(state.compute_shard, start, length) for start, length in shards]
            results = []
            for future in futures:
                try:
                    results.append(future.result())
                except Exception as e:
                    raise TrainingError(
                        f"Exception during training: {e}", iteration=iteration, cause=e
                    ) from e

        loglikelihood = sum(r.loglikelihood for r in results)
        num_events = sum(r.num_events for r in results)
        num_correct = sum(r.num_correct for r in results)

        model_expects = results[0].expectations
        for result in results[1:]:
            for pi, expected in enumerate(result.expectations):
                model_expects[pi] += expected

        correction_constant = state.correction_constant
        for pi, ctx in enumerate(state.params):
            if len(ctx) == 0:
                continue
            observed = state.observed[pi]
            model = model_expects[pi]
            if self.use_gaussian_smoothing:
                for aoi in range(len(ctx)):
                    ctx.update_parameter(
                        aoi,
                        self._gaussian_update(
                            ctx.parameters[aoi], model[aoi], observed[aoi], correction_constant
                        ),
                    )
            else:
                zero = model == 0
                if np.any(zero):
                    for aoi in np.flatnonzero(zero):
                        logger.debug(
                            "Model expects == 0 for %s %s",
                            state.pred_labels[pi],
                            state.outcome_labels[ctx.outcomes[aoi]],
                        )
                    update = np.zeros(len(ctx))
                    update[~zero] = (
                        np.log(observed[~zero]) - np.log(model[~zero])
                    ) / correction_constant
                else:
                    update = (np.log(observed) - np.log(model)) / correction_constant
                ctx.add(update)

        logger.info(
            "%3d:  loglikelihood=%s\t%s",
            iteration, loglikelihood, num_correct / num_events if num_events else 0.0,
        )
        return loglikelihood

    def _gaussian_update(
        self, param: float, model_value: float, observed_value: float, correction_constant: float
    ) -> float:
        """Newton step size for one weight under a Gaussian prior."""
        sigma = self.gaussian_sigma
        x0 = 0.0
        for _ in range(NEWTON_MAX_ITERATIONS):
            tmp = model_value * math.exp(correction_constant * x0)
            f = tmp + (param + x0) / sigma - observed_value
            fp = tmp * correction_constant + 1 / sigma
            if fp == 0:
                break
            x = x0 - f / fp
            if abs(x - x0) < NEWTON_TOLERANCE:
                x0 = x
                break
            x0 = x
        return x0


class _TrainingState:
    """Per-run tables shared by the trainer and its workers."""

    def __init__(self, data: IndexedData, prior: Prior, cutoff: int, threads: int):
        self.contexts = [np.asarray(c, dtype=np.int64) for c in data.contexts]
        self.values = (
            None
            if data.values is None
            else [None if v is None else np.asarray(v, dtype=np.float64) for v in data.values]
        )
        self.outcome_list = np.asarray(data.outcome_list, dtype=np.int64)
        self.num_times_events_seen = np.asarray(data.num_times_events_seen, dtype=np.int64)
        self.pred_counts = np.asarray(data.pred_counts, dtype=np.int64)
        self.outcome_labels = list(data.outcome_labels)
        self.pred_labels = list(data.pred_labels)
        self.num_unique_events = len(self.contexts)
        self.num_outcomes = len(self.outcome_labels)
        self.num_preds = len(self.pred_labels)
        self.cutoff = cutoff
        self.threads = threads
        self.prior = prior
        prior.set_labels(self.outcome_labels, self.pred_labels)

        self.correction_constant = self._correction_constant()
        self.params: List[MutableContext] = []
        self.observed: List[np.ndarray] = []
        self.eval_params: Optional[EvalParameters] = None

    def _correction_constant(self) -> float:
        constant = 0.0
        for ei, context in enumerate(self.contexts):
            row = self.values[ei] if self.values is not None else None
            total = float(len(context)) if row is None else float(np.sum(row))
            constant = max(constant, total)
        return constant

    def shards(self) -> List[tuple]:
        """Contiguous (start, length) slices, the last one taking the remainder."""
        task_size = self.num_unique_events // self.threads
        left_over = self.num_unique_events % self.threads
        shards = []
        for i in range(self.threads):
            length = task_size + left_over if i == self.threads - 1 else task_size
            shards.append((i * task_size, length))
        return shards

    def compute_shard(self, start: int, length: int) -> ShardResult:
        result = ShardResult(expectations=[np.zeros(len(p)) for p in self.params])
        dist = np.empty(self.num_outcomes, dtype=np.float64)

        for ei in range(start, start + length):
            context = self.contexts[ei]
            row = self.values[ei] if self.values is not None else None
            seen = int(self.num_times_events_seen[ei])

            self.prior.log_prior(dist, context, row)
            eval_context(context, row, dist, self.eval_params)

            for j, pi in enumerate(context):
                if self.pred_counts[pi] < self.cutoff:
                    continue
                active = self.params[pi].outcomes
                if active.size == 0:
                    continue
                weight = seen if row is None else row[j] * seen
                result.expectations[pi] += dist[active] * weight

            outcome = self.outcome_list[ei]
            result.loglikelihood += math.log(dist[outcome]) * seen
            result.num_events += seen
            if int(np.argmax(dist)) == outcome:
                result.num_correct += seen

        return result


def train_model(
    events: Iterable[Event],
    params: Optional[TrainingParameters] = None,
    prior: Optional[Prior] = None,
    namespace: Optional[str] = None,
) -> GISModel:
    """Index ``events`` and train a model as described by ``params``.

    Args:
        events: Training events
        params: Training parameters (defaults when omitted)
        prior: Outcome prior (uniform by default)
        namespace: Parameter namespace to read, e.g. ``"ner"``

    Raises:
        ConfigurationError: If the parameters are unusable
    """
    params = params or TrainingParameters.defaults()
    params.validate(namespace)
    if params.algorithm(namespace) != TrainingParameters.MAXENT_VALUE:
        raise ConfigurationError(
            f"Unsupported algorithm: {params.algorithm(namespace)}",
            config_key=TrainingParameters.ALGORITHM_PARAM,
        )

    cutoff = params.cutoff(namespace)
    indexer = OnePassDataIndexer(events, cutoff=cutoff)
    trainer = GISTrainer(
        smoothing=params.smoothing(namespace),
        smoothing_observation=params.smoothing_observation(namespace),
        gaussian_sigma=params.gaussian_sigma(namespace),
    )
    return trainer.train_model(
        params.iterations(namespace),
        indexer,
        prior=prior,
        cutoff=cutoff,
        threads=params.threads(namespace),
    )


__all__ = [
    "GISTrainer",
    "ShardResult",
    "train_model",
    "LL_THRESHOLD",
]
