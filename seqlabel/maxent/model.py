"""
Maximum entropy model evaluation.

A ``GISModel`` maps a sparse context (predicate strings or predicate ids,
optionally with real values) to a normalized probability distribution over
its outcomes. Only the (predicate, active outcome) pairs present in the
context are touched, so evaluation cost does not depend on the size of the
full predicate x outcome matrix.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.special import logsumexp

from .context import Context
from .prior import Prior, UniformPrior

ContextLike = Union[Sequence[str], Sequence[int], np.ndarray]


class EvalParameters:
    """Weight table plus the legacy correction scalars.

    Args:
        params: One entry per predicate id
        num_outcomes: Size of the outcome inventory
        correction_param: Weight of the legacy correction feature
        correction_constant: Normalization constant applied to feature sums
    """

    def __init__(
        self,
        params: Sequence[Context],
        num_outcomes: int,
        correction_param: float = 0.0,
        correction_constant: float = 1.0,
    ):
        if correction_constant <= 0:
            raise ValueError(f"correction constant must be positive: {correction_constant}")
        self.params = params
        self.num_outcomes = num_outcomes
        self.correction_param = correction_param
        self.correction_constant = correction_constant
        self.constant_inverse = 1.0 / correction_constant


def eval_context(
    context: Sequence[int],
    values: Optional[Sequence[float]],
    dist: np.ndarray,
    model: EvalParameters,
) -> np.ndarray:
    """Turn the prior scores in ``dist`` into outcome probabilities.

    ``dist`` must already hold the prior's log score for every outcome; it
    is overwritten with the normalized distribution and returned. Negative
    predicate ids stand for predicates the model does not know and are
    skipped.
    """
    params = model.params
    use_correction = model.correction_param != 0
    numfeats = np.zeros(model.num_outcomes, dtype=np.float64) if use_correction else None

    for ci, pid in enumerate(context):
        if pid < 0:
            continue
        pred_params = params[pid]
        active = pred_params.outcomes
        if active.size == 0:
            continue
        value = 1.0 if values is None else values[ci]
        dist[active] += pred_params.parameters * value
        if use_correction:
            numfeats[active] += 1

    scores = dist * model.constant_inverse
    if use_correction:
        scores += (1.0 - numfeats / model.correction_constant) * model.correction_param

    dist[:] = np.exp(scores - logsumexp(scores))
    return dist


class GISModel:
    """An immutable maximum entropy model.

    Args:
        params: Weight table entry for each predicate id
        pred_labels: Predicate label of each predicate id
        outcome_labels: Outcome label of each outcome id
        correction_constant: Legacy scalar, 1 for newly trained models
        correction_param: Legacy scalar, 0 for newly trained models
        prior: Outcome prior used at evaluation time (uniform by default)
    """

    def __init__(
        self,
        params: Sequence[Context],
        pred_labels: Sequence[str],
        outcome_labels: Sequence[str],
        correction_constant: float = 1,
        correction_param: float = 0.0,
        prior: Optional[Prior] = None,
    ):
        if len(params) != len(pred_labels):
            raise ValueError(
                f"{len(params)} parameter entries for {len(pred_labels)} predicates"
            )
        self._params: Tuple[Context, ...] = tuple(p.freeze() for p in params)
        self._pred_labels: Tuple[str, ...] = tuple(pred_labels)
        self._outcome_labels: Tuple[str, ...] = tuple(outcome_labels)
        self._pmap: Dict[str, int] = {label: i for i, label in enumerate(self._pred_labels)}
        self._omap: Dict[str, int] = {label: i for i, label in enumerate(self._outcome_labels)}
        self._eval_params = EvalParameters(
            self._params, len(self._outcome_labels), correction_param, correction_constant
        )
        self.prior = prior or UniformPrior()
        self.prior.set_labels(self._outcome_labels, self._pred_labels)

    # -- evaluation -----------------------------------------------------------

    def eval(
        self,
        context: ContextLike,
        values: Optional[Sequence[float]] = None,
        outsums: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Probability of each outcome given ``context``.

        Args:
            context: Predicate strings, or predicate ids as produced by
                ``get_context_ids``
            values: Optional real value per context entry
            outsums: Optional buffer of length ``num_outcomes`` to write into

        Returns:
            Array of outcome probabilities summing to one
        """
        if values is not None and len(values) != len(context):
            raise ValueError(
                f"{len(values)} values given for a context of {len(context)} predicates"
            )
        ids = self.get_context_ids(context)
        dist = outsums if outsums is not None else np.empty(self.num_outcomes, dtype=np.float64)
        self.prior.log_prior(dist, ids, values)
        return eval_context(ids, values, dist, self._eval_params)

    def get_context_ids(self, context: ContextLike) -> List[int]:
        """Map predicate strings to ids; unknown predicates become -1."""
        ids = []
        for predicate in context:
            if isinstance(predicate, str):
                ids.append(self._pmap.get(predicate, -1))
            else:
                pid = int(predicate)
                ids.append(pid if pid < len(self._params) else -1)
        return ids

    # -- outcomes -------------------------------------------------------------

    @property
    def num_outcomes(self) -> int:
        return len(self._outcome_labels)

    @property
    def num_predicates(self) -> int:
        return len(self._pred_labels)

    def get_outcome(self, index: int) -> str:
        return self._outcome_labels[index]

    def get_index(self, outcome: str) -> int:
        """Id of ``outcome``, or -1 if the model does not know it."""
        return self._omap.get(outcome, -1)

    def get_best_outcome(self, ocs: Sequence[float]) -> str:
        """Label of the most probable outcome (lowest id wins ties)."""
        return self._outcome_labels[int(np.argmax(ocs))]

    def get_all_outcomes(self, ocs: Sequence[float]) -> str:
        """Human-readable ``label[prob]`` listing of a distribution."""
        if len(ocs) != self.num_outcomes:
            return (
                "The double array sent as a parameter to GISModel.get_all_outcomes() "
                "must not have been produced by this model."
            )
        return "  ".join(
            f"{label}[{prob:.4f}]" for label, prob in zip(self._outcome_labels, ocs)
        )

    @property
    def outcome_labels(self) -> Tuple[str, ...]:
        return self._outcome_labels

    @property
    def pred_labels(self) -> Tuple[str, ...]:
        return self._pred_labels

    # -- weights --------------------------------------------------------------

    @property
    def params(self) -> Tuple[Context, ...]:
        return self._params

    @property
    def correction_constant(self) -> float:
        return self._eval_params.correction_constant

    @property
    def correction_param(self) -> float:
        return self._eval_params.correction_param

    def __repr__(self) -> str:
        return (
            f"GISModel(outcomes={self.num_outcomes}, predicates={self.num_predicates})"
        )
