"""
Comprehensive Test Suite for seqlabel.
Tests the core types, the BIO codec, model evaluation, indexing,
GIS training and beam search decoding.
"""

import math
import sys
from typing import Dict, List, Tuple

import numpy as np

print("=" * 60)
print("SEQLABEL - COMPREHENSIVE TESTS")
print("=" * 60)


# =============================================================================
# FIXTURES
# =============================================================================


class TableModel:
    """Model whose distribution depends only on (position, previous outcome)."""

    TABLE: Dict[Tuple[int, str], List[float]] = {
        (0, "bos"): [0.6, 0.4],
        (1, "X"): [0.5, 0.5],
        (1, "Y"): [0.95, 0.05],
        (2, "X"): [0.3, 0.7],
        (2, "Y"): [0.2, 0.8],
    }

    def __init__(self):
        self.num_outcomes = 2
        self.calls = 0

    def eval(self, context, values=None, outsums=None):
        self.calls += 1
        index = int(context[0].split("=")[1])
        prev = context[1].split("=")[1]
        return np.array(self.TABLE[(index, prev)])

    def get_outcome(self, index):
        return ["X", "Y"][index]


class PreviousOutcomeContext:
    def get_context(self, index, tokens, prior_outcomes, additional_context=None):
        prev = prior_outcomes[-1] if prior_outcomes else "bos"
        return [f"i={index}", f"prev={prev}"]


def toy_events():
    from seqlabel.core import Event

    return (
        [Event("yes", ["w=good", "def"])] * 3
        + [Event("no", ["w=bad", "def"])] * 3
        + [Event("yes", ["w=fine", "def"])]
    )


# =============================================================================
# TESTS
# =============================================================================


def test_core_types():
    print("\n[1/10] Testing Core Types...")
    from seqlabel.core import Span, Event, spans_to_strings

    span = Span(1, 3, "PER")
    assert span.length == 2, "Span length wrong"
    assert span.contains(2) and not span.contains(3), "Span index containment wrong"
    assert span.contains(Span(1, 2)), "Span containment wrong"
    assert span.intersects(Span(2, 5)), "Overlapping spans must intersect"
    assert not span.intersects(Span(3, 5)), "Adjacent spans must not intersect"
    assert span.crosses(Span(2, 5)), "Partially overlapping spans must cross"
    assert not span.crosses(Span(1, 2)), "Nested spans do not cross"

    ordered = sorted([Span(2, 3), Span(0, 2, "PER"), Span(0, 2), Span(0, 1)])
    assert ordered == [Span(0, 1), Span(0, 2), Span(0, 2, "PER"), Span(2, 3)], "Span ordering wrong"
    assert Span(0, 2, "PER") != Span(0, 2, "LOC"), "Span type must take part in equality"

    try:
        Span(3, 1)
        raise AssertionError("Span with start > end accepted")
    except ValueError:
        pass

    tokens = ["John", "Smith", "lives", "here"]
    assert spans_to_strings([Span(0, 2)], tokens) == ["John Smith"], "Covered text wrong"

    event = Event("yes", ["a", "b"], [1, 2.5])
    assert event.values == [1.0, 2.5], "Event values not converted to floats"
    try:
        Event("yes", ["a", "b"], [1.0])
        raise AssertionError("Event with mismatched values accepted")
    except ValueError:
        pass

    print("  ✓ Span, Event, spans_to_strings")
    return True


def test_bio_codec():
    print("\n[2/10] Testing BIO Codec...")
    from seqlabel.core import Span
    from seqlabel.errors import OutcomeFormatError, ValidationError
    from seqlabel.ner import BioCodec

    codec = BioCodec()

    outcomes = codec.encode([Span(0, 2, "PER")], 4)
    assert outcomes == ["PER-start", "PER-continue", "other", "other"], f"Encode wrong: {outcomes}"
    assert codec.decode(outcomes) == [Span(0, 2, "PER")], "Decode wrong"

    spans = [Span(0, 1, "PER"), Span(1, 3, "PER"), Span(4, 5, "LOC"), Span(5, 7, "ORG")]
    assert codec.decode(codec.encode(spans, 8)) == spans, "Round trip failed"

    untyped = codec.encode([Span(1, 3)], 3)
    assert untyped == ["other", "default-start", "default-continue"], "Default type wrong"
    assert codec.decode(untyped) == [Span(1, 3, "default")], "Default type decode wrong"

    lenient = codec.decode(["other", "LOC-continue", "LOC-continue", "other"])
    assert lenient == [Span(1, 3, "LOC")], "Continue without start must open a span"

    assert codec.decode([]) == [], "Empty outcomes must decode to no spans"

    for malformed, position in [
        (["X-start", "junk", "X-start"], 1),
        (["other", "-start"], 1),
        (["PER-start", "B-LOC", "PER-cont"], 1),
        (["-continue"], 0),
    ]:
        try:
            codec.decode(malformed)
            raise AssertionError(f"Malformed labels accepted: {malformed}")
        except OutcomeFormatError as e:
            assert e.position == position, f"Wrong position reported for {malformed}"
            assert e.outcome == malformed[position], "Offending label not reported"
            assert isinstance(e, ValidationError), "OutcomeFormatError must be a ValidationError"

    rng = np.random.default_rng(7)
    for _ in range(25):
        length = int(rng.integers(1, 12))
        random_spans = []
        position = 0
        while position < length:
            position += int(rng.integers(0, 3))
            end = min(length, position + int(rng.integers(1, 4)))
            if position < end:
                random_spans.append(Span(position, end, str(rng.choice(["PER", "LOC", "ORG"]))))
            position = end
        encoded = codec.encode(random_spans, length)
        assert len(encoded) == length, "Encoding must have one label per token"
        assert codec.decode(encoded) == random_spans, f"Round trip failed for {random_spans}"

    print("  ✓ encode, decode, round trip, lenient continue, malformed labels")
    return True


def test_outcome_compatibility():
    print("\n[3/10] Testing Outcome Compatibility...")
    from seqlabel.ner import BioCodec, NameFinderSequenceValidator

    codec = BioCodec()
    assert codec.are_outcomes_compatible(["other", "X-start", "X-continue", "Y-start"]), \
        "Valid inventory rejected"
    assert not codec.are_outcomes_compatible(["X-continue"]), "Inventory without start accepted"
    assert not codec.are_outcomes_compatible(["other", "X-start", "Y-continue"]), \
        "Continue without matching start accepted"
    assert codec.are_outcomes_compatible(["X-start"]), "Missing 'other' must be tolerated"
    assert not codec.are_outcomes_compatible(["other", "X-start", "NN"]), \
        "Labels outside the scheme accepted"
    assert not codec.are_outcomes_compatible(["-start"]), "Untyped start label accepted"
    assert not codec.are_outcomes_compatible(["other", "X-start", "-continue"]), \
        "Untyped continue label accepted"

    validator = codec.create_sequence_validator()
    assert isinstance(validator, NameFinderSequenceValidator), "Wrong validator type"
    tokens = ["a", "b", "c"]
    assert validator.valid_sequence(0, tokens, [], "other"), "'other' must always be valid"
    assert validator.valid_sequence(0, tokens, [], "X-start"), "Start must always be valid"
    assert not validator.valid_sequence(0, tokens, [], "X-continue"), "Continue at start accepted"
    assert validator.valid_sequence(1, tokens, ["X-start"], "X-continue"), "Continue after start rejected"
    assert validator.valid_sequence(2, tokens, ["X-start", "X-continue"], "X-continue"), \
        "Continue after continue rejected"
    assert not validator.valid_sequence(1, tokens, ["Y-start"], "X-continue"), \
        "Continue of another type accepted"
    assert not validator.valid_sequence(1, tokens, ["other"], "X-continue"), \
        "Continue after other accepted"

    print("  ✓ are_outcomes_compatible, NameFinderSequenceValidator")
    return True


def test_model_eval():
    print("\n[4/10] Testing Model Evaluation...")
    from seqlabel.maxent import Context, GISModel

    params = [Context([0, 2], [1.0, -0.5]), Context([1], [2.0])]
    model = GISModel(params, ["x", "y"], ["a", "b", "c"])

    probs = model.eval(["x", "y", "unknown"])
    assert abs(probs.sum() - 1.0) < 1e-9, "Probabilities must sum to one"
    expected = np.exp([1.0, 2.0, -0.5])
    expected /= expected.sum()
    assert np.allclose(probs, expected), f"Distribution wrong: {probs}"
    assert model.get_best_outcome(probs) == "b", "Best outcome wrong"

    assert np.allclose(model.eval([0, -1]), model.eval(["x"])), "Id and string contexts disagree"

    valued = model.eval(["x"], [2.0])
    expected = np.exp([2.0, 0.0, -1.0])
    expected /= expected.sum()
    assert np.allclose(valued, expected), "Real-valued context wrong"

    uniform = model.eval(["nothing", "known"])
    assert np.allclose(uniform, 1.0 / 3), "Unknown predicates must leave a uniform distribution"

    assert model.get_outcome(2) == "c" and model.get_index("c") == 2, "Outcome lookup wrong"
    assert model.get_index("zzz") == -1, "Unknown outcome must map to -1"
    assert model.num_outcomes == 3, "Outcome count wrong"
    assert "b[" in model.get_all_outcomes(probs), "Outcome listing wrong"

    big = GISModel([Context([0], [800.0])], ["x"], ["a", "b"])
    assert np.allclose(big.eval(["x"]), [1.0, 0.0]), "Large weights must not overflow"

    try:
        model.params[0].parameters[0] = 5.0
        raise AssertionError("Model weights must be read-only")
    except ValueError:
        pass

    print("  ✓ GISModel.eval, outcome lookup, stable normalization")
    return True


def test_indexer():
    print("\n[5/10] Testing Event Indexing...")
    from seqlabel.core import Event
    from seqlabel.logging import LogCapture, WARNING
    from seqlabel.maxent import OnePassDataIndexer

    events = [
        Event("A", ["f1", "f2"]),
        Event("A", ["f2", "f1"]),
        Event("B", ["f2", "f3"]),
        Event("C", ["f4"]),
    ]

    with LogCapture("seqlabel") as capture:
        indexer = OnePassDataIndexer(events, cutoff=2)
    data = indexer.indexed_data()

    assert data.pred_labels == ["f1", "f2"], f"Predicate labels wrong: {data.pred_labels}"
    assert data.outcome_labels == ["A", "B", "C"], "Outcomes must be numbered in first-seen order"
    assert list(data.pred_counts) == [2, 3], "Predicate counts wrong"
    assert data.num_unique_events == 2, "Duplicate events not merged"
    assert list(data.num_times_events_seen) == [2, 1], "Repetition counts wrong"
    assert [list(c) for c in data.contexts] == [[0, 1], [1]], "Contexts wrong"
    assert indexer.num_events == 3, "Dropped event still counted"
    assert data.num_events == 3, "Event total wrong"
    assert any("Dropped event" in m for m in capture.get_messages(WARNING)), \
        "Dropped event not logged"

    unsorted = OnePassDataIndexer(events[:2], cutoff=0, sort=False).indexed_data()
    assert unsorted.num_unique_events == 2, "Events merged although sorting is off"

    real = OnePassDataIndexer([Event("A", ["b", "a"], [2.0, 0.5])]).indexed_data()
    assert list(real.contexts[0]) == [0, 1], "Predicate ids must be first seen order"
    assert list(real.values[0]) == [2.0, 0.5], "Values must follow their predicates"

    print("  ✓ OnePassDataIndexer")
    return True


def test_indexed_data_validation():
    print("\n[6/10] Testing Indexed Data Validation...")
    from seqlabel.errors import DataError, IndexedDataError
    from seqlabel.maxent import GISTrainer, IndexedData

    good = IndexedData(
        contexts=[np.array([0, 1]), np.array([1])],
        outcome_list=np.array([0, 1]),
        num_times_events_seen=np.array([1, 1]),
        pred_counts=np.array([1, 2]),
        outcome_labels=["A", "B"],
        pred_labels=["p", "q"],
    )
    good.validate()

    bad_lengths = IndexedData(
        contexts=good.contexts,
        outcome_list=np.array([0]),
        num_times_events_seen=good.num_times_events_seen,
        pred_counts=good.pred_counts,
        outcome_labels=good.outcome_labels,
        pred_labels=good.pred_labels,
    )
    try:
        GISTrainer().train_model(10, bad_lengths)
        raise AssertionError("Inconsistent indexed data accepted")
    except IndexedDataError as e:
        assert isinstance(e, DataError), "IndexedDataError must be a DataError"
        assert e.details["field"] == "outcome_list", "Offending field not reported"

    bad_ids = IndexedData(
        contexts=[np.array([0, 5]), np.array([1])],
        outcome_list=good.outcome_list,
        num_times_events_seen=good.num_times_events_seen,
        pred_counts=good.pred_counts,
        outcome_labels=good.outcome_labels,
        pred_labels=good.pred_labels,
    )
    try:
        bad_ids.validate()
        raise AssertionError("Out of range predicate id accepted")
    except IndexedDataError:
        pass

    print("  ✓ IndexedData.validate")
    return True


def test_gis_training():
    print("\n[7/10] Testing GIS Training...")
    from seqlabel.maxent import GISTrainer, OnePassDataIndexer

    indexer = OnePassDataIndexer(toy_events(), cutoff=0)
    model = GISTrainer().train_model(100, indexer)

    for context, expected in [
        (["w=good", "def"], "yes"),
        (["w=bad", "def"], "no"),
        (["w=fine", "def"], "yes"),
    ]:
        probs = model.eval(context)
        assert abs(probs.sum() - 1.0) < 1e-9, "Probabilities must sum to one"
        assert model.get_best_outcome(probs) == expected, f"Wrong outcome for {context}"

    assert model.correction_constant == 1, "Trained model must carry correction constant 1"
    assert model.correction_param == 0, "Trained model must carry correction parameter 0"

    good = model.params[model.pred_labels.index("w=good")]
    assert list(good.outcomes) == [model.get_index("yes")], "Active outcomes must be the observed ones"

    cut = GISTrainer().train_model(10, OnePassDataIndexer(toy_events(), cutoff=0), cutoff=4)
    fine = cut.params[cut.pred_labels.index("w=fine")]
    assert len(fine) == 0, "Predicates below the cutoff must have no active outcomes"

    print("  ✓ GISTrainer.train_model")
    return True


def test_training_arguments():
    print("\n[8/10] Testing Training Arguments...")
    from seqlabel.maxent import GISTrainer, OnePassDataIndexer

    indexer = OnePassDataIndexer(toy_events(), cutoff=0)
    for threads in (0, -2):
        try:
            GISTrainer().train_model(10, indexer, threads=threads)
            raise AssertionError(f"threads={threads} accepted")
        except ValueError:
            pass

    try:
        GISTrainer(smoothing="laplace")
        raise AssertionError("Unknown smoothing accepted")
    except ValueError:
        pass

    print("  ✓ Argument validation")
    return True


def test_beam_search():
    print("\n[9/10] Testing Beam Search...")
    from seqlabel.sequence_models import BeamSearch

    tokens = ["t0", "t1", "t2"]

    greedy = BeamSearch(1, PreviousOutcomeContext(), TableModel()).best_sequence(tokens)
    assert greedy.outcomes == ["X", "X", "Y"], f"Greedy trace wrong: {greedy.outcomes}"
    assert np.allclose(greedy.probs, [0.6, 0.5, 0.7]), "Greedy probabilities wrong"
    assert abs(greedy.score - math.log(0.6 * 0.5 * 0.7)) < 1e-12, "Greedy score wrong"

    beam = BeamSearch(3, PreviousOutcomeContext(), TableModel())
    best = beam.best_sequence(tokens)
    assert best.outcomes == ["Y", "X", "Y"], f"Beam search missed the best path: {best.outcomes}"

    top = beam.best_sequences(3, tokens)
    assert len(top) == 3, "Beam must return three sequences"
    assert all(top[i].score >= top[i + 1].score for i in range(2)), "Sequences not ordered"
    assert all(len(s) == len(tokens) == len(s.probs) for s in top), "Sequence lengths wrong"

    for size in (1, 2, 3):
        narrow = BeamSearch(size, PreviousOutcomeContext(), TableModel()).best_sequences(10, tokens)
        assert len(narrow) == min(size, 2 ** len(tokens)), f"Beam of size {size} kept {len(narrow)}"

    again = BeamSearch(3, PreviousOutcomeContext(), TableModel()).best_sequences(3, tokens)
    assert [s.outcomes for s in again] == [s.outcomes for s in top], "Beam search not deterministic"
    assert [s.probs for s in again] == [s.probs for s in top], "Beam probabilities not deterministic"

    floor = beam.best_sequences(3, tokens, min_sequence_score=math.log(0.25))
    assert [s.outcomes for s in floor] == [["Y", "X", "Y"]], "Score floor not applied"

    assert beam.best_sequences(2, []) and beam.best_sequence([]).outcomes == [], \
        "Empty input must decode to an empty sequence"

    print("  ✓ BeamSearch greedy, top-k, determinism, score floor")
    return True


def test_beam_search_validation():
    print("\n[10/10] Testing Beam Search Validation...")
    from seqlabel.errors import InferenceError
    from seqlabel.sequence_models import BeamSearch

    class NoYAtTheEnd:
        def valid_sequence(self, index, tokens, outcomes_so_far, outcome):
            return not (index == 2 and outcome == "Y")

    class RejectAll:
        def valid_sequence(self, index, tokens, outcomes_so_far, outcome):
            return False

    tokens = ["t0", "t1", "t2"]
    constrained = BeamSearch(1, PreviousOutcomeContext(), TableModel(), NoYAtTheEnd())
    assert constrained.best_sequence(tokens).outcomes == ["X", "X", "X"], "Validator ignored"

    try:
        BeamSearch(2, PreviousOutcomeContext(), TableModel(), RejectAll()).best_sequence(tokens)
        raise AssertionError("Empty beam not reported")
    except InferenceError as e:
        assert e.details["position"] == 0, "Failing position not reported"

    from seqlabel.maxent import Context, GISModel
    from seqlabel.ner import NameFinder

    saturated = GISModel([Context([2], [1000.0])], ["def"], ["other", "X-start", "X-continue"])
    assert saturated.eval(["def"])[0] == 0.0, "Fixture must underflow every valid outcome"
    finder = NameFinder(saturated)
    assert finder.find(["a"]) == [], "Underflowed outcomes must still extend the beam"
    assert finder.beam.best_sequence(["a"]).outcomes == ["other"], "Fallback order wrong"
    assert finder.beam.best_sequence(["a", "b"]).outcomes == ["X-start", "X-continue"], \
        "Fallback sequences must be extendable afterwards"

    model = TableModel()
    cached = BeamSearch(3, PreviousOutcomeContext(), model, cache_size=10)
    first = cached.best_sequence(tokens)
    calls = model.calls
    second = cached.best_sequence(tokens)
    assert model.calls == calls, "Cached contexts evaluated again"
    assert first == second, "Cached decoding differs"

    print("  ✓ Validators, InferenceError, context cache")
    return True


def main():
    results = []

    tests = [
        ("Core Types", test_core_types),
        ("BIO Codec", test_bio_codec),
        ("Outcome Compatibility", test_outcome_compatibility),
        ("Model Evaluation", test_model_eval),
        ("Event Indexing", test_indexer),
        ("Indexed Data Validation", test_indexed_data_validation),
        ("GIS Training", test_gis_training),
        ("Training Arguments", test_training_arguments),
        ("Beam Search", test_beam_search),
        ("Beam Search Validation", test_beam_search_validation),
    ]

    passed = 0
    failed = 0

    for name, test_fn in tests:
        try:
            test_fn()
            passed += 1
            results.append((name, True, None))
        except Exception as e:
            failed += 1
            results.append((name, False, str(e)))
            print(f"  ✗ FAILED: {e}")

    print("\n" + "=" * 60)
    print("TEST RESULTS SUMMARY")
    print("=" * 60)

    for name, success, error in results:
        status = "✓ PASS" if success else "✗ FAIL"
        print(f"  {status}: {name}")
        if error:
            print(f"         Error: {error[:50]}...")

    print("-" * 60)
    print(f"Total: {passed} passed, {failed} failed out of {len(tests)} tests")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
