#!/usr/bin/env python3
"""
Sequence Labeling Demo

This script walks through the seqlabel pipeline on a toy corpus:
- Training a name finder and decoding entity spans
- Training a part-of-speech tagger with a tag dictionary
- Inspecting alternative taggings and per-token probabilities
- Loading training parameters from YAML
"""

import os
import tempfile

from seqlabel import (
    NameFinder,
    NameSample,
    POSSample,
    POSTagger,
    Span,
    TagDictionary,
    TrainingParameters,
    spans_to_strings,
)
from seqlabel.config import create_default_config
from seqlabel.logging import configure_logging


NER_SAMPLES = [
    NameSample("John Smith lives in Paris .".split(), [Span(0, 2, "PER"), Span(4, 5, "LOC")]),
    NameSample("Mary visited Berlin .".split(), [Span(0, 1, "PER"), Span(2, 3, "LOC")]),
    NameSample("the weather in Berlin is nice .".split(), [Span(3, 4, "LOC")]),
    NameSample("John Smith met Mary .".split(), [Span(0, 2, "PER"), Span(3, 4, "PER")]),
]

POS_SAMPLES = [
    POSSample("the dog runs".split(), ["DT", "NN", "VBZ"]),
    POSSample("a cat sleeps".split(), ["DT", "NN", "VBZ"]),
    POSSample("the cat runs fast".split(), ["DT", "NN", "VBZ", "RB"]),
    POSSample("a dog sleeps".split(), ["DT", "NN", "VBZ"]),
]


def example_1_name_finder():
    """Train a name finder and decode spans."""
    print("\n" + "=" * 70)
    print("EXAMPLE 1: Name Finder")
    print("=" * 70)

    params = TrainingParameters.create(iterations=50, cutoff=0)
    model = NameFinder.train(NER_SAMPLES, params)
    print(f"Trained {model}")

    finder = NameFinder(model)
    tokens = "Mary Smith lives in Berlin .".split()
    spans = finder.find(tokens)
    for span, text, prob in zip(spans, spans_to_strings(spans, tokens), finder.span_probs(spans)):
        print(f"  {span.type:<4} {text:<12} p={prob:.3f}")
    finder.clear_adaptive_data()


def example_2_pos_tagger():
    """Train a POS tagger and restrict it with a tag dictionary."""
    print("\n" + "=" * 70)
    print("EXAMPLE 2: POS Tagger")
    print("=" * 70)

    params = TrainingParameters.create(iterations=50, cutoff=0)
    model = POSTagger.train(POS_SAMPLES, params)
    dictionary = TagDictionary.from_samples(POS_SAMPLES)

    tagger = POSTagger(model, tag_dictionary=dictionary)
    tokens = "the dog sleeps fast".split()
    tags = tagger.tag(tokens)
    print("  " + " ".join(f"{tok}/{tag}" for tok, tag in zip(tokens, tags)))
    print("  probs: " + ", ".join(f"{p:.3f}" for p in tagger.probs()))

    print("\n  Top taggings:")
    for sequence in tagger.top_k_sequences(tokens):
        print(f"    {sequence.score:8.3f}  {' '.join(sequence.outcomes)}")

    ordered, probs = tagger.get_ordered_tags(tokens, tags, 1)
    print(f"\n  Tags for '{tokens[1]}': " + ", ".join(f"{t}={p:.3f}" for t, p in zip(ordered, probs)))


def example_3_yaml_parameters():
    """Read per-task parameters from a YAML file."""
    print("\n" + "=" * 70)
    print("EXAMPLE 3: YAML Training Parameters")
    print("=" * 70)

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "training.yaml")
        create_default_config(path)
        params = TrainingParameters.from_yaml(path)

    for namespace in (None, "ner", "postag"):
        print(
            f"  {namespace or 'global':<7} iterations={params.iterations(namespace)} "
            f"cutoff={params.cutoff(namespace)} threads={params.threads(namespace)}"
        )


def main():
    """Run all examples."""
    print("=" * 70)
    print("SEQLABEL TAGGING DEMO")
    print("=" * 70)

    configure_logging("WARNING")

    examples = [
        example_1_name_finder,
        example_2_pos_tagger,
        example_3_yaml_parameters,
    ]

    for example in examples:
        try:
            example()
        except Exception as e:
            print(f"\n⚠ Error in {example.__name__}: {e}")
            import traceback

            traceback.print_exc()

    print("\n" + "=" * 70)
    print("ALL EXAMPLES COMPLETE!")
    print("=" * 70)


if __name__ == "__main__":
    main()
