from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from memorizer.data_models import Chapter, Question
from memorizer.memorize.errors import InvalidConfiguration
from memorizer.memorize.models import Batch, MemorizeOptions

UNCATEGORIZED = "Uncategorized"


def batch_rng(seed: Optional[int], batch_index: int) -> random.Random:
    """
    Return the random source used to permute one batch.

    With a seed the permutation depends only on `(seed, batch_index)`, so a
    batch is shuffled identically no matter when or how often it is built.
    """
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{batch_index}")


def shuffle_questions(questions: Sequence[Question], rng: random.Random) -> Tuple[Question, ...]:
    """Return a shuffled copy, leaving the input untouched."""
    shuffled = list(questions)
    rng.shuffle(shuffled)
    return tuple(shuffled)


def filter_questions(
    questions: Iterable[Question], selected_chapters: Sequence[str]
) -> Tuple[Question, ...]:
    """Keep questions from the selected chapters; an empty selection keeps everything."""
    if not selected_chapters:
        return tuple(questions)
    selected = set(selected_chapters)
    return tuple(question for question in questions if question.chapter in selected)


def group_by_chapter(
    questions: Sequence[Question], chapters: Sequence[Chapter]
) -> List[Tuple[str, Tuple[Question, ...]]]:
    """
    Split questions into `(chapter name, questions)` groups in chapter order.

    Questions keep their relative order inside a group. Questions without a
    chapter, or pointing at one the quiz does not define, form a trailing
    "Uncategorized" group. Chapters with no questions are skipped.
    """
    known = {chapter.id for chapter in chapters}
    grouped: Dict[Optional[str], List[Question]] = {}
    for question in questions:
        key = question.chapter if question.chapter in known else None
        grouped.setdefault(key, []).append(question)

    groups = [
        (chapter.name, tuple(grouped[chapter.id]))
        for chapter in chapters
        if grouped.get(chapter.id)
    ]
    if grouped.get(None):
        groups.append((UNCATEGORIZED, tuple(grouped[None])))
    return groups


def validate_options(options: MemorizeOptions) -> None:
    if options.batch_size < 1:
        raise InvalidConfiguration(
            f"batch_size must be a positive integer, got {options.batch_size}"
        )


def make_batch(
    questions: Sequence[Question],
    options: MemorizeOptions,
    *,
    batch_index: int,
    generation: int,
    chapter_name: Optional[str] = None,
) -> Batch:
    """Freeze one batch, applying the in-batch shuffle when configured."""
    members: Tuple[Question, ...] = tuple(questions)
    if options.shuffle_within_batch:
        members = shuffle_questions(members, batch_rng(options.seed, batch_index))
    return Batch(
        questions=members,
        batch_index=batch_index,
        source_generation=generation,
        chapter_name=chapter_name,
    )


def build_batches(
    questions: Sequence[Question],
    options: MemorizeOptions,
    *,
    chapters: Sequence[Chapter] = (),
    start_index: int = 0,
    generation: int = 0,
) -> Tuple[Batch, ...]:
    """
    Partition questions into consecutive batches of `options.batch_size`.

    The last batch may be smaller; nothing is padded or dropped. Grouping is
    decided on the input order before any shuffling, and shuffling only ever
    permutes questions inside their own batch. With `options.batch_by_chapter`
    and a non-empty `chapters`, each chapter group becomes one batch instead.

    Raises
    ------
    InvalidConfiguration
        If `batch_size < 1` or there are no questions.
    """
    validate_options(options)
    if not questions:
        raise InvalidConfiguration("cannot build batches from an empty question set")

    if options.batch_by_chapter and chapters:
        groups = group_by_chapter(questions, chapters)
    else:
        size = options.batch_size
        groups = [
            (None, tuple(questions[offset : offset + size]))
            for offset in range(0, len(questions), size)
        ]

    return tuple(
        make_batch(
            members,
            options,
            batch_index=start_index + position,
            generation=generation,
            chapter_name=name,
        )
        for position, (name, members) in enumerate(groups)
    )
