from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from memorizer.memorize.models import AttemptRecord, CumulativeResults


def aggregate(
    ledger: Sequence[AttemptRecord],
    question_ids: Optional[Iterable[str]] = None,
) -> CumulativeResults:
    """
    Reduce the attempt ledger into session-wide statistics.

    Pure function of its inputs: the same ledger always yields the same
    results. `question_ids` fixes the population (and the ordering of
    `per_question_history`); questions never attempted still count toward
    `total_questions`. Without it the population is whatever the ledger names.
    Points are summed over every attempt, so a question retried twice counts
    its points three times.
    """
    history: Dict[str, List[AttemptRecord]] = {}
    if question_ids is not None:
        for question_id in question_ids:
            history.setdefault(question_id, [])
    for record in ledger:
        history.setdefault(record.question_id, []).append(record)

    mastered = 0
    first_try = 0
    for records in history.values():
        if not records:
            continue
        if records[-1].is_correct:
            mastered += 1
        if records[0].is_correct:
            first_try += 1

    timestamps = [record.timestamp for record in ledger]
    return CumulativeResults(
        total_questions=len(history),
        mastered_count=mastered,
        first_try_correct_count=first_try,
        total_attempts=len(ledger),
        correct_attempts=sum(1 for record in ledger if record.is_correct),
        max_attempts=max((record.attempt_number for record in ledger), default=0),
        earned_points=round(sum(record.earned_points for record in ledger), 2),
        total_points=round(sum(record.points for record in ledger), 2),
        per_question_history={qid: tuple(records) for qid, records in history.items()},
        started_at=min(timestamps) if timestamps else None,
        finished_at=max(timestamps) if timestamps else None,
    )
