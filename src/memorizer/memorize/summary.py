from __future__ import annotations

from typing import List, Optional, Sequence, Union

from memorizer.data_models import Question
from memorizer.memorize.models import BatchResult, CumulativeResults


def format_percentage(percentage: float) -> str:
    return f"{round(percentage)}%"


def score_band(percentage: float) -> str:
    """Bucket a score into the success / warning / danger bands used by result screens."""
    if percentage >= 70:
        return "success"
    if percentage >= 50:
        return "warning"
    return "danger"


def correct_answer_display(question: Question) -> Union[str, List[str]]:
    """Human-readable answer key for review after an incorrect attempt."""
    if question.type == "multiple_choice":
        correct = next((choice for choice in question.choices if choice.correct), None)
        return correct.text if correct else "No correct answer"
    if question.type == "multiple_answer":
        texts = [choice.text for choice in question.choices if choice.correct]
        return texts or ["No correct answers"]
    if question.type == "true_false":
        return "True" if question.correct else "False"
    if question.type == "fill_blank":
        return list(question.answers)
    if question.type == "dropdown":
        texts = {choice.id: choice.text for choice in question.choices}
        return [texts.get(choice_id, choice_id) for choice_id in question.answers]
    if question.type == "numeric":
        if question.numeric_answer is None:
            return "No correct answer"
        if question.tolerance:
            return f"{question.numeric_answer:g} ± {question.tolerance:g}"
        return f"{question.numeric_answer:g}"
    return question.reference_answer or "No reference answer"


def batch_title(batch_index: int, generation: int, chapter_name: Optional[str] = None) -> str:
    title = f"Batch {batch_index + 1}"
    if chapter_name:
        title += f": {chapter_name}"
    if generation:
        title += f" (retry {generation})"
    return title


def format_batch_result(result: BatchResult, questions: Sequence[Question]) -> str:
    """Summarize one assessed batch, listing the questions that will be retried."""
    by_id = {question.id: question for question in questions}
    lines: List[str] = [
        batch_title(result.batch_index, result.generation, result.chapter_name),
        f"Score: {result.correct_count}/{result.total_questions} "
        f"({format_percentage(result.percentage)}, "
        f"{result.earned_points:g}/{result.total_points:g} points)",
    ]
    for question_id in result.failed_question_ids:
        question = by_id.get(question_id)
        label = question.text if question else question_id
        lines.append(f"- Retry: {label}")
        if question_id in result.grading_failures:
            lines.append("  (could not be graded)")
    return "\n".join(lines)


def format_summary(results: CumulativeResults) -> str:
    """Render the end-of-session summary as markdown."""
    lines: List[str] = [
        "# Memorization complete" if results.is_complete else "# Memorization progress",
        "",
        f"- Mastered: {results.mastered_count}/{results.total_questions}",
        f"- Correct on first try: {results.first_try_correct_count} "
        f"({format_percentage(results.first_try_percentage)})",
        f"- Total attempts: {results.total_attempts}",
        f"- Answer accuracy: {format_percentage(results.accuracy * 100)}",
        f"- Points: {results.earned_points:g}/{results.total_points:g} "
        f"({format_percentage(results.overall_percentage)})",
    ]
    if results.duration_seconds:
        minutes, seconds = divmod(int(results.duration_seconds), 60)
        lines.append(f"- Time spent: {minutes}m {seconds:02d}s")

    struggled = [
        (question_id, len(records))
        for question_id, records in results.per_question_history.items()
        if len(records) > 1
    ]
    if struggled:
        lines.extend(["", "## Needed extra attempts", ""])
        for question_id, attempts in sorted(struggled, key=lambda item: item[1], reverse=True):
            lines.append(f"- {question_id}: {attempts} attempts")
    return "\n".join(lines)
