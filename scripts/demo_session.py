"""Drive a memorization session with a simulated learner and print the summary."""

import argparse
import asyncio
import random

from memorizer.grading import expected_answer
from memorizer.memorize import ViewMode
from memorizer.memorize.summary import format_batch_result, format_summary
from memorizer.system import MemorizerSystem


async def main(quiz_id: str, accuracy: float, seed: int) -> None:
    system = MemorizerSystem.from_config(None)  # loads config/default.yaml when present
    controller = await system.start_session(quiz_id, system.resolve_options(seed=seed))
    rng = random.Random(seed)
    questions = list(controller.store.session.questions)

    while controller.view_mode is not ViewMode.SUMMARY:
        batch = controller.current_batch
        controller.complete_learn_phase()
        # Unanswered questions are scored as wrong.
        answers = {
            question.id: expected_answer(question)
            for question in batch.questions
            if rng.random() < accuracy
        }
        controller.submit_assessment(answers)
        print(format_batch_result(controller.last_result, questions))
        print()
        controller.advance()

    print(format_summary(controller.results()))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("quiz_id", nargs="?", default="sample")
    parser.add_argument("--accuracy", type=float, default=0.6)
    parser.add_argument("--seed", type=int, default=7)
    args = parser.parse_args()
    asyncio.run(main(args.quiz_id, args.accuracy, args.seed))
