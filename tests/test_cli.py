"""Tests for the typer CLI."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from memorizer.cli import app, parse_answer
from memorizer.config.loader import OVERRIDES_ENV_VAR
from memorizer.data_models import Question

from conftest import make_question

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    quiz_dir = tmp_path / "quizzes"
    quiz_dir.mkdir()
    questions = [make_question(f"q{idx}").model_dump() for idx in range(1, 4)]
    (quiz_dir / "demo.json").write_text(
        json.dumps({"title": "Demo", "questions": questions}), encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(
        OVERRIDES_ENV_VAR,
        json.dumps(
            {
                "paths": {
                    "quiz_dir": str(quiz_dir),
                    "preferences_file": str(tmp_path / "preferences.json"),
                },
                "logging": {"level": "WARNING"},
            }
        ),
    )
    return tmp_path


def test_plan_prints_batches(workspace):
    result = runner.invoke(app, ["plan", "demo", "--batch-size", "2"])
    assert result.exit_code == 0, result.output
    assert "2 batches" in result.output
    assert "q1, q2" in result.output


def test_plan_unknown_quiz_exits_with_error(workspace):
    result = runner.invoke(app, ["plan", "missing"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_run_requeues_until_mastered(workspace):
    # study -> answer q1..q3 (q2 wrong) -> continue -> study retry -> answer q2 -> continue
    user_input = "\n".join(["y", "a", "b", "a", "y", "y", "a", "y"]) + "\n"
    result = runner.invoke(app, ["run", "demo", "--batch-size", "3"], input=user_input)
    assert result.exit_code == 0, result.output
    assert "retry 1" in result.output
    assert "Memorization complete" in result.output
    assert "Mastered: 3/3" in result.output


def test_run_with_zero_batch_size_fails(workspace):
    result = runner.invoke(app, ["run", "demo", "--batch-size", "0"])
    assert result.exit_code == 1
    assert "batch_size" in result.output


def test_defaults_stores_preferences(workspace):
    result = runner.invoke(app, ["defaults", "--set", "batch_size=9", "--set", "shuffle_within_batch=yes"])
    assert result.exit_code == 0, result.output
    assert "batch_size: 9" in result.output
    assert "shuffle_within_batch: True" in result.output
    stored = json.loads((workspace / "preferences.json").read_text(encoding="utf-8"))
    assert stored == {"batch_size": 9, "shuffle_within_batch": True}


def test_defaults_rejects_unknown_key(workspace):
    result = runner.invoke(app, ["defaults", "--set", "timer=10"])
    assert result.exit_code != 0


def test_parse_answer_shapes():
    assert parse_answer(make_question("q1"), " a ") == "a"
    assert parse_answer(make_question("q1"), "") is None
    multi = Question(id="m", text="?", type="multiple_answer")
    assert parse_answer(multi, "a, c") == ["a", "c"]
    tf = Question(id="t", text="?", type="true_false", correct=True)
    assert parse_answer(tf, "yes") is True
    num = Question(id="n", text="?", type="numeric", numeric_answer=1.0)
    assert parse_answer(num, "1.5") == 1.5


def test_defaults_rejects_unrecognised_boolean(workspace):
    result = runner.invoke(app, ["defaults", "--set", "requeue_failed_immediately=maybe"])
    assert result.exit_code != 0
    assert not (workspace / "preferences.json").exists()


def test_defaults_accepts_false_words(workspace):
    result = runner.invoke(app, ["defaults", "--set", "requeue_failed_immediately=off"])
    assert result.exit_code == 0, result.output
    assert "requeue_failed_immediately: False" in result.output


def test_plan_by_chapter(workspace):
    questions = [
        make_question("q1", chapter="mech").model_dump(),
        make_question("q2", chapter="energy").model_dump(),
        make_question("q3", chapter="mech").model_dump(),
    ]
    (workspace / "quizzes" / "physics.json").write_text(
        json.dumps(
            {
                "title": "Physics",
                "chapters": [{"id": "mech", "name": "Mechanics"}, {"id": "energy", "name": "Energy"}],
                "questions": questions,
            }
        ),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["plan", "physics", "--by-chapter"])
    assert result.exit_code == 0, result.output
    assert "2 batches" in result.output
    assert "Mechanics" in result.output
    assert "q1, q3" in result.output


def test_parse_answer_dropdown():
    question = Question(id="d", text="?", type="dropdown", answers=["a", "b"])
    assert parse_answer(question, "a | b") == ["a", "b"]
