"""
Tests for batch evaluation on the pykka actor pool
"""

import pykka
import pytest
from error_handling import PatternMismatchError
from interpreter import BatchResult, Direction, EvaluationActor, create_interpreter, evaluate_many
from values import NumberValue, StringValue


class TestBatchEvaluation:
    """Evaluate many inputs through EvaluationActor instances"""

    @pytest.fixture
    def functions(self, compile_program):
        return compile_program('"n=" + s -> s::#string ~> #number; n -> n * 10;')

    def test_results_keep_input_order(self, functions):
        inputs = [f"n={number}" for number in range(10)]
        results = evaluate_many(functions, inputs, workers=3)
        assert [result.output for result in results] == [NumberValue(float(n * 10)) for n in range(10)]
        assert [result.input for result in results] == [StringValue(text) for text in inputs]

    def test_errors_are_reported_per_input(self, functions):
        results = evaluate_many(functions, ["n=1", "bad", "n=3"], workers=2)
        assert [result.ok for result in results] == [True, False, True]
        assert isinstance(results[1].error, PatternMismatchError)
        assert results[1].output is None

    def test_backward_direction(self, functions):
        results = evaluate_many(functions, [10, 20], workers=2, direction=Direction.BACKWARD)
        assert [result.output for result in results] == [StringValue("n=1"), StringValue("n=2")]

    def test_empty_batch(self, functions):
        assert evaluate_many(functions, []) == []

    def test_actors_are_stopped(self, functions):
        evaluate_many(functions, ["n=1", "n=2", "n=3"], workers=3)
        assert pykka.ActorRegistry.get_all() == []

    def test_actor_answers_messages(self, functions):
        actor = EvaluationActor.start(functions)
        try:
            result = actor.ask({'direction': Direction.FORWARD, 'value': StringValue("n=4")})
        finally:
            actor.stop()
        assert result == BatchResult(StringValue("n=4"), output=NumberValue(40.0))

    def test_interpreter_run_many(self, functions):
        interpreter = create_interpreter()
        results = interpreter.run_many(functions, ["n=5"], workers=8)
        assert results[0].output == NumberValue(50.0)
