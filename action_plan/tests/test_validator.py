"""Tests for plan validation and dependency linting."""

from action_plan.models import Plan, PlanStep
from action_plan.validator import (
    DISPLAY_FALLBACK,
    EMPTY_PLAN_FALLBACK,
    lint_dependencies,
    validate_plan,
)


def _step(index, endpoint="email-command", description="d", depends_on=None, module="EMAIL"):
    return PlanStep(
        index=index,
        endpoint=endpoint,
        description=description,
        module=module,
        depends_on=depends_on,
    )


class TestValidatePlan:
    def test_valid_plan_passes_through(self):
        plan = Plan(kind="plan", summary="s", steps=[_step(1), _step(2)])
        out = validate_plan(plan)
        assert out.kind == "plan"
        assert out.summary == "s"
        assert [s.index for s in out.steps] == [1, 2]

    def test_step_without_endpoint_is_dropped(self, caplog):
        plan = Plan(kind="plan", steps=[_step(1), _step(2, endpoint=""), _step(3)])
        with caplog.at_level("WARNING"):
            out = validate_plan(plan)
        assert [s.index for s in out.steps] == [1, 3]
        assert "missing endpoint" in caplog.text

    def test_non_step_entries_are_dropped(self):
        plan = Plan(kind="plan", steps=[_step(1), "garbage", 42])
        assert [s.index for s in validate_plan(plan).steps] == [1]

    def test_missing_index_gets_next_unused_index(self):
        plan = Plan(kind="plan", steps=[_step(1), _step(None)])
        assert [s.index for s in validate_plan(plan).steps] == [1, 2]

    def test_missing_index_does_not_collide_with_explicit_ones(self):
        plan = Plan(kind="plan", steps=[_step(2), _step(None), _step(3)])
        assert [s.index for s in validate_plan(plan).steps] == [2, 4, 3]

    def test_several_missing_indices_count_up(self):
        plan = Plan(kind="plan", steps=[_step(None), _step(5), _step(None)])
        assert [s.index for s in validate_plan(plan).steps] == [6, 5, 7]

    def test_missing_description_gets_fallback(self):
        out = validate_plan(Plan(kind="plan", steps=[_step(4, description="")]))
        assert out.steps[0].description == "EMAIL step 4"

    def test_plan_with_no_usable_steps_becomes_message(self):
        out = validate_plan(Plan(kind="plan", steps=[_step(1, endpoint="")]))
        assert out.kind == "message"
        assert out.message == EMPTY_PLAN_FALLBACK

    def test_empty_plan_becomes_message(self):
        out = validate_plan(Plan(kind="plan", steps=[]))
        assert out.kind == "message"

    def test_clarify_without_text_gets_fallback(self):
        out = validate_plan(Plan(kind="clarify", message="  "))
        assert out.kind == "clarify"
        assert out.message == DISPLAY_FALLBACK

    def test_message_with_text_unchanged(self):
        plan = Plan(kind="message", message="Done already.")
        assert validate_plan(plan) is plan

    def test_out_of_order_dependency_does_not_block(self):
        plan = Plan(kind="plan", steps=[_step(1, depends_on=2), _step(2)])
        out = validate_plan(plan)
        assert [s.index for s in out.steps] == [1, 2]


class TestLintDependencies:
    def test_no_findings_for_forward_order(self):
        assert lint_dependencies([_step(1), _step(2, depends_on=1)]) == []

    def test_later_target_flagged(self):
        warnings = lint_dependencies([_step(1, depends_on=2), _step(2)])
        assert len(warnings) == 1
        assert "runs after it" in warnings[0]

    def test_missing_target_flagged(self):
        warnings = lint_dependencies([_step(1), _step(2, depends_on=9)])
        assert "not in the plan" in warnings[0]

    def test_duplicate_index_flagged(self):
        warnings = lint_dependencies([_step(1), _step(2), _step(2)])
        assert len(warnings) == 1
        assert "used more than once" in warnings[0]

    def test_non_contiguous_indices(self):
        steps = [_step(10), _step(30, depends_on=10), _step(20, depends_on=30)]
        assert lint_dependencies(steps) == []
