"""Tests for macro condition chains and action triggering."""
from __future__ import annotations

from macro_core import LogicType, Macro, TypeRegistry, RegistryEntry
from macro_core.editor import SegmentEditor


def _macro(conditions, actions=(), logic=LogicType.AND):
    macro = Macro("test")
    for condition in conditions:
        condition.logic = logic
        macro.add_condition(condition)
    for action in actions:
        macro.add_action(action)
    return macro


class TestConditionChain:
    def test_and_stops_after_first_false(self, ctx, counting_condition):
        first = counting_condition(True)
        second = counting_condition(False)
        third = counting_condition(True)
        fourth = counting_condition(True)
        macro = _macro([first, second, third, fourth])

        assert macro.evaluate(ctx) is False
        assert [c.calls for c in (first, second, third, fourth)] == [1, 1, 0, 0]

    def test_or_stops_after_first_true(self, ctx, counting_condition):
        first = counting_condition(False)
        second = counting_condition(True)
        third = counting_condition(False)
        macro = _macro([first, second, third], logic=LogicType.OR)

        assert macro.evaluate(ctx) is True
        assert [c.calls for c in (first, second, third)] == [1, 1, 0]

    def test_or_after_failed_and_is_still_evaluated(self, ctx, counting_condition):
        first = counting_condition(False)
        skipped = counting_condition(True)
        rescue = counting_condition(True)
        macro = _macro([first, skipped])
        rescue.logic = LogicType.OR
        macro.add_condition(rescue)

        assert macro.evaluate(ctx) is True
        assert skipped.calls == 0
        assert rescue.calls == 1

    def test_negated_logic(self, ctx, counting_condition):
        first = counting_condition(False)
        first.logic = LogicType.ROOT_NOT
        second = counting_condition(False)
        second.logic = LogicType.AND_NOT
        macro = Macro("negated")
        macro.add_condition(first)
        macro.add_condition(second)

        assert macro.evaluate(ctx) is True

    def test_no_conditions_never_matches(self, ctx):
        assert Macro("empty").evaluate(ctx) is False

    def test_condition_exception_counts_as_no_match(self, ctx, errors, counting_condition):
        class Broken(counting_condition):
            def check_condition(self, run_ctx):
                raise RuntimeError("sensor offline")

        macro = _macro([Broken()])
        assert macro.evaluate(ctx) is False
        assert any("sensor offline" in e for e in errors)

    def test_first_condition_logic_is_normalized(self, counting_condition):
        first = counting_condition()
        first.logic = LogicType.OR_NOT
        second = counting_condition()
        second.logic = LogicType.ROOT_NONE
        macro = Macro("normalize")
        macro.add_condition(first)
        macro.add_condition(second)
        assert first.logic == LogicType.ROOT_NOT
        assert second.logic == LogicType.AND

        macro.remove_condition(0)
        assert second.logic == LogicType.ROOT_NONE


class TestActions:
    def test_actions_run_only_on_rising_edge(self, ctx, counting_condition, recording_action):
        condition = counting_condition(True)
        action = recording_action("a")
        macro = _macro([condition], [action])

        macro.evaluate(ctx)
        macro.evaluate(ctx)
        assert action.runs == 1

        condition.value = False
        assert macro.evaluate(ctx) is False
        assert action.runs == 1

        condition.value = True
        macro.evaluate(ctx)
        assert action.runs == 2

    def test_failing_action_does_not_stop_the_rest(self, ctx, errors, counting_condition, recording_action):
        log = []
        actions = [
            recording_action("first", log),
            recording_action("broken", log, fail=True),
            recording_action("last", log),
        ]
        macro = _macro([counting_condition(True)], actions)

        assert macro.evaluate(ctx) is True
        assert log == ["first", "broken", "last"]
        assert len(errors) == 1
        assert "broken failed" in errors[0]


class TestPaused:
    def test_paused_macro_returns_previous_result_without_side_effects(
        self, ctx, counting_condition, recording_action
    ):
        condition = counting_condition(False)
        action = recording_action()
        macro = _macro([condition], [action])
        macro.last_matched = True
        macro.paused = True

        assert macro.evaluate(ctx) is True
        assert condition.calls == 0
        assert action.runs == 0
        assert macro.last_matched is True


class TestSegments:
    def test_indexes_and_back_reference_follow_moves(self, counting_condition):
        conditions = [counting_condition() for _ in range(3)]
        macro = _macro(conditions)
        macro.move_condition(2, 0)

        assert [c.get_index() for c in macro.conditions] == [0, 1, 2]
        assert macro.conditions[0] is conditions[2]
        assert conditions[0].macro is macro

        removed = macro.remove_condition(1)
        assert removed.macro is None

    def test_remove_action_reindexes(self, recording_action):
        actions = [recording_action(str(i)) for i in range(3)]
        macro = _macro([], actions)

        removed = macro.remove_action(0)

        assert removed is actions[0]
        assert removed.macro is None
        assert [a.get_index() for a in macro.actions] == [0, 1]
        assert macro.actions[0] is actions[1]

    def test_from_dict_skips_unknown_types(self, counting_condition):
        registry = TypeRegistry("condition")
        registry.register("counting", RegistryEntry(counting_condition, SegmentEditor, "counting"))
        reported = []
        data = {
            "name": "loaded",
            "paused": True,
            "conditions": [{"id": "counting", "collapsed": True}, {"id": "gone"}],
            "actions": [{"id": "nope"}],
        }

        macro = Macro.from_dict(data, conditions=registry, actions=TypeRegistry("action"), on_error=reported.append)

        assert macro.name == "loaded"
        assert macro.paused is True
        assert len(macro.conditions) == 1
        assert macro.conditions[0].collapsed is True
        assert macro.actions == []
        assert len(reported) == 2
