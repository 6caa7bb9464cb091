import pytest

from pathcraft.core.models import Assertion, AssertionOperator, StateChange, StepType, UserPath
from pathcraft.recording.optimizer import PathOptimizer, is_more_specific
from conftest import step

optimizer = PathOptimizer()


def test_wait_steps_are_merged():
    steps = [
        step("wait", value=200, timestamp=0),
        step("wait", value=300, timestamp=1),
        step("click", "#a", timestamp=2, element_type="button"),
    ]
    result = optimizer.optimize_steps(steps)

    assert [s.type for s in result] == [StepType.WAIT, StepType.CLICK]
    assert result[0].value == 500
    assert result[1].selector == "#a"


def test_wait_chain_collapses_completely():
    steps = [step("wait", value=100, timestamp=i) for i in range(4)]
    result = optimizer.optimize_steps(steps)
    assert len(result) == 1
    assert result[0].value == 400


def test_type_steps_on_same_field_are_merged():
    steps = [
        step("type", "#x", "foo", timestamp=1000),
        step("type", "#x", "bar", timestamp=1500),
    ]
    result = optimizer.optimize_steps(steps)

    assert len(result) == 1
    assert result[0].value == "foobar"
    assert result[0].selector == "#x"


def test_type_steps_outside_window_are_kept():
    steps = [
        step("type", "#x", "foo", timestamp=1000),
        step("type", "#x", "bar", timestamp=2000),
    ]
    assert len(optimizer.optimize_steps(steps)) == 2


def test_type_steps_on_different_fields_are_kept():
    steps = [
        step("type", "#x", "foo", timestamp=1000),
        step("type", "#y", "bar", timestamp=1100),
    ]
    assert len(optimizer.optimize_steps(steps)) == 2


def test_failed_type_step_is_not_merged_as_text():
    steps = [
        step("type", "#x", "foo", timestamp=1000, error="detached"),
        step("type", "#x", "bar", timestamp=1100),
    ]
    result = optimizer.optimize_steps(steps)

    # The failure is folded as a retry instead
    assert len(result) == 1
    assert result[0].value == "bar"
    assert result[0].retries == 1


def test_consecutive_screenshots_keep_the_last():
    steps = [
        step("screenshot", timestamp=0, screenshot="a.png"),
        step("screenshot", timestamp=1, screenshot="b.png"),
    ]
    result = optimizer.optimize_steps(steps)
    assert [s.screenshot for s in result] == ["b.png"]


def test_error_followed_by_retry_counts_retries():
    steps = [
        step("click", "#go", timestamp=0, element_type="button", error="timeout"),
        step("click", "#go", timestamp=1, element_type="button", error="timeout", retries=1),
        step("click", "#go", timestamp=2, element_type="button"),
    ]
    result = optimizer.optimize_steps(steps)

    assert len(result) == 1
    assert result[0].error is None
    assert result[0].retries == 2


def test_error_on_different_element_is_kept():
    steps = [
        step("click", "#a", timestamp=0, element_type="button", error="timeout"),
        step("click", "#b", timestamp=1, element_type="button"),
    ]
    assert len(optimizer.optimize_steps(steps)) == 2


def test_optimize_steps_does_not_mutate_input():
    steps = [
        step("wait", value=200, timestamp=0),
        step("wait", value=300, timestamp=1),
    ]
    optimizer.optimize_steps(steps)
    assert steps[0].value == 200
    assert steps[1].value == 300


@pytest.mark.parametrize("steps", [
    [step("wait", value=1, timestamp=i) for i in range(3)],
    [
        step("type", "#x", "a", timestamp=0),
        step("wait", value=10, timestamp=10),
        step("wait", value=10, timestamp=20),
        step("type", "#x", "b", timestamp=30),
    ],
    [
        step("click", "#x", timestamp=0, error="boom"),
        step("type", "#x", "a", timestamp=100),
        step("type", "#x", "b", timestamp=200),
        step("screenshot", timestamp=300),
        step("screenshot", timestamp=400),
    ],
])
def test_optimize_steps_is_idempotent(steps):
    once = optimizer.optimize_steps(steps)
    twice = optimizer.optimize_steps(once)
    assert [s.model_dump() for s in twice] == [s.model_dump() for s in once]


def test_optimize_steps_preserves_order():
    steps = [
        step("navigation", value="/a", timestamp=0),
        step("wait", value=10, timestamp=1),
        step("wait", value=10, timestamp=2),
        step("click", "#b", timestamp=3, element_type="button"),
        step("type", "#c", "x", timestamp=4),
    ]
    result = optimizer.optimize_steps(steps)
    assert [s.id for s in result] == [steps[0].id, steps[2].id, steps[3].id, steps[4].id]


def test_optimize_assertions_drops_repeats_and_visibility():
    a = Assertion(type="value", target="#x", expected="foo")
    repeat = Assertion(type="value", target="#x", expected="foo")
    visible = Assertion(type="visible", target="h1", expected=True)
    hidden = Assertion(type="visible", target=".spinner", expected=False)

    result = optimizer.optimize_assertions([a, repeat, visible, hidden])
    assert result == [a, hidden]


def test_deduplicate_keys_include_operator():
    contains = Assertion(type="url", target="page", expected="https://example.com/dashboard/home", operator="contains")
    equals = Assertion(type="url", target="page", expected="/x", operator="equals")
    other = Assertion(type="url", target="page", expected="/y", operator="contains")

    result = optimizer.deduplicate_assertions([contains, equals, other])
    assert result == [contains, equals]


def test_deduplicate_keeps_longer_expected():
    short = Assertion(type="text", target="h1", expected="Hi")
    longer = Assertion(type="text", target="h1", expected="Hi there")
    result = optimizer.deduplicate_assertions([short, longer])
    assert result == [longer]


def test_deduplicate_tie_keeps_first():
    first = Assertion(type="text", target="h1", expected="abc")
    second = Assertion(type="text", target="h1", expected="xyz")
    assert optimizer.deduplicate_assertions([first, second]) == [first]


def test_deduplicate_has_at_most_one_per_key():
    assertions = [
        Assertion(type="value", target="#x", expected=str(i) * i, operator="equals")
        for i in range(1, 5)
    ]
    result = optimizer.deduplicate_assertions(assertions)
    keys = [(a.type, a.target, a.operator) for a in result]
    assert len(keys) == len(set(keys)) == 1
    assert result[0].expected == "4444"


def test_is_more_specific_policy():
    equals = Assertion(type="title", target="page", expected="A", operator=AssertionOperator.EQUALS)
    contains = Assertion(type="title", target="page", expected="Longer", operator=AssertionOperator.CONTAINS)
    assert is_more_specific(equals, contains)
    assert not is_more_specific(contains, equals)


def test_password_step_is_critical():
    path = UserPath(steps=[
        step("click", "#banner", timestamp=0, element_type="div"),
        step("type", "#login-password", "secret", timestamp=1),
    ])
    critical = optimizer.identify_critical_steps(path)
    assert path.steps[1].id in critical
    assert path.steps[0].id not in critical


def test_critical_steps_cover_navigation_submit_and_state_changes():
    save = step("click", "#save", timestamp=2, element_type="button", text="Save changes")
    changed = step("click", "#tab", timestamp=3, element_type="link")
    changed = changed.model_copy(update={"state_changes": [StateChange(type="url", before="/a", after="/b")]})
    path = UserPath(steps=[
        step("navigation", value="/home", timestamp=0),
        step("click", "#plain", timestamp=1, element_type="button", text="Next"),
        save,
        changed,
    ])

    critical = optimizer.identify_critical_steps(path)
    assert critical == {path.steps[0].id, save.id, changed.id}


def test_group_steps_splits_on_navigation_and_submit():
    steps = [
        step("navigation", value="/login", timestamp=0),
        step("type", "#user", "bob", timestamp=1),
        step("click", "#submit", timestamp=2, element_type="button", text="Submit"),
        step("click", "#menu", timestamp=3, element_type="link"),
        step("navigation", value="/settings", timestamp=4),
        step("check", "#opt", True, timestamp=5, element_type="checkbox"),
    ]
    groups = optimizer.group_steps(UserPath(steps=steps))

    assert [[s.id for s in g] for g in groups] == [
        [steps[0].id, steps[1].id, steps[2].id],
        [steps[3].id],
        [steps[4].id, steps[5].id],
    ]
    assert [s for g in groups for s in g] == steps


def test_group_steps_leading_navigation_does_not_create_empty_group():
    steps = [step("navigation", value="/", timestamp=0)]
    assert optimizer.group_steps(UserPath(steps=steps)) == [steps]


def test_optimize_returns_new_path():
    path = UserPath(
        name="Checkout",
        steps=[step("wait", value=100, timestamp=0), step("wait", value=100, timestamp=1)],
        assertions=[
            Assertion(type="visible", target="h1", expected=True),
            Assertion(type="value", target="#q", expected="shoes"),
        ],
    )
    optimized = optimizer.optimize(path)

    assert optimized is not path
    assert optimized.name == "Checkout"
    assert len(optimized.steps) == 1
    assert [a.type.value for a in optimized.assertions] == ["value"]
    assert len(path.steps) == 2
    assert len(path.assertions) == 2
