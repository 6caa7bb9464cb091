import json
from typing import Any, Dict, List, Optional, Set, Tuple

from pathcraft.core.constants import TYPE_MERGE_WINDOW_MS
from pathcraft.core.logging import log
from pathcraft.core.models import (
    Assertion,
    AssertionOperator,
    AssertionType,
    InteractionStep,
    StepType,
    UserPath,
)


def is_more_specific(candidate: Assertion, existing: Assertion) -> bool:
    """Decide whether ``candidate`` should replace ``existing`` during deduplication.

    ``equals`` beats ``contains``; otherwise the longer stringified expected
    value wins. Ties keep ``existing``.
    """
    if candidate.operator == AssertionOperator.EQUALS and existing.operator == AssertionOperator.CONTAINS:
        return True
    if candidate.operator == AssertionOperator.CONTAINS and existing.operator == AssertionOperator.EQUALS:
        return False
    return len(_stringify(candidate.expected)) > len(_stringify(existing.expected))


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _frozen(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _is_submit_button(step: InteractionStep, *labels: str) -> bool:
    element = step.element
    if element is None or element.type != "button" or not element.text:
        return False
    text = element.text.lower()
    return any(label in text for label in labels)


class PathOptimizer:
    """
    Reduces a recorded path: collapses redundant steps and duplicate assertions.
    Holds no state, so one instance can be shared freely.
    """

    def optimize(self, path: UserPath) -> UserPath:
        log(
            "Optimizing user path",
            level="debug",
            path_id=path.id,
            original_steps=len(path.steps),
            original_assertions=len(path.assertions),
        )
        steps = self.optimize_steps(path.steps)
        assertions = self.deduplicate_assertions(self.optimize_assertions(path.assertions))
        optimized = path.model_copy(update={"steps": steps, "assertions": assertions})

        log(
            "Path optimization complete",
            path_id=path.id,
            optimized_steps=len(steps),
            optimized_assertions=len(assertions),
            steps_removed=len(path.steps) - len(steps),
            assertions_removed=len(path.assertions) - len(assertions),
        )
        return optimized

    def optimize_steps(self, steps: List[InteractionStep]) -> List[InteractionStep]:
        optimized: List[InteractionStep] = []
        for step in steps:
            candidate = step
            # A drop makes the previous survivor adjacent to the merged step,
            # so keep folding until no rule applies to the new pair.
            while optimized:
                merged = self._combine(optimized[-1], candidate)
                if merged is None:
                    break
                optimized.pop()
                candidate = merged
            optimized.append(candidate)
        return optimized

    def _combine(self, current: InteractionStep, following: InteractionStep) -> Optional[InteractionStep]:
        """Apply the first matching rule to an adjacent pair.

        Returns the replacement for ``following`` when ``current`` is dropped,
        ``None`` when both steps survive.
        """
        if current.type == StepType.WAIT and following.type == StepType.WAIT:
            total = (current.value or 0) + (following.value or 0)
            return following.model_copy(update={"value": total, "action": f"Wait for {total}ms"})

        if current.type == StepType.SCREENSHOT and following.type == StepType.SCREENSHOT:
            return following

        if (
            current.error
            and not following.error
            and current.selector is not None
            and current.selector == following.selector
        ):
            retries = max((current.retries or 0) + 1, following.retries or 0)
            return following.model_copy(update={"retries": retries})

        if (
            current.type == StepType.TYPE
            and following.type == StepType.TYPE
            and current.selector is not None
            and current.selector == following.selector
            and following.timestamp - current.timestamp < TYPE_MERGE_WINDOW_MS
            and not current.error
            and not following.error
        ):
            value = f"{current.value or ''}{following.value or ''}"
            return following.model_copy(update={"value": value, "action": f'Type "{value}"'})

        return None

    def optimize_assertions(self, assertions: List[Assertion]) -> List[Assertion]:
        optimized: List[Assertion] = []
        seen: Set[Tuple[str, str, str, str]] = set()

        for assertion in assertions:
            key = (assertion.type.value, assertion.target, _frozen(assertion.expected), assertion.operator.value)
            if key in seen:
                continue
            # Interacting with an element already implies it was visible
            if assertion.type == AssertionType.VISIBLE and assertion.expected is True:
                continue
            seen.add(key)
            optimized.append(assertion)

        return optimized

    def deduplicate_assertions(self, assertions: List[Assertion]) -> List[Assertion]:
        unique: Dict[Tuple[str, str, str], Assertion] = {}

        for assertion in assertions:
            key = (assertion.type.value, assertion.target, assertion.operator.value)
            existing = unique.get(key)
            if existing is None or is_more_specific(assertion, existing):
                unique[key] = assertion

        return list(unique.values())

    def identify_critical_steps(self, path: UserPath) -> Set[str]:
        """Ids of steps that must survive any later reduction."""
        critical: Set[str] = set()

        for step in path.steps:
            if step.type == StepType.NAVIGATION:
                critical.add(step.id)
            if _is_submit_button(step, "submit", "save"):
                critical.add(step.id)
            if step.state_changes:
                critical.add(step.id)
            selector = step.selector or ""
            if "password" in selector or "login" in selector:
                critical.add(step.id)

        return critical

    def group_steps(self, path: UserPath) -> List[List[InteractionStep]]:
        """Split steps into test-sized groups at navigations and form submissions."""
        groups: List[List[InteractionStep]] = []
        current: List[InteractionStep] = []

        for step in path.steps:
            if step.type == StepType.NAVIGATION and current:
                groups.append(current)
                current = []

            current.append(step)

            if _is_submit_button(step, "submit"):
                groups.append(current)
                current = []

        if current:
            groups.append(current)

        return groups
