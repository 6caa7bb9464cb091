from pathcraft.core.constants import COMPLEX_PATH_INTERACTIONS, MODERATE_PATH_INTERACTIONS
from pathcraft.core.models import PathAnalysis, StepType, UserPath

INTERACTION_TYPES = {StepType.CLICK, StepType.TYPE, StepType.SELECT, StepType.CHECK}


def analyze_path(path: UserPath) -> PathAnalysis:
    """Summarize the size and shape of a recorded path."""
    unique_elements = len({step.selector for step in path.steps if step.element})
    page_transitions = sum(
        1
        for step in path.steps
        if step.type == StepType.NAVIGATION or any(change.type == "url" for change in step.state_changes)
    )
    network_requests = sum(len(step.network_activity) for step in path.steps)
    interaction_count = sum(1 for step in path.steps if step.type in INTERACTION_TYPES)

    if interaction_count < MODERATE_PATH_INTERACTIONS:
        complexity = "simple"
    elif interaction_count < COMPLEX_PATH_INTERACTIONS:
        complexity = "moderate"
    else:
        complexity = "complex"

    return PathAnalysis(
        complexity=complexity,
        interaction_count=interaction_count,
        unique_elements=unique_elements,
        page_transitions=page_transitions,
        network_requests=network_requests,
        assertions=len(path.assertions),
        estimated_duration=path.duration,
    )
