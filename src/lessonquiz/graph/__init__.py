"""LangGraph workflow and state for opening a quiz step."""

# Note: the workflow is not imported here to prevent circular imports with
# lessonquiz.persistence.reconciler. Import directly as needed:
# from lessonquiz.graph.workflow import compile_workflow, run_load_workflow

from .state import LoadSource, LoadState, create_initial_state

__all__ = [
    "LoadSource",
    "LoadState",
    "create_initial_state",
]
