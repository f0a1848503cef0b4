"""LangGraph workflow that opens a quiz step and restores progress."""

from typing import Literal

from langgraph.graph import END, StateGraph

from .nodes import (
    check_version,
    fetch_attempts,
    fetch_definition,
    init_fresh,
    invalidate,
    restore_attempt,
    restore_local,
)
from .state import LoadState


def route_after_attempts(state: LoadState) -> Literal["check_version", "restore_local"]:
    """
    Use the server attempt when there is one, otherwise the local cache.

    Args:
        state: Current load state

    Returns:
        Next node to execute
    """
    if state.get("attempts"):
        return "check_version"
    return "restore_local"


def route_after_version_check(state: LoadState) -> Literal["restore_attempt", "invalidate"]:
    """Restore the attempt only if it was made against the current definition."""
    return "restore_attempt" if state.get("hash_matches", True) else "invalidate"


def route_after_local(state: LoadState) -> Literal["init_fresh", "end"]:
    """Finish if the local cache produced a session, otherwise start fresh."""
    return "end" if state.get("session") is not None else "init_fresh"


def create_load_workflow() -> StateGraph:
    """
    Create the LangGraph workflow for opening a quiz step.

    The workflow follows this structure:
    1. Fetch definition - Step content, parsed quiz, content hash
    2. Fetch attempts - Server attempts for the step
    3. [Conditional] Version check if an attempt exists, else local cache
    4. [Conditional] Restore the attempt, or invalidate it on a hash mismatch
    5. Local cache - Answers only, no position
    6. [Conditional] Fresh session when nothing could be restored

    Returns:
        StateGraph ready to compile
    """
    workflow = StateGraph(LoadState)

    workflow.add_node("fetch_definition", fetch_definition)
    workflow.add_node("fetch_attempts", fetch_attempts)
    workflow.add_node("check_version", check_version)
    workflow.add_node("restore_attempt", restore_attempt)
    workflow.add_node("invalidate", invalidate)
    workflow.add_node("restore_local", restore_local)
    workflow.add_node("init_fresh", init_fresh)

    workflow.set_entry_point("fetch_definition")
    workflow.add_edge("fetch_definition", "fetch_attempts")

    workflow.add_conditional_edges(
        "fetch_attempts",
        route_after_attempts,
        {
            "check_version": "check_version",
            "restore_local": "restore_local",
        },
    )

    workflow.add_conditional_edges(
        "check_version",
        route_after_version_check,
        {
            "restore_attempt": "restore_attempt",
            "invalidate": "invalidate",  # Stale answers are dropped, never merged
        },
    )

    # Invalidation clears the cache, so the local check then finds nothing
    workflow.add_edge("invalidate", "restore_local")

    workflow.add_conditional_edges(
        "restore_local",
        route_after_local,
        {
            "init_fresh": "init_fresh",
            "end": END,
        },
    )

    workflow.add_edge("restore_attempt", END)
    workflow.add_edge("init_fresh", END)

    return workflow


def compile_workflow():
    """
    Compile the workflow and return it ready for execution.

    Returns:
        Compiled workflow
    """
    workflow = create_load_workflow()
    return workflow.compile()


async def run_load_workflow(initial_state: LoadState) -> LoadState:
    """Run the load workflow to completion and return the final state."""
    return await compile_workflow().ainvoke(initial_state)
