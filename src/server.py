"""Structured Thinking MCP Server.

FastMCP 2.0 implementation exposing the thought lifecycle engine as tools.
The calling LLM does all reasoning; these tools record thoughts, tag them
with reasoning patterns, score their quality and summarize the process.

Tools:
1. capture_thought - Store a thought in memory and history
2. apply_reasoning - Tag a stored thought with its reasoning pattern
3. evaluate_thought_quality - Quality metrics and improvement suggestions
4. retrieve_relevant_thoughts - Long-term thoughts sharing tags
5. branch_thought - Create a branch from a stored thought
6. composed_think / sequential_thinking - Full pipeline in one call
7. get_thinking_summary - Summary by stage, branch and timeline
8. clear_thinking_history - Drop all thoughts of a session
9. status - Server and session status

Run with: structured-thinking
Or: python -m src.server
"""

# Note: We intentionally do NOT use `from __future__ import annotations` here
# because it causes issues with Pydantic/FastMCP type resolution at decorator time.

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

from dotenv import load_dotenv
from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
from loguru import logger

from src.config import get_config
from src.tools.thinking_session import ThinkingSession, get_session_manager
from src.utils.errors import SessionNotFoundError, ToolExecutionError
from src.utils.logging import LogContext, configure_logging
from src.utils.schema import is_success, safe_json_serialize, success_envelope

# Load environment variables from .env file (for local development)
load_dotenv()

config = get_config()


# =============================================================================
# Automatic Session Cleanup
# =============================================================================

_cleanup_task: asyncio.Task[None] | None = None


async def _cleanup_stale_sessions() -> None:
    """Background task to drop idle non-default sessions."""
    max_age = timedelta(minutes=config.session.max_age_minutes)
    interval = config.session.cleanup_interval_seconds
    default_id = config.session.default_session_id
    logger.info(
        f"Session cleanup task started (max_age={config.session.max_age_minutes}m, "
        f"interval={interval}s)"
    )

    while True:
        try:
            await asyncio.sleep(interval)
            removed = get_session_manager().cleanup_stale(
                max_age, predicate=lambda s: s.session_id != default_id
            )
            if removed:
                logger.info(f"Cleaned up {len(removed)} stale sessions: {removed}")
        except asyncio.CancelledError:
            logger.info("Session cleanup task cancelled")
            break
        except Exception as e:
            logger.error(f"Error in cleanup task: {e}")


def _start_cleanup_task() -> None:
    """Start the background cleanup task if not already running."""
    global _cleanup_task
    if not config.session.cleanup_enabled:
        return
    if _cleanup_task is None or _cleanup_task.done():
        _cleanup_task = asyncio.get_running_loop().create_task(_cleanup_stale_sessions())
        logger.debug("Cleanup task scheduled")


def _stop_cleanup_task() -> None:
    """Stop the background cleanup task."""
    global _cleanup_task
    if _cleanup_task is not None and not _cleanup_task.done():
        _cleanup_task.cancel()
        logger.debug("Cleanup task stopped")
    _cleanup_task = None


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Run the session cleanup task for the lifetime of the server."""
    _start_cleanup_task()
    try:
        yield
    finally:
        _stop_cleanup_task()


# =============================================================================
# Initialize FastMCP Server
# =============================================================================

TOOL_NAMES = [
    "capture_thought",
    "apply_reasoning",
    "evaluate_thought_quality",
    "retrieve_relevant_thoughts",
    "branch_thought",
    "composed_think",
    "sequential_thinking",
    "get_thinking_summary",
    "clear_thinking_history",
    "status",
]

mcp = FastMCP(
    name=config.server.name,
    lifespan=_lifespan,
    instructions="""Structured Thinking MCP Server - Thought lifecycle state manager.

ARCHITECTURE: You (the LLM) do ALL reasoning. These tools RECORD, TAG, SCORE and SUMMARIZE.

Stages: Problem Definition, Plan, Research, Analysis, Ideation, Synthesis,
Evaluation, Refinement, Implementation, Conclusion (label or PROBLEM_DEFINITION style).

TOOLS:
1. capture_thought(thought, thought_number, total_thoughts, next_thought_needed, stage, ...)
2. apply_reasoning(thought_id, reasoning_type?) - Tags thought with its reasoning pattern
3. evaluate_thought_quality(thought_id) - Six quality metrics + suggestions
4. retrieve_relevant_thoughts(thought_id) - High-scoring thoughts sharing tags
5. branch_thought(parent_thought_id, branch_id) - Start an alternative branch
6. composed_think(...) - Capture + reason + evaluate + retrieve in one call
7. get_thinking_summary() - Stages, branches, revisions, timeline
8. clear_thinking_history() - Start over

WORKFLOW:
1. composed_think(thought="Define the problem...", thought_number=1, total_thoughts=5,
                  next_thought_needed=true, stage="Problem Definition", score=0.8)
2. composed_think(... thought_number=2, stage="Analysis" ...)
3. get_thinking_summary()

Thoughts scoring 0.7 or more enter long-term memory and become retrievable by tag.
All tools accept an optional session_id to keep independent sequences apart.
""",
)


# =============================================================================
# Tool Dispatch
# =============================================================================


def _fail(envelope: dict[str, Any]) -> ToolError:
    """Wrap a failure envelope so MCP clients receive it with isError set."""
    return ToolError(safe_json_serialize(envelope, indent=False))


async def _run_tool(
    tool_name: str,
    session_id: str | None,
    operation: Callable[[ThinkingSession], dict[str, Any]],
    ctx: Context | None = None,
) -> str:
    """Run an operation on a session and serialize its envelope.

    Expected failures come back as failure envelopes from the session.
    Anything else is wrapped in a ToolExecutionError envelope and logged.
    Either kind of failure is raised as a ToolError carrying the envelope.
    """
    sid = session_id or config.session.default_session_id
    with LogContext(session_id=sid, tool_name=tool_name):
        try:
            with get_session_manager().use(sid) as session:
                result = operation(session)
        except Exception as e:
            error = ToolExecutionError(tool_name, str(e), {"type": type(e).__name__})
            logger.error(f"{tool_name} failed: {e}")
            if ctx:
                await ctx.error(error.to_mcp_error())
            raise _fail(error.to_dict()) from e

        if not is_success(result):
            if ctx:
                await ctx.warning(f"{tool_name}: {result.get('error')}")
            raise _fail(result)

        return safe_json_serialize(result)


def _thought_input(
    thought: str,
    thought_number: int,
    total_thoughts: int,
    next_thought_needed: bool,
    stage: str,
    is_revision: bool | None,
    revises_thought: int | None,
    branch_from_thought: int | None,
    branch_id: str | None,
    needs_more_thoughts: bool | None,
    score: float | None,
    tags: list[str] | None,
) -> dict[str, Any]:
    """Collect flat tool arguments into a thought input record."""
    return {
        "thought": thought,
        "thought_number": thought_number,
        "total_thoughts": total_thoughts,
        "next_thought_needed": next_thought_needed,
        "stage": stage,
        "is_revision": is_revision,
        "revises_thought": revises_thought,
        "branch_from_thought": branch_from_thought,
        "branch_id": branch_id,
        "needs_more_thoughts": needs_more_thoughts,
        "score": score,
        "tags": tags or [],
    }


# =============================================================================
# TOOL 1: CAPTURE THOUGHT
# =============================================================================


@mcp.tool
async def capture_thought(
    thought: str,
    thought_number: int,
    total_thoughts: int,
    next_thought_needed: bool,
    stage: str,
    is_revision: bool | None = None,
    revises_thought: int | None = None,
    branch_from_thought: int | None = None,
    branch_id: str | None = None,
    needs_more_thoughts: bool | None = None,
    score: float | None = None,
    tags: list[str] | None = None,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Store a new thought in memory and in the thought history.

    Args:
        thought: The content of the current thought
        thought_number: Current position in the sequence (1-based)
        total_thoughts: Expected total number of thoughts
        next_thought_needed: Whether another thought should follow
        stage: Current thinking stage (e.g., 'Problem Definition', 'Analysis')
        is_revision: Whether this revises a previous thought
        revises_thought: Number of the thought being revised
        branch_from_thought: Starting point for a new thought branch
        branch_id: Identifier for the current branch
        needs_more_thoughts: Whether additional thoughts are needed
        score: Quality score (0.0 to 1.0)
        tags: Categories or labels for the thought
        session_id: Optional session to record into

    Returns:
        JSON with thoughtCaptured (thoughtNumber, stage, timestamp, branch)

    """
    raw = _thought_input(
        thought,
        thought_number,
        total_thoughts,
        next_thought_needed,
        stage,
        is_revision,
        revises_thought,
        branch_from_thought,
        branch_id,
        needs_more_thoughts,
        score,
        tags,
    )
    return await _run_tool("capture_thought", session_id, lambda s: s.capture_thought(raw), ctx)


# =============================================================================
# TOOL 2: APPLY REASONING
# =============================================================================


@mcp.tool
async def apply_reasoning(
    thought_id: int,
    reasoning_type: str | None = None,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Apply a reasoning strategy to a thought in memory.

    The thought is tagged with the pattern its stage maps to:
    Analysis/Evaluation -> deductive, Ideation -> creative,
    Synthesis -> inductive, others -> deductive.

    Args:
        thought_id: The ID (thought number) of the thought to analyze
        reasoning_type: Optional reasoning type label to report
        session_id: Optional session

    Returns:
        JSON with reasoningApplied (thoughtNumber, pattern, tags)

    """
    return await _run_tool(
        "apply_reasoning",
        session_id,
        lambda s: s.apply_reasoning(thought_id, reasoning_type),
        ctx,
    )


# =============================================================================
# TOOL 3: EVALUATE THOUGHT QUALITY
# =============================================================================


@mcp.tool
async def evaluate_thought_quality(
    thought_id: int,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Run a metacognitive quality check on the specified thought.

    Args:
        thought_id: The ID (thought number) of the thought to evaluate
        session_id: Optional session

    Returns:
        JSON with evaluation (qualityMetrics, suggestedImprovements)

    """
    return await _run_tool(
        "evaluate_thought_quality",
        session_id,
        lambda s: s.evaluate_thought_quality(thought_id),
        ctx,
    )


# =============================================================================
# TOOL 4: RETRIEVE RELEVANT THOUGHTS
# =============================================================================


@mcp.tool
async def retrieve_relevant_thoughts(
    thought_id: int,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Find thoughts in long-term storage that share tags with the specified thought.

    Args:
        thought_id: The ID of the thought to find related thoughts for
        session_id: Optional session

    Returns:
        JSON with retrieval (relatedThoughtsCount, relatedThoughts)

    """
    return await _run_tool(
        "retrieve_relevant_thoughts",
        session_id,
        lambda s: s.retrieve_relevant_thoughts(thought_id),
        ctx,
    )


# =============================================================================
# TOOL 5: BRANCH THOUGHT
# =============================================================================


@mcp.tool
async def branch_thought(
    parent_thought_id: int,
    branch_id: str,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Create a branch from a parent thought.

    A new branch becomes the active branch. Calling again with the same
    branch_id leaves the branch untouched.

    Args:
        parent_thought_id: The ID of the parent thought to branch from
        branch_id: Identifier for the new branch
        session_id: Optional session

    Returns:
        JSON with branching (parentThoughtNumber, branchId, isActive, created)

    """
    return await _run_tool(
        "branch_thought",
        session_id,
        lambda s: s.branch_thought(parent_thought_id, branch_id),
        ctx,
    )


# =============================================================================
# TOOL 6: COMPOSED THINK
# =============================================================================


@mcp.tool
async def composed_think(
    thought: str,
    thought_number: int,
    total_thoughts: int,
    next_thought_needed: bool,
    stage: str,
    is_revision: bool | None = None,
    revises_thought: int | None = None,
    branch_from_thought: int | None = None,
    branch_id: str | None = None,
    needs_more_thoughts: bool | None = None,
    score: float | None = None,
    tags: list[str] | None = None,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Capture, reason about, evaluate and relate a thought in one call.

    Arguments are the same as capture_thought.

    Returns:
        JSON with thoughtAnalysis (currentThought, analysis, context)

    """
    raw = _thought_input(
        thought,
        thought_number,
        total_thoughts,
        next_thought_needed,
        stage,
        is_revision,
        revises_thought,
        branch_from_thought,
        branch_id,
        needs_more_thoughts,
        score,
        tags,
    )
    return await _run_tool("composed_think", session_id, lambda s: s.composed_think(raw), ctx)


@mcp.tool
async def sequential_thinking(
    thought: str,
    thought_number: int,
    total_thoughts: int,
    next_thought_needed: bool,
    stage: str,
    is_revision: bool | None = None,
    revises_thought: int | None = None,
    branch_from_thought: int | None = None,
    branch_id: str | None = None,
    needs_more_thoughts: bool | None = None,
    score: float | None = None,
    tags: list[str] | None = None,
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Process a thought through the full pipeline (alias of composed_think).

    Returns:
        JSON with thoughtAnalysis (currentThought, analysis, context)

    """
    raw = _thought_input(
        thought,
        thought_number,
        total_thoughts,
        next_thought_needed,
        stage,
        is_revision,
        revises_thought,
        branch_from_thought,
        branch_id,
        needs_more_thoughts,
        score,
        tags,
    )
    return await _run_tool(
        "sequential_thinking", session_id, lambda s: s.composed_think(raw), ctx
    )


# =============================================================================
# TOOL 7-8: SUMMARY AND CLEAR
# =============================================================================


@mcp.tool
async def get_thinking_summary(
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Generate a summary of the entire thinking process.

    Returns:
        JSON with summary (totalThoughts, stages, branches, revisions, timeline)

    """
    return await _run_tool(
        "get_thinking_summary", session_id, lambda s: s.generate_summary(), ctx
    )


@mcp.tool
async def clear_thinking_history(
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Clear all recorded thoughts, branches and memory for the session.

    Returns:
        JSON with status and message

    """
    return await _run_tool(
        "clear_thinking_history", session_id, lambda s: s.clear_history(), ctx
    )


# =============================================================================
# TOOL 9: STATUS
# =============================================================================


@mcp.tool
async def status(
    session_id: str | None = None,
    ctx: Context | None = None,
) -> str:
    """Get server status or specific session status.

    Args:
        session_id: Optional session ID to get specific session status

    Returns:
        JSON with server info and sessions, or a specific session's state

    """
    manager = get_session_manager()
    if session_id:
        try:
            with manager.session(session_id) as session:
                return safe_json_serialize(success_envelope(session=session.status()))
        except SessionNotFoundError as e:
            raise _fail(e.to_envelope()) from e

    try:
        payload = success_envelope(
            server={
                "name": config.server.name,
                "transport": config.server.transport,
                "tools": TOOL_NAMES,
                "activeSessions": manager.session_count(),
            },
            config=config.to_dict(),
            sessions=manager.list_sessions(),
        )
    except Exception as e:
        error = ToolExecutionError("status", str(e))
        logger.error(f"Status failed: {e}")
        raise _fail(error.to_dict()) from e

    return safe_json_serialize(payload)


# =============================================================================
# SERVER ENTRY POINT
# =============================================================================


def main() -> None:
    """Run the Structured Thinking MCP server."""
    log_settings = configure_logging()
    logger.info(
        f"Starting {config.server.name} (transport: {config.server.transport}, "
        f"log_level={log_settings.level.value}, log_format={log_settings.log_format.value})"
    )

    transport = config.server.transport
    if transport == "stdio":
        mcp.run(transport="stdio")
    elif transport in ("http", "streamable-http"):
        mcp.run(transport="streamable-http", host=config.server.host, port=config.server.port)
    elif transport == "sse":
        mcp.run(transport="sse", host=config.server.host, port=config.server.port)
    else:
        logger.warning(f"Unknown transport '{transport}', falling back to stdio")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
