"""Worker agents: lane-based execution, stuck recovery and ambient routines."""

from dungeonworks.agents.worker import LANE_ORDER, AgentState, Priority, WorkerAgent
from dungeonworks.agents.stuck import StuckMonitor, StuckOutcome
from dungeonworks.agents.ambient import AmbientRoutine

__all__ = [
    # Agent
    "WorkerAgent",
    "AgentState",
    "Priority",
    "LANE_ORDER",
    # Recovery
    "StuckMonitor",
    "StuckOutcome",
    # Ambient
    "AmbientRoutine",
]
