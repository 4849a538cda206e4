"""Configuration settings using Pydantic Settings.

Provides typed tuning knobs for the scheduler, worker agents and job
behaviors, each overridable from the environment.

Usage:
    from dungeonworks.config import SchedulerSettings, WorkerSettings

    # Load from environment variables (DUNGEONWORKS_SCHEDULER_*, ...)
    scheduler_settings = SchedulerSettings()

    # Or override with explicit values
    scheduler_settings = SchedulerSettings(max_assignments_per_tick=2)
"""

from __future__ import annotations

try:
    from pydantic import Field
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for config module. "
        "Install with: pip install pydantic-settings"
    ) from e


class SchedulerSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the batch job scheduler.

    Attributes:
        interval: Seconds between scheduling runs.
        cache_ttl: Seconds an available-agent cache stays valid.
        max_queue_candidates: Available agents considered per run.
        max_assignments_per_tick: Successful assignments allowed per run.
        probe_candidates: Nearest dig jobs probed for a free slot.
        assignment_cooldown: Seconds after an assignment during which the
            agent is not offered new work.
        moving_speed_threshold: Speed above which an agent with a path counts
            as moving.
        cleanup_every_ticks: Runs between staleness sweeps.
        stale_timeout: Seconds before an untouched tracking entry is dropped.
        orphan_timeout: Seconds an assigned job may go without an executing
            agent before it is released.
        immediate_attempts: Queue passes made by an immediate run.
        log_cooldown: Seconds between repeats of the same rate-limited log.

    Environment Variables:
        DUNGEONWORKS_SCHEDULER_INTERVAL
        DUNGEONWORKS_SCHEDULER_CACHE_TTL
        DUNGEONWORKS_SCHEDULER_MAX_ASSIGNMENTS_PER_TICK
        ...
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEONWORKS_SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    interval: float = Field(default=0.1, ge=0.0)
    cache_ttl: float = Field(default=0.5, ge=0.0)
    max_queue_candidates: int = Field(default=15, ge=1)
    max_assignments_per_tick: int = Field(default=5, ge=1)
    probe_candidates: int = Field(default=3, ge=1)
    assignment_cooldown: float = Field(default=0.5, ge=0.0)
    moving_speed_threshold: float = 0.1
    cleanup_every_ticks: int = Field(default=50, ge=1)
    stale_timeout: float = 10.0
    orphan_timeout: float = 2.0
    immediate_attempts: int = Field(default=5, ge=1)
    log_cooldown: float = 5.0


class WorkerSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for worker agents: arrival, turning and stuck recovery.

    Environment Variables:
        DUNGEONWORKS_WORKER_STOPPING_DISTANCE
        DUNGEONWORKS_WORKER_STUCK_TIME
        ...
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEONWORKS_WORKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    stopping_distance: float = 0.2
    turn_speed: float = 10.0
    """Radians per second."""
    orientation_tolerance_deg: float = 3.0
    surface_sample_distance: float = 2.0

    stuck_time: float = 5.0
    stuck_distance: float = 0.05
    avoidance_radius: float = 1.0
    gentle_push: float = 1.5
    probe_distance: float = 1.2
    probe_clearance: float = 0.5
    teleport_offset: float = 1.2
    teleport_clearance: float = 0.3
    teleport_short_offset: float = 0.8
    gentle_restore_delay: float = 0.2
    teleport_restore_delay: float = 0.5
    max_recovery_attempts: int = 3

    ambient_routine: bool = True


class BehaviorSettings(BaseSettings):  # type: ignore[misc]
    """Timings and distances of the job behaviors.

    Environment Variables:
        DUNGEONWORKS_BEHAVIOR_DIG_FALLBACK_TIME
        DUNGEONWORKS_BEHAVIOR_WANDER_MAX_DISTANCE
        ...
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEONWORKS_BEHAVIOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Dig
    dig_arrival_distance: float = 0.15
    dig_validation_time: float = 0.1
    dig_validation_distance: float = 0.8
    dig_renavigate_distance: float = 0.2
    dig_start_delay: float = 0.05
    dig_trigger_delay: float = 0.05
    dig_baseline_delay: float = 0.05
    dig_restart_delay: float = 0.05
    dig_min_cycle_time: float = 0.15
    dig_fallback_time: float = 2.0
    dig_timer_cycle: float = 2.0
    """Cycle length when no animator is attached."""

    # Conquer
    conquer_tick: float = 0.5
    conquer_arrival_distance: float = 0.5

    # Wander
    wander_min_distance: float = 3.0
    wander_max_distance: float = 10.0
    wander_probability: float = 0.1
    wander_stop_probability: float = 0.3
    wander_arrival_distance: float = 1.5
    wander_stuck_time: float = 3.0
    wander_stuck_distance: float = 0.1
    wander_attempts: int = 20
    wander_on_conquered: bool = True
    behavior_check_interval: float = 1.0
    idle_after_wander_probability: float = 0.7
    min_idle_time: float = 2.0
    max_idle_time: float = 8.0

    # Sleep
    sleep_duration: float = 10.0

    # Combat
    combat_range: float = 2.0
    combat_cooldown: float = 1.0
    combat_damage: float = 10.0
