"""Phase library public API.

Provides the election phase enum, schedule computation, and manual
transition rules.
"""

from ballot_api.lib.phase.machine import (
    PHASE_DESCRIPTIONS,
    ElectionPhase,
    PhaseSchedule,
    check_manual_transition,
    compute_scheduled_phase,
    phase_warning,
)

__all__ = [
    "PHASE_DESCRIPTIONS",
    "ElectionPhase",
    "PhaseSchedule",
    "check_manual_transition",
    "compute_scheduled_phase",
    "phase_warning",
]
