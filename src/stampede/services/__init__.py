from stampede.services.orchestrator import (
    LoadTestOrchestrator,
    get_orchestrator,
    register_orchestrator,
)

__all__ = [
    "LoadTestOrchestrator",
    "get_orchestrator",
    "register_orchestrator",
]
