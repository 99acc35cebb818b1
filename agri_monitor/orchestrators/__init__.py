"""Acquisition and monitoring orchestration.

Manages the end-to-end flow for a drawn region:
1. Fan-out to the source adapters → fan-in to a FusedResult
2. Write new observations to the store
3. Periodically repeat for monitored regions and report status
"""

from agri_monitor.orchestrators.acquisition import AcquisitionOrchestrator
from agri_monitor.orchestrators.monitoring import (
    FusedState,
    MonitoringLoop,
    MonitoringState,
    MonitoringSubscription,
    SubscriptionNotFoundError,
)

__all__ = [
    "AcquisitionOrchestrator",
    "FusedState",
    "MonitoringLoop",
    "MonitoringState",
    "MonitoringSubscription",
    "SubscriptionNotFoundError",
]
