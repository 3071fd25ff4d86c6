"""Capacity-aware completion estimation.

Pure, synchronous estimation logic (the classifier and hours estimator
await the injected text estimator). Data access lives in
portal_estimator.services.
"""

from portal_estimator.estimation.availability import (
    BusyHoursLookup,
    CalendarAvailabilityResolver,
    generate_availability_windows,
)
from portal_estimator.estimation.catalog import (
    COMPLEXITY_INDICATORS,
    ESCALATION_TRIGGERS,
    TICKET_CATEGORIES,
    CategoryDefinition,
)
from portal_estimator.estimation.classifier import TicketClassifier, check_escalation
from portal_estimator.estimation.completion import (
    CompletionDateWalker,
    CompletionEstimator,
    HoursEstimator,
    build_client_message,
    build_detailed_breakdown,
    calculate_confidence,
    hours_ahead_in_queue,
)
from portal_estimator.estimation.complexity import score_complexity
from portal_estimator.estimation.factors import FactorCalculator
from portal_estimator.estimation.heuristic import (
    calculate_cost_cents,
    calculate_estimated_hours,
    project_completion,
)
from portal_estimator.estimation.models import (
    AvailabilityWindow,
    CalendarBlock,
    Classification,
    CompletionEstimate,
    Confidence,
    ConfidenceLevel,
    EscalationCheck,
    EstimationFactor,
    EstimationTicket,
    FactorImpact,
    HistoricalTicketData,
    OrgStaffSchedule,
    QueuedTask,
    QueuedTicket,
    StaffSchedule,
    TicketAnalysis,
    TicketEstimate,
    TicketPriority,
    WorkloadAnalysis,
)
from portal_estimator.estimation.workload import WorkloadAnalyzer

__all__ = [
    # Availability
    "BusyHoursLookup",
    "CalendarAvailabilityResolver",
    "generate_availability_windows",
    # Catalog
    "COMPLEXITY_INDICATORS",
    "ESCALATION_TRIGGERS",
    "TICKET_CATEGORIES",
    "CategoryDefinition",
    # Classification
    "TicketClassifier",
    "check_escalation",
    # Completion
    "CompletionDateWalker",
    "CompletionEstimator",
    "HoursEstimator",
    "build_client_message",
    "build_detailed_breakdown",
    "calculate_confidence",
    "hours_ahead_in_queue",
    "score_complexity",
    "FactorCalculator",
    # Heuristic
    "calculate_cost_cents",
    "calculate_estimated_hours",
    "project_completion",
    # Models
    "AvailabilityWindow",
    "CalendarBlock",
    "Classification",
    "CompletionEstimate",
    "Confidence",
    "ConfidenceLevel",
    "EscalationCheck",
    "EstimationFactor",
    "EstimationTicket",
    "FactorImpact",
    "HistoricalTicketData",
    "OrgStaffSchedule",
    "QueuedTask",
    "QueuedTicket",
    "StaffSchedule",
    "TicketAnalysis",
    "TicketEstimate",
    "TicketPriority",
    "WorkloadAnalysis",
    # Workload
    "WorkloadAnalyzer",
]
