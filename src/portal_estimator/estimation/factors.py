"""Estimation adjustment factors.

Factor weights are multipliers applied by the completion walk:
increasing factors scale hours by (1 + weight), decreasing factors by
(1 - weight / 2).
"""
from __future__ import annotations

from portal_estimator.estimation.models import (
    EstimationFactor,
    FactorImpact,
    TicketPriority,
)

QUEUE_DEPTH_THRESHOLD = 5
HIGH_UTILIZATION = 80
LOW_UTILIZATION = 50
HIGH_COMPLEXITY = 0.7
LOW_COMPLEXITY = 0.3


class FactorCalculator:
    """Derives named, weighted adjustment factors for one ticket.

    Rules are independent; the returned order reflects generation order
    (priority, queue, utilization, complexity), not importance.
    """

    def calculate(
        self,
        priority: TicketPriority,
        queue_position: int,
        utilization_percent: float,
        complexity_score: float,
    ) -> list[EstimationFactor]:
        factors: list[EstimationFactor] = []

        factor = self.priority_factor(priority)
        if factor:
            factors.append(factor)

        if queue_position > QUEUE_DEPTH_THRESHOLD:
            ahead = queue_position - 1
            factors.append(
                EstimationFactor(
                    factor="Queue position",
                    impact=FactorImpact.INCREASES,
                    description=f"{ahead} tickets ahead in queue",
                    weight=0.15 * ahead,
                )
            )

        if utilization_percent > HIGH_UTILIZATION:
            factors.append(
                EstimationFactor(
                    factor="High staff utilization",
                    impact=FactorImpact.INCREASES,
                    description=f"Staff currently at {utilization_percent:g}% capacity",
                    weight=0.2,
                )
            )
        elif utilization_percent < LOW_UTILIZATION:
            factors.append(
                EstimationFactor(
                    factor="Available capacity",
                    impact=FactorImpact.DECREASES,
                    description="Staff has bandwidth to work on this soon",
                    weight=0.15,
                )
            )

        if complexity_score > HIGH_COMPLEXITY:
            factors.append(
                EstimationFactor(
                    factor="High complexity",
                    impact=FactorImpact.INCREASES,
                    description="Issue appears to involve multiple systems or requires investigation",
                    weight=complexity_score * 0.3,
                )
            )
        elif complexity_score < LOW_COMPLEXITY:
            factors.append(
                EstimationFactor(
                    factor="Low complexity",
                    impact=FactorImpact.DECREASES,
                    description="Straightforward issue with likely quick resolution",
                    weight=(1 - complexity_score) * 0.2,
                )
            )

        return factors

    @staticmethod
    def priority_factor(priority: TicketPriority) -> EstimationFactor | None:
        if priority == TicketPriority.CRITICAL:
            return EstimationFactor(
                factor="Critical priority",
                impact=FactorImpact.DECREASES,
                description="Will be prioritized and worked on immediately",
                weight=0.3,
            )
        if priority == TicketPriority.LOW:
            return EstimationFactor(
                factor="Low priority",
                impact=FactorImpact.INCREASES,
                description="May be queued behind higher priority work",
                weight=0.2,
            )
        return None
