"""
Conversion funnel calculation.

Stages are supplied by the caller in domain order (Scraped -> Enriched ->
Contacted -> Responded); the calculator never infers or reorders them.

Rates:
    conversion_rate of stage i is relative to the FIRST stage:
    "what fraction of all top-of-funnel leads reached this stage".
    drop_off of stage i is relative to the PRIOR stage.

A later stage larger than its predecessor yields a negative drop_off. The
value is kept as is and an InconsistentFunnelError is logged as a warning,
since upstream counts may legitimately be approximate.
"""

import logging
from typing import Any, List, Mapping, Sequence, Tuple, Union

from lead_analytics.core.errors import InconsistentFunnelError
from lead_analytics.models.schemas import FunnelStage
from lead_analytics.services.metrics import percentage_of


logger = logging.getLogger(__name__)

StageCount = Union[Tuple[str, int], Mapping[str, Any]]


def _unpack(stage: StageCount) -> Tuple[str, int]:
    if isinstance(stage, Mapping):
        return str(stage["name"]), int(stage["count"])
    name, count = stage
    return str(name), int(count)


def compute_funnel(stage_counts: Sequence[StageCount]) -> List[FunnelStage]:
    """
    Build funnel stages from ordered (name, count) pairs.

    Args:
        stage_counts: Ordered stages as (name, count) tuples or mappings with
            "name" and "count" keys.

    Returns:
        One FunnelStage per input stage. Stage 0 always has
        conversion_rate=100 and drop_off=0.

    Example:
        >>> stages = compute_funnel([("Scraped", 100), ("Enriched", 60)])
        >>> stages[1].conversion_rate, stages[1].drop_off
        (60.0, 40)
    """
    pairs = [_unpack(stage) for stage in stage_counts]
    if not pairs:
        return []

    top_count = pairs[0][1]
    stages: List[FunnelStage] = [
        FunnelStage(name=pairs[0][0], count=top_count, conversion_rate=100.0, drop_off=0)
    ]

    for index in range(1, len(pairs)):
        name, count = pairs[index]
        previous_name, previous_count = pairs[index - 1]

        if count > previous_count:
            signal = InconsistentFunnelError(name, count, previous_name, previous_count)
            logger.warning(str(signal))

        stages.append(FunnelStage(
            name=name,
            count=count,
            conversion_rate=percentage_of(count, top_count),
            drop_off=previous_count - count,
        ))

    return stages


def overall_conversion(stages: Sequence[FunnelStage]) -> float:
    """Last stage over first stage as a rounded percentage; 0 for an empty funnel."""
    if not stages:
        return 0.0
    return percentage_of(stages[-1].count, stages[0].count)
