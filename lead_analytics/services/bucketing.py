"""
Fixed-width time bucketing for the growth series.

This module partitions timestamped records into a fixed number of contiguous,
half-open buckets ending at an anchor instant and labels each bucket in a
single configured timezone.

Bucket Layout (count x width):
    week    -> 7 x 1 day   labelled "M/D"
    month   -> 4 x 7 days  labelled "Week of M/D" (bucket start)
    quarter -> 3 x 30 days labelled with the long month name of the bucket start

Known Approximation:
    "quarter" uses three fixed 30-day buckets rather than calendar months, so
    bucket boundaries drift against month starts and a label can repeat when
    two buckets start in the same month. Historical dashboard numbers depend
    on this layout, so it is kept as is.

Assignment Rule:
    A record belongs to bucket i when range_start_i <= created_at < range_end_i.
    Records outside every bucket are dropped silently; callers should
    pre-filter with `bucket_span` so totals and buckets agree.

Labels are rendered in an explicit timezone (default America/New_York) rather
than the server's local zone, so every instance produces identical labels.
"""

import calendar
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from lead_analytics.core.clock import ensure_utc, get_zone, utc_now
from lead_analytics.models.enums import Granularity
from lead_analytics.models.schemas import Bucket, Record, TimeWindow


DEFAULT_TIMEZONE: str = 'America/New_York'

# (bucket count, bucket width) per granularity
BUCKET_LAYOUT: Dict[Granularity, Tuple[int, timedelta]] = {
    Granularity.WEEK: (7, timedelta(days=1)),
    Granularity.MONTH: (4, timedelta(days=7)),
    Granularity.QUARTER: (3, timedelta(days=30)),
}


def format_bucket_label(
    bucket_start: datetime,
    granularity: Granularity,
    timezone: str = DEFAULT_TIMEZONE,
) -> str:
    """
    Render the display label of a bucket starting at `bucket_start`.

    Example:
        >>> format_bucket_label(datetime(2025, 3, 9, 12, tzinfo=utc), Granularity.MONTH)
        'Week of 3/9'
    """
    local = ensure_utc(bucket_start).astimezone(get_zone(timezone))
    granularity = Granularity(granularity)

    if granularity is Granularity.WEEK:
        return f"{local.month}/{local.day}"
    if granularity is Granularity.MONTH:
        return f"Week of {local.month}/{local.day}"
    return calendar.month_name[local.month]


def generate_buckets(
    granularity: Granularity,
    anchor: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> List[Bucket]:
    """
    Build the empty, labelled buckets for `granularity` ending at `anchor`.

    Buckets are ordered oldest to newest and are contiguous: the range_end
    of bucket i equals the range_start of bucket i + 1, and the last bucket
    ends exactly at `anchor`.
    """
    granularity = Granularity(granularity)
    anchor = ensure_utc(anchor) if anchor is not None else utc_now()
    count, width = BUCKET_LAYOUT[granularity]

    buckets: List[Bucket] = []
    for offset in range(count, 0, -1):
        range_start = anchor - offset * width
        buckets.append(Bucket(
            label=format_bucket_label(range_start, granularity, timezone),
            range_start=range_start,
            range_end=range_start + width,
        ))
    return buckets


def bucket_span(granularity: Granularity, anchor: Optional[datetime] = None) -> TimeWindow:
    """Window covered by the buckets of `granularity` ending at `anchor`."""
    anchor = ensure_utc(anchor) if anchor is not None else utc_now()
    count, width = BUCKET_LAYOUT[Granularity(granularity)]
    return TimeWindow(start=anchor - count * width, end=anchor)


def bucketize(
    records: Iterable[Record],
    granularity: Granularity,
    anchor: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> List[Bucket]:
    """
    Count records (and enriched records) per fixed-width bucket.

    Args:
        records: Records to assign. Not mutated.
        granularity: week, month or quarter; fixes bucket count and width.
        anchor: End of the newest bucket (default: now).
        timezone: IANA timezone used for labels.

    Returns:
        Ordered list of Bucket objects, oldest first.

    Example:
        >>> buckets = bucketize(records, Granularity.WEEK, anchor=now)
        >>> len(buckets)
        7
    """
    buckets = generate_buckets(granularity, anchor, timezone)
    if not buckets:
        return buckets

    first_start = buckets[0].range_start
    last_end = buckets[-1].range_end

    for record in records:
        created_at = record.created_at
        if created_at < first_start or created_at >= last_end:
            continue
        for bucket in buckets:
            if bucket.range_start <= created_at < bucket.range_end:
                bucket.total += 1
                if record.is_enriched:
                    bucket.enriched += 1
                break

    return buckets
