"""
Overlap clustering and proportional layout for one day of timed items.

Any entity reducible to (id, start, end) can be laid out: calendar items,
assignment time slots and the like. Items that overlap in time
(directly or through a chain of overlaps) share a cluster; each cluster splits
the horizontal space between its members.

Usage:
    from apps.scheduling.layout import TimedItem, layout

    positions = layout([
        TimedItem("a", "08:00", "14:00"),
        TimedItem("b", "12:00", "16:00"),
    ])
    positions["b"].left   # 50.0

Guarantees:
  - Output is deterministic for a fixed input order.
  - Within a cluster, member boxes never overlap and stay inside [0, 100].
  - An item that overlaps nothing gets the full width, whatever else is on
    the same day.
"""

from dataclasses import dataclass
from typing import Hashable, Iterable, Optional

from apps.scheduling.timeutils import TimeLike, ranges_overlap, to_minutes

# Padding is given in pixels; percentages assume a 1000px wide column.
PIXELS_PER_PERCENT = 10


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimedItem:
    """A time-ranged item on one day."""

    id: Hashable
    start_time: TimeLike
    end_time: TimeLike

    @property
    def start(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end(self) -> int:
        return to_minutes(self.end_time)

    @property
    def has_duration(self) -> bool:
        return self.end > self.start


@dataclass(frozen=True)
class LayoutPosition:
    """Horizontal placement of an item, in percent of the column width."""

    left: float
    width: float
    cluster: int = 0
    index: int = 0

    @property
    def right(self) -> float:
        return self.left + self.width

    def as_css(self) -> dict:
        return {"left": f"{self.left:.4g}%", "width": f"{self.width:.4g}%"}


# ---------------------------------------------------------------------------
# IntervalOverlapGrouper
# ---------------------------------------------------------------------------


def group_overlaps(items: Iterable[TimedItem]) -> list[list[TimedItem]]:
    """
    Partition items into overlap clusters.

    A single pass in input order: each item is tested against every member of
    every open cluster and joins the first cluster it touches. If it also
    touches later clusters it bridges them, and they are merged into the first,
    so clusters are exactly the connected groups of the overlap relation.
    Members keep input order. Zero-length items are dropped.

    Args:
        items: Timed items for one day, in display order.

    Returns:
        List of clusters, each a list of TimedItem.
    """
    clusters: list[list[tuple[int, TimedItem]]] = []

    for order, item in enumerate(items):
        if not item.has_duration:
            continue
        start, end = item.start, item.end

        touching = [
            idx for idx, cluster in enumerate(clusters)
            if any(ranges_overlap(start, end, m.start, m.end) for _, m in cluster)
        ]

        if not touching:
            clusters.append([(order, item)])
            continue

        target = clusters[touching[0]]
        target.append((order, item))
        for idx in reversed(touching[1:]):
            target.extend(clusters.pop(idx))
        target.sort(key=lambda pair: pair[0])

    return [[item for _, item in cluster] for cluster in clusters]


# ---------------------------------------------------------------------------
# ProportionalLayoutEngine
# ---------------------------------------------------------------------------


def gap_percent(padding_px: float) -> float:
    """Horizontal space between two neighbouring boxes, in percent."""
    return max(0.0, padding_px) * 2 / PIXELS_PER_PERCENT


def layout_cluster(cluster: list[TimedItem], padding_px: float = 0, cluster_index: int = 0) -> dict:
    """
    Place the members of one cluster side by side.

    Available width is 100% minus one gap between each pair of neighbours and
    is shared evenly.
    """
    n = len(cluster)
    if n == 0:
        return {}

    gap = gap_percent(padding_px) if n > 1 else 0.0
    available = max(0.0, 100.0 - gap * (n - 1))
    width = available / n

    positions = {}
    left = 0.0
    for index, item in enumerate(cluster):
        positions[item.id] = LayoutPosition(left=left, width=width, cluster=cluster_index, index=index)
        left += width + gap
    return positions


def layout(items: Iterable[TimedItem], padding_px: Optional[float] = None) -> dict:
    """
    Compute {left, width} for every item with a duration.

    Args:
        items: Timed items for one day, in display order.
        padding_px: Space between neighbouring boxes; defaults to
                    SHIFTDESK["LAYOUT_PADDING_PX"].

    Returns:
        Dict mapping item id to LayoutPosition. Zero-length items are absent.
    """
    if padding_px is None:
        from django.conf import settings

        padding_px = settings.SHIFTDESK["LAYOUT_PADDING_PX"]

    positions = {}
    for cluster_index, cluster in enumerate(group_overlaps(items)):
        positions.update(layout_cluster(cluster, padding_px, cluster_index))
    return positions


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


def assignment_items(assignment) -> list[TimedItem]:
    """One item per time slot; an assignment without slots spans its shift."""
    slots = assignment.time_slots or [
        {"start_time": assignment.shift.open_time, "end_time": assignment.shift.close_time}
    ]
    return [
        TimedItem(f"assignment-{assignment.pk}-{i}", slot["start_time"], slot["end_time"])
        for i, slot in enumerate(slots)
    ]
