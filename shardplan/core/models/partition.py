from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class PartitionRange:
    """
    PartitionRange is a half-open interval [lower, upper) over the shard key.

    Both bounds are key documents as stored by MongoDB (chunk `min`/`max`
    documents or `splitKeys` entries). A bound set to None is unbounded:
    None as lower means minus infinity, None as upper means plus infinity.
    A range with both bounds set to None covers the whole collection.
    """
    lower: Mapping[str, Any] | None = None
    upper: Mapping[str, Any] | None = None

    @property
    def is_unbounded(self) -> bool:
        """Reports whether the range covers the entire key space."""
        return self.lower is None and self.upper is None

    def to_filter(self, key: str) -> dict[str, Any]:
        """
        Build the find() filter selecting the documents of this range.

        The filter is equivalent to `key >= lower AND key < upper`; an
        unbounded side is omitted, so a fully unbounded range yields an
        empty filter that matches every document.
        """
        condition: dict[str, Any] = {}
        if self.lower is not None:
            condition["$gte"] = self.lower[key]
        if self.upper is not None:
            condition["$lt"] = self.upper[key]

        if not condition:
            return {}
        return {key: condition}

    def contains(self, document: Mapping[str, Any], key: str) -> bool:
        """
        Reports whether the document's key value falls in this range.

        Meant for readers of a plan that check a fetched document against
        the partition it was read for, the client-side twin of `to_filter`.
        Values are compared with Python ordering, so both sides must hold
        the same type; MongoDB's cross-type BSON ordering is not emulated.
        """
        value = document[key]
        if self.lower is not None and value < self.lower[key]:
            return False
        if self.upper is not None and value >= self.upper[key]:
            return False
        return True


@dataclass(frozen=True, slots=True)
class Partition:
    """
    Partition is one schedulable unit of a parallel collection read.

    The index identifies the partition inside its plan; indices of a plan
    form the contiguous sequence 0..N-1. preferred_hosts lists "host:port"
    addresses that hold the range locally and is advisory input for
    locality-aware task placement; an empty tuple means no preference.
    """
    index: int
    preferred_hosts: tuple[str, ...] = ()
    range: PartitionRange = field(default_factory=PartitionRange)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "preferred_hosts": list(self.preferred_hosts),
            "range": {
                "lower": self.range.lower,
                "upper": self.range.upper,
            },
        }
