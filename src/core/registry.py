"""Flow registry with bounded retention (core domain)."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
import logging
from typing import Iterable, Optional

from core.classifier import DEFAULT_NOISE_MARKERS, classify, service_name
from core.models import Accepted, Classification, Flow, LogRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_FLOWS = 200


@dataclass(frozen=True)
class InsertResult:
    """What a single insert did to the registry."""

    classification: Classification
    flow: Optional[Flow] = None
    created: bool = False
    evicted: list[Flow] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return isinstance(self.classification, Accepted)


class FlowRegistry:
    """Owns every tracked flow.

    Flows are stored in creation order, which is what eviction uses. Display
    order is id-descending and is computed by ``list_flows`` on read, so an
    out-of-order id never forces a re-sort on insert.
    """

    def __init__(
        self,
        max_flows: int = DEFAULT_MAX_FLOWS,
        noise_markers: Iterable[str] = DEFAULT_NOISE_MARKERS,
    ) -> None:
        if max_flows < 1:
            raise ValueError(f"max_flows must be at least 1, got {max_flows}")
        self._max_flows = max_flows
        self._noise_markers = tuple(noise_markers)
        self._flows: OrderedDict[str, Flow] = OrderedDict()

    @property
    def max_flows(self) -> int:
        return self._max_flows

    def __len__(self) -> int:
        return len(self._flows)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._flows

    def insert(self, record: LogRecord) -> InsertResult:
        """Classify a record and file it under its flow.

        Unclassifiable records are dropped without touching any flow.
        """

        classification = classify(record, self._noise_markers)
        if not isinstance(classification, Accepted):
            return InsertResult(classification)

        flow = self._flows.get(classification.flow_id)
        if flow is not None:
            flow.entries.append(classification.record)
            return InsertResult(classification, flow=flow)

        flow = Flow(
            id=classification.flow_id,
            service=service_name(record.name or ""),
            entries=[classification.record],
        )
        self._flows[flow.id] = flow
        return InsertResult(classification, flow=flow, created=True, evicted=self._evict())

    def get_flow(self, flow_id: str) -> Optional[Flow]:
        return self._flows.get(flow_id)

    def list_flows(self) -> list[Flow]:
        """Return flows newest id first."""

        return sorted(self._flows.values(), key=lambda flow: flow.id, reverse=True)

    def set_max_flows(self, max_flows: int) -> list[Flow]:
        """Change the retention cap, evicting immediately if it shrank."""

        if max_flows < 1:
            raise ValueError(f"max_flows must be at least 1, got {max_flows}")
        self._max_flows = max_flows
        return self._evict()

    def reset(self) -> None:
        self._flows.clear()

    def _evict(self) -> list[Flow]:
        evicted: list[Flow] = []
        while len(self._flows) > self._max_flows:
            _, oldest = self._flows.popitem(last=False)
            evicted.append(oldest)
        if evicted:
            LOGGER.debug("Evicted %s flow(s), oldest %s", len(evicted), evicted[0].id)
        return evicted
