"""Maps enrollment counts onto workflow nodes and keeps them fresh."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from automation_studio.backend.core.enrollments.models import EnrollmentCounts, NodeEnrollment
from automation_studio.backend.core.enrollments.sources import EnrollmentCountsSource
from automation_studio.backend.core.workflow.models import INTERNAL_DATA_KEYS, FlowEdge, FlowNode, NodeType
from automation_studio.backend.core.workflow.ordering import plan_step_order

logger = logging.getLogger(__name__)


def map_counts_to_nodes(nodes: List[FlowNode], edges: List[FlowEdge], counts: EnrollmentCounts) -> Dict[str, NodeEnrollment]:
    """Attach aggregate counts to the nodes they describe.

    A step node at order ``k`` shows the contacts waiting for it, i.e. those
    whose last completed step is ``k - 1``. A delay shows the same contacts as
    the step it leads into. The trigger shows every active contact.
    """

    plan = plan_step_order(nodes, edges)
    badges: Dict[str, NodeEnrollment] = {}

    if plan.trigger_id is not None:
        badges[plan.trigger_id] = NodeEnrollment(
            node_id=plan.trigger_id,
            count=counts.total_active,
            label=f"{counts.total_active} active",
        )

    for node_id, order in plan.step_orders.items():
        waiting = counts.count_at(order - 1)
        badges[node_id] = NodeEnrollment(node_id=node_id, count=waiting.count, label=f"{waiting.count} waiting", contacts=waiting.contacts)

    for delay_id, target_id in plan.delay_targets.items():
        waiting = counts.count_at(plan.step_orders[target_id] - 1)
        badges[delay_id] = NodeEnrollment(node_id=delay_id, count=waiting.count, label=f"{waiting.count} waiting", contacts=waiting.contacts)

    return badges


def apply_enrollment_badges(nodes: List[FlowNode], badges: Dict[str, NodeEnrollment]) -> None:
    """Write badges into node data, clearing stale ones."""

    for node in nodes:
        data = {key: value for key, value in node.data.items() if key not in INTERNAL_DATA_KEYS}
        badge = badges.get(node.id)
        if badge is not None and (badge.count > 0 or node.type == NodeType.TRIGGER.value):
            data["enrollmentCount"] = badge.count
            data["enrollmentLabel"] = badge.label
            data["enrollmentContacts"] = [contact.model_dump(by_alias=True) for contact in badge.contacts]
        node.data = data


class EnrollmentPoller:
    """Fetches enrollment counts on a fixed interval while an editor is open.

    One request per tick; the next tick is scheduled only after the previous
    fetch finished, so requests never overlap. ``stop`` cancels the task.
    """

    def __init__(
        self,
        source: EnrollmentCountsSource,
        automation_id: str,
        on_update: Callable[[EnrollmentCounts], None],
        interval: float = 30.0,
    ) -> None:
        self.source = source
        self.automation_id = automation_id
        self.on_update = on_update
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> EnrollmentCounts:
        """Fetch once and publish; failures publish empty counts."""

        try:
            counts = await self.source.fetch(self.automation_id)
        except Exception:
            logger.warning("Failed to fetch enrollment counts | automation_id=%s", self.automation_id, exc_info=True)
            counts = EnrollmentCounts()
        self.on_update(counts)
        return counts

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await self.refresh_once()
            await asyncio.sleep(self.interval)


__all__ = ["map_counts_to_nodes", "apply_enrollment_badges", "EnrollmentPoller"]
