"""Network component for message delivery."""

from __future__ import annotations

from typing import TYPE_CHECKING

from das_sim.core.events import Event

if TYPE_CHECKING:
    from das_sim.core.actor import Message
    from das_sim.core.simulator import Simulator
    from das_sim.core.types import ActorId
    from das_sim.metrics.collector import MetricsCollector


class Network:
    """Transport that delivers messages after a uniform random delay.

    Actors call network.deliver() to send messages. The delay is drawn
    uniformly from [min_delay, max_delay]. With a non-zero drop_rate each
    message is silently lost with that probability; the sender gets no
    feedback either way.
    """

    def __init__(
        self,
        simulator: Simulator,
        metrics: MetricsCollector,
        min_delay: float = 0.0,
        max_delay: float = 0.0,
        drop_rate: float = 0.0,
    ) -> None:
        if min_delay < 0 or max_delay < min_delay:
            raise ValueError(f"Invalid delay range: [{min_delay}, {max_delay}]")
        if not 0.0 <= drop_rate < 1.0:
            raise ValueError(f"drop_rate must be in [0, 1): {drop_rate}")

        self._simulator = simulator
        self._metrics = metrics
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._drop_rate = drop_rate

        # Statistics
        self._messages_delivered: int = 0
        self._messages_dropped: int = 0
        self._total_bytes: int = 0

    def deliver(self, msg: Message, from_: ActorId, to: ActorId) -> None:
        """Schedule message delivery, or drop it."""
        self._metrics.record_bandwidth(from_, to, msg.size_bytes, self._is_control_message(msg))
        self._total_bytes += msg.size_bytes

        if self._drop_rate > 0 and self._simulator.rng.random() < self._drop_rate:
            self._messages_dropped += 1
            return

        self._simulator.schedule(
            Event(
                timestamp=self._simulator.current_time + self._calculate_delay(),
                priority=0,
                target_id=to,
                payload=msg,
            )
        )
        self._messages_delivered += 1

    def _is_control_message(self, msg: Message) -> bool:
        from das_sim.protocol.messages import SampleResponse

        # Data messages carry sample payloads; everything else is overhead
        return not isinstance(msg, SampleResponse)

    def _calculate_delay(self) -> float:
        if self._max_delay == self._min_delay:
            return self._min_delay
        return self._simulator.rng.uniform(self._min_delay, self._max_delay)

    @property
    def messages_delivered(self) -> int:
        return self._messages_delivered

    @property
    def messages_dropped(self) -> int:
        return self._messages_dropped

    @property
    def total_bytes(self) -> int:
        return self._total_bytes
