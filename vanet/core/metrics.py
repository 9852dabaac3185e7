"""
metrics.py — Delivery / loss / learning metrics
================================================
Pure aggregation: the simulator reports events, this turns counts and sums
into ratios.  One collector per simulation run.
"""

from dataclasses import dataclass, field
from typing import Optional

from .nodes import MessageType


@dataclass
class TypeCounters:
    sent: int = 0
    delivered: int = 0
    dropped: int = 0
    latency_ms: int = 0


@dataclass
class MetricsCollector:
    per_type: dict[MessageType, TypeCounters] = field(
        default_factory=lambda: {t: TypeCounters() for t in MessageType}
    )
    bytes_transmitted: int = 0
    total_hops: int = 0
    packets_attempted: int = 0
    congestion_losses: int = 0
    environment_losses: int = 0
    path_breaks: int = 0
    route_recomputations: int = 0
    model_updates: int = 0
    initial_link_quality: Optional[float] = None
    current_link_quality: float = 0.0
    current_time_ms: int = 0

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_message_sent(self, message_type: MessageType, size: int) -> None:
        self.per_type[MessageType(message_type)].sent += 1
        self.bytes_transmitted += size

    def record_message_delivered(self, message_type: MessageType, sent_time: int,
                                 delivery_time: int, hops: int, size: int) -> None:
        counters = self.per_type[MessageType(message_type)]
        counters.delivered += 1
        counters.latency_ms += delivery_time - sent_time
        self.total_hops += hops

    def record_message_dropped(self, message_type: MessageType) -> None:
        """A message left the queue without being delivered."""
        self.per_type[MessageType(message_type)].dropped += 1

    def record_congestion_loss(self, message_type: MessageType, size: int) -> None:
        self.congestion_losses += 1

    def record_environment_loss(self, message_type: MessageType, size: int) -> None:
        self.environment_losses += 1

    def record_packet_attempt(self) -> None:
        self.packets_attempted += 1

    def record_path_break(self) -> None:
        self.path_breaks += 1

    def record_route_recomputation(self) -> None:
        self.route_recomputations += 1

    def record_link_quality(self, avg_quality: float) -> None:
        # first non-zero reading is the baseline for improvement
        if self.initial_link_quality is None and avg_quality > 0:
            self.initial_link_quality = avg_quality
        self.current_link_quality = avg_quality

    def record_model_update(self) -> None:
        self.model_updates += 1

    def update_time(self, time_ms: int) -> None:
        self.current_time_ms = time_ms

    # ------------------------------------------------------------------
    # Ratios
    # ------------------------------------------------------------------

    @property
    def total_sent(self) -> int:
        return sum(c.sent for c in self.per_type.values())

    @property
    def total_delivered(self) -> int:
        return sum(c.delivered for c in self.per_type.values())

    @property
    def total_dropped(self) -> int:
        return sum(c.dropped for c in self.per_type.values())

    def delivery_ratio(self, message_type: Optional[MessageType] = None) -> float:
        if message_type is None:
            sent, delivered = self.total_sent, self.total_delivered
        else:
            c = self.per_type[MessageType(message_type)]
            sent, delivered = c.sent, c.delivered
        return delivered / sent if sent else 0.0

    def average_latency(self, message_type: Optional[MessageType] = None) -> float:
        if message_type is None:
            delivered = self.total_delivered
            latency = sum(c.latency_ms for c in self.per_type.values())
        else:
            c = self.per_type[MessageType(message_type)]
            delivered, latency = c.delivered, c.latency_ms
        return latency / delivered if delivered else 0.0

    @property
    def average_hop_count(self) -> float:
        delivered = self.total_delivered
        return self.total_hops / delivered if delivered else 0.0

    @property
    def congestion_loss_rate(self) -> float:
        return self.congestion_losses / self.packets_attempted if self.packets_attempted else 0.0

    @property
    def environment_loss_rate(self) -> float:
        return self.environment_losses / self.packets_attempted if self.packets_attempted else 0.0

    @property
    def link_quality_improvement(self) -> float:
        """Percent change of average link quality since the first reading."""
        if not self.initial_link_quality:
            return 0.0
        return (self.current_link_quality - self.initial_link_quality) / self.initial_link_quality * 100

    def summary(self) -> dict:
        """Flat dict for reporting / API responses."""
        return {
            "time_ms": self.current_time_ms,
            "messages_sent": self.total_sent,
            "messages_delivered": self.total_delivered,
            "messages_dropped": self.total_dropped,
            "delivery_ratio": round(self.delivery_ratio(), 4),
            "safety_delivery_ratio": round(self.delivery_ratio(MessageType.SAFETY), 4),
            "telemetry_delivery_ratio": round(self.delivery_ratio(MessageType.TELEMETRY), 4),
            "infotainment_delivery_ratio": round(self.delivery_ratio(MessageType.INFOTAINMENT), 4),
            "average_latency_ms": round(self.average_latency(), 2),
            "safety_latency_ms": round(self.average_latency(MessageType.SAFETY), 2),
            "telemetry_latency_ms": round(self.average_latency(MessageType.TELEMETRY), 2),
            "infotainment_latency_ms": round(self.average_latency(MessageType.INFOTAINMENT), 2),
            "network_overhead_bytes": self.bytes_transmitted,
            "average_hop_count": round(self.average_hop_count, 3),
            "path_breaks": self.path_breaks,
            "route_recomputations": self.route_recomputations,
            "congestion_loss_rate": round(self.congestion_loss_rate, 4),
            "environment_loss_rate": round(self.environment_loss_rate, 4),
            "packets_attempted": self.packets_attempted,
            "model_updates": self.model_updates,
            "current_link_quality": round(self.current_link_quality, 4),
            "link_quality_improvement_percent": round(self.link_quality_improvement, 2),
        }
