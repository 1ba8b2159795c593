from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from simulator.domain.models import FlowDirection


@dataclass(frozen=True)
class MeterSimulatorSettings:
    """
    Tunable parameters of the simulated water meter.
    """

    # Register value at start-up (m3)
    initial_value: float = 0.0

    # Constant mode: signed rate in m3/s
    consumption_rate: float = 0.0
    use_constant_rate: bool = True

    # Random mode: uniform [0, random_max_rate) m3/s, sign taken from flow_direction
    flow_direction: FlowDirection = FlowDirection.FORWARD
    random_max_rate: float = 0.05

    # Longest elapsed time credited per step (avoids jumps after stalls)
    max_step_s: float = 1.0

    seed: Optional[int] = None
