from __future__ import annotations

from enum import Enum


class FlowDirection(str, Enum):
    """
    Direction of simulated flow through the meter.

    Only used in random-consumption mode; a constant rate carries its own sign.

    Members
    -------
    FORWARD
        Normal consumption; the register counts up.
    REVERSE
        Reverse flow; the register counts down.
    """

    FORWARD = "forward"
    REVERSE = "reverse"

    @property
    def sign(self) -> float:
        return 1.0 if self is FlowDirection.FORWARD else -1.0
