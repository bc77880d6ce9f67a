"""
Dive profile export for presentation layers.

Expands a finished DecompressionPlan into (time, depth, fO2, fHe) waypoints:
descent, bottom, ascents and stop holds with the gas breathed in each.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from .planner import DecompressionPlan, Phase


@dataclass
class DiveProfile:
    """Represents a dive profile as a sequence of (time, depth, fO2, fHe) points."""

    points: List[Tuple[float, float, float, float]] = field(default_factory=list)
    name: str = "unnamed"
    max_depth: float = 0.0
    bottom_time: float = 0.0

    def add_point(self, time: float, depth: float, fO2: float = 0.21, fHe: float = 0.0):
        """Add a point to the profile. Depth in meters, time in minutes."""
        self.points.append((time, depth, fO2, fHe))
        if depth > self.max_depth:
            self.max_depth = depth

    @property
    def runtime(self) -> float:
        """Time of the last waypoint (minutes)."""
        return self.points[-1][0] if self.points else 0.0

    def get_depth_at_time(self, t: float) -> float:
        """Interpolate depth at a given time."""
        if not self.points:
            return 0.0
        if t <= self.points[0][0]:
            return self.points[0][1]
        if t >= self.points[-1][0]:
            return self.points[-1][1]

        for i in range(len(self.points) - 1):
            t1, d1, _, _ = self.points[i]
            t2, d2, _, _ = self.points[i + 1]
            if t1 <= t <= t2:
                if t2 == t1:
                    return d1
                ratio = (t - t1) / (t2 - t1)
                return d1 + ratio * (d2 - d1)
        return self.points[-1][1]


class ProfileGenerator:
    """Build DiveProfile waypoints from planner output."""

    @staticmethod
    def from_plan(plan: DecompressionPlan) -> DiveProfile:
        """One waypoint per simulated segment end, starting at the surface.

        Gas fractions of a waypoint are those breathed during the segment
        that ends there.
        """
        stop_desc = "+".join(f"{s.depth:.0f}m/{s.time:.0f}min" for s in plan.stops) or "nodeco"
        profile = DiveProfile(name=f"deco_{plan.depth:.0f}m_{plan.bottom_time:.0f}min_{stop_desc}")
        profile.bottom_time = plan.bottom_time

        gas = plan.bottom_gas
        profile.add_point(0.0, 0.0, gas.fo2, gas.fhe)

        time = 0.0
        for segment in plan.segments:
            if segment.phase in (Phase.BOTTOM, Phase.STOP):
                # Hold starts where the previous transit ended
                profile.add_point(time, segment.depth, segment.gas.fo2, segment.gas.fhe)
            time += segment.minutes
            profile.add_point(time, segment.depth, segment.gas.fo2, segment.gas.fhe)

        return profile
