from dataclasses import dataclass


@dataclass(frozen=True)
class WriteReport:
    """Outcome of a bulk-write run through the admission gate."""

    key_count: int
    """Number of store calls issued."""

    failed: int
    """Number of store calls that raised."""

    elapsed: float
    """Wall clock duration of the whole run, in seconds."""

    peak_in_flight: int
    """Highest number of simultaneously admitted store calls."""

    def render(self) -> str:
        return (
            f"Written {self.key_count} keys in {int(self.elapsed * 1000)} ms "
            f"({self.failed} failed, peak {self.peak_in_flight} in flight)"
        )


@dataclass(frozen=True)
class ReadReport:
    """Outcome of the repeated-read latency run."""

    iterations: int
    total: float
    """Sum of the individual read durations, in seconds."""

    hits: int
    """Number of reads that returned a value."""

    @property
    def average_us(self) -> int:
        if self.iterations == 0:
            return 0
        return int(self.total * 1_000_000) // self.iterations

    def render(self) -> str:
        if self.iterations == 0:
            return "No operations were performed."
        return f"Average time taken: {self.average_us} microseconds"
