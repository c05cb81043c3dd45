"""Custom exceptions for textplanner."""


class TextPlannerError(Exception):
    """Base exception for all textplanner errors."""


class ConfigError(TextPlannerError):
    """Configuration-related errors."""


class GraphError(TextPlannerError):
    """Semantic graph errors."""


class UnknownVertexError(GraphError, KeyError):
    """Raised when an operation references a vertex absent from the graph."""

    def __init__(self, vertex: str):
        self.vertex = vertex
        super().__init__(f"Unknown vertex '{vertex}'")

    def __str__(self) -> str:
        return self.args[0]


class GraphFormatError(GraphError):
    """Malformed graph document."""


class RankingError(TextPlannerError):
    """Invalid ranking input."""


class RankingDidNotConvergeError(RankingError):
    """Raised when power iteration exceeds its iteration cap."""

    def __init__(self, iterations: int, delta: float, epsilon: float):
        self.iterations = iterations
        self.delta = delta
        self.epsilon = epsilon
        super().__init__(
            f"Power iteration did not converge after {iterations} iterations "
            f"(delta={delta:.3g}, epsilon={epsilon:.3g}). "
            f"Retry with a looser epsilon or a smaller graph."
        )


class EmptyGraphError(RankingError):
    """Raised by the solver when asked to rank a chain with no states."""


class WeightAlreadySetError(TextPlannerError, RuntimeError):
    """Raised when a write-once weight is assigned a second time."""
