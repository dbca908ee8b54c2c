class InvalidProblem(ValueError):
    """Raised when a problem is malformed: mismatched lengths, no constraints, unknown relation."""
