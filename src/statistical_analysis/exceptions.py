class InsufficientDataError(Exception):
    """Raised when a test group has too few observations to run a test."""

    pass


class LowExpectedFrequencyWarning(UserWarning):
    """Chi-square expected cell counts are too small for the asymptotic p-value."""

    pass
