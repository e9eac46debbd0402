"""Single-studio appointment booking: availability, cutoff rules and submission."""

__version__ = "0.1.0"
