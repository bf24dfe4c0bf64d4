"""skillrunner - integration harness that drives real agent sessions against skill documents."""

__version__ = "0.1.0"
