"""Campus help-request matching: ranking, match lifecycle and connections."""

__version__ = "0.1.0"
