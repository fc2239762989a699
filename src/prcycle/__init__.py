"""Pull request cycle time metrics for ISO weeks."""

__version__ = "0.1.0"
