"""Deploy Hook - GitHub webhook receiver that deploys sites on green builds."""

__version__ = "0.1.0"
