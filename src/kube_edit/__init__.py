"""kubectl plugins that edit a Deployment's scale or append ClusterRole rules."""

__version__ = "0.1.0"
