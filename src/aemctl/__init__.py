"""
aemctl - lifecycle management for local AEM instances

Starts, stops and kills quickstart instances, deploys content packages through
the package manager HTTP API and waits for instances to become stable.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
