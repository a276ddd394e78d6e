"""deployctl: command and lifecycle orchestration for service deployments.

Commands expand into ordered hook names, plugins bind handlers to those
names, and the dispatcher runs them in order, halting on the first failure.
"""

__version__ = "0.1.0"
