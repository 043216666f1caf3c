"""cbox: sandboxed container launcher for Claude.

Resolves a security mode and per-dimension overrides into a concrete
policy and builds the container runtime invocation from it.
"""

from cbox.sandbox import build_launch_plan, resolve_policy

__version__ = "0.1.0"

__all__ = ["__version__", "build_launch_plan", "resolve_policy"]
