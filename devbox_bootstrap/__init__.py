"""devbox-bootstrap: idempotent workstation provisioning for Debian-family hosts.

Core design goals:
- Every step probes host state before changing it
- Re-running the whole tool is the recovery path
- Explicit step prerequisites, validated up front
- Centralized logging
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
