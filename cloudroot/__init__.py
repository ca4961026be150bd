"""cloudroot: provision a bootable root filesystem onto a blank block device.

Core design goals:
- One target device per run, fixed stage order
- Fail fast on the first error
- Every mount released on every exit path
- Verified downloads only
- Centralized logging
"""

__all__ = []
