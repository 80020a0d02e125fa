"""
Core package for lazuli.
Wait request schema and the polling engine.

Consumers should import submodules directly, e.g.:
  from lazuli.core.wait_request import build_wait_request
  from lazuli.core.engine import WaitEngine
"""

__all__: list[str] = []
