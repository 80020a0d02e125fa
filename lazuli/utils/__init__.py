"""
Utilities package
-----------------
Settings, logging and timing helpers shared by the rest of lazuli.
Import submodules directly, e.g. `from lazuli.utils.config import get_settings`.
"""

__all__: list[str] = []
