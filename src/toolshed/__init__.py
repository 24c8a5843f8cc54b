"""toolshed: install and track versioned agent, command and skill tools.

Import from submodules:
- version: __version__
- core.installer / core.updater: installation orchestration
- core.archive, core.registry_cache, core.lock_store: storage primitives
"""

from toolshed.version import __version__ as __version__
