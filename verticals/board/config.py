"""Task board vertical configuration.

Re-exports the BoardConfig from the patterns module, loaded from the
environment once at import time.
"""

from patterns.domain_config import BoardConfig

config = BoardConfig.from_env()
