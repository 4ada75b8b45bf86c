"""
Configuration components for corrmath.
"""

from corrmath.components.config import Config, configure_logging, resolve_config
