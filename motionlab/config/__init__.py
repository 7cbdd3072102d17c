"""Engine configuration module.

This module organizes configuration into specialized files:

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Content directory, inheritance depth, default policy preset
  - Loaded from MOTIONLAB_* environment variables or a .env file

- **score_policies.yaml**: Named score policy presets
  - Loaded and validated by PolicyConfigLoader

- **policy_loader.py**: YAML preset loader
"""
from motionlab.config.settings import Settings, get_settings

# Policy loader (lazy import to avoid circular dependencies)
# Use: from motionlab.config.policy_loader import get_policy_loader

__all__ = ["Settings", "get_settings"]
