"""
Configuration for telematics engines
"""

from telematics_core.config.settings import TelematicsSettings, settings

__all__ = ["TelematicsSettings", "settings"]
