"""
Telematics Core - motion fusion, driver detection and risk assessment
"""

__version__ = "0.1.0"

from telematics_core.config import TelematicsSettings, settings
from telematics_core.logging import setup_logging
from telematics_core.session import TelematicsSession

__all__ = ["TelematicsSession", "TelematicsSettings", "settings", "setup_logging"]
