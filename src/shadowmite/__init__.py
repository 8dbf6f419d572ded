"""
Shadowmite Setup Package
Guided first-boot setup wizard: network, locale and prescribed apps

Version 1.0.0 - Python 3.12+ with modern type system
"""

__version__ = "1.0.0"

from .config import Application, ScanResult, Screen, WizardSession
from .catalog import Catalog, load_catalog
from .enumerators import Enumerator, SystemEnumerator
from .factory import EnumeratorFactory
from .scan import ScanWorker
from .settings import Settings, load_settings, init_config
from .wizard import Trigger, WizardStateMachine

__all__ = [
    "Application",
    "ScanResult",
    "Screen",
    "WizardSession",
    "Catalog",
    "load_catalog",
    "Enumerator",
    "SystemEnumerator",
    "EnumeratorFactory",
    "ScanWorker",
    "Settings",
    "load_settings",
    "init_config",
    "Trigger",
    "WizardStateMachine",
]
