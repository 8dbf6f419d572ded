"""
Error taxonomy for the wizard core

None of these are fatal: catalog and scan failures degrade to empty
results, and illegal transitions are ignored by the state machine.
"""

from pathlib import Path


class WizardError(Exception):
    """Base class for wizard errors"""


class RecordParseError(WizardError):
    """A descriptor record is malformed or unreadable"""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class EnumerationUnavailable(WizardError):
    """An external enumerator could not be invoked"""


class IllegalTransition(WizardError):
    """A trigger has no edge from the current screen"""


class FilesystemUnavailable(WizardError):
    """The descriptor directory cannot be created or listed"""

    def __init__(self, directory: Path, reason: str):
        super().__init__(f"Descriptor directory {directory} unavailable: {reason}")
        self.directory = directory
        self.reason = reason
