#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#


class Error(Exception):
    """Base class for all Boot Sync errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AlreadyExistsError(Error):
    """A section for the same kernel image already exists."""

    pass


class AmbiguousRemovalError(Error):
    """A removal request matches more than one section."""

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message)
        self.count = count


class DeviceNotFoundError(Error):
    """Device not found error."""

    pass


class InitializationError(Error):
    """Initialization error."""

    pass


class InstallerFailedError(Error):
    """An external boot loader program failed."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class InvalidUsageError(Error):
    """Invalid command line usage."""

    pass


class MissingArgumentError(InvalidUsageError):
    """A required command line argument is missing."""

    pass


class NoDataError(Error):
    """No data could be produced."""

    pass


class NoInstallDeviceError(Error):
    """No device to install the boot loader onto could be determined."""

    pass
