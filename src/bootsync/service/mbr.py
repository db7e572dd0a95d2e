#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import logging
import pathlib
import typing

_log = logging.getLogger(__name__)

SIZE = 512
SIGNATURE = b"\x55\xaa"

# Boot code area, in front of the disk signature and partition table.
_CODE = slice(0, 440)


def examine(device: pathlib.Path) -> typing.Optional[str]:
    """
    Identifies the boot code in the master boot record of device.  Returns
    "invalid" if there is no MBR signature, "empty" if the boot code area is
    zeroed, "grub", "lilo", "windows", "generic" or "unknown" otherwise.
    Returns None if the MBR could not be read.

    Keyword arguments:
    device -- path to the device node
    """
    try:
        with open(device, "rb") as f:
            block = f.read(SIZE)
    except OSError as e:
        _log.error("Unable to read MBR of %s: %s", device, e.strerror)
        return None

    if len(block) < SIZE:
        _log.error("Short read of MBR of %s", device)
        return None

    code = block[_CODE]

    if SIGNATURE != block[510:512]:
        result = "invalid"
    elif not code.strip(b"\x00"):
        result = "empty"
    elif b"GRUB" in code:
        result = "grub"
    elif b"LILO" in code[:16]:
        result = "lilo"
    elif b"Error loading operating system" in code:
        result = "windows"
    elif b"Invalid partition table" in code or \
            b"Missing operating system" in code or \
            b"No operating system" in code:
        result = "generic"
    else:
        result = "unknown"

    _log.info("MBR of %s: %s", device, result)
    return result
