#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import pathlib

import bootsync.service.boot.loader.lilo


class ELILO(bootsync.service.boot.loader.lilo.LILO):
    """
    ELILO boot loader.  elilo.conf shares the lilo.conf syntax; running elilo
    copies the configuration and images to the EFI system partition.
    """

    names = ("elilo",)
    program = "elilo"

    @property
    def path(self) -> pathlib.Path:
        return self._context.path("/etc/elilo.conf")
