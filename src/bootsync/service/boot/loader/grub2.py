#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import logging
import pathlib
import typing

import bootsync.naming
import bootsync.service.boot
import bootsync.service.installer

_log = logging.getLogger(__name__)

# grub2-install targets by (normalized) CPU architecture.
EFI_TARGETS = {
    "aarch64": "arm64-efi",
    "i386": "i386-efi",
    "ia64": "ia64-efi",
    "x86_64": "x86_64-efi"
}


class GRUB2(bootsync.service.boot.Loader):
    """
    GRUB 2 boot loader.  grub2-mkconfig derives the boot menu from the
    installed kernels, so sections are never written by hand.
    """

    names = ("grub2",)
    manages_sections = False
    needs_install_device = True

    @property
    def path(self) -> pathlib.Path:
        return self._context.path("/boot/grub2/grub.cfg")

    def available(
            self, installer: bootsync.service.installer.Installer) -> bool:
        if not installer.available("grub2-mkconfig"):
            _log.info("grub2-mkconfig not found, nothing to do")
            return False

        return True

    def read(self) -> typing.List[bootsync.service.boot.Section]:
        return []

    def update(self, installer: bootsync.service.installer.Installer) -> None:
        """
        Regenerates grub.cfg.

        Keyword arguments:
        installer -- the installer used to run external programs
        """
        self._run(installer, "grub2-mkconfig", "-o", str(self.path))

    def install(
            self, installer: bootsync.service.installer.Installer,
            device: str = None) -> None:
        """
        Installs GRUB 2 into the boot sector of device.

        Keyword arguments:
        installer -- the installer used to run external programs
        device    -- the disk to install to, without /dev/
        """
        self._run(installer, "grub2-install", f"/dev/{device}")


class GRUB2EFI(GRUB2):
    """GRUB 2 boot loader for UEFI systems."""

    names = ("grub2-efi",)
    needs_install_device = False

    def install(
            self, installer: bootsync.service.installer.Installer,
            device: str = None) -> None:
        """
        Installs GRUB 2 into the EFI system partition.

        Keyword arguments:
        installer -- the installer used to run external programs
        device    -- ignored
        """
        target = self._configuration.efi_target or EFI_TARGETS.get(
            bootsync.naming.normalize_architecture(self._context.architecture))

        if target:
            self._run(installer, "grub2-install", f"--target={target}")
        else:
            self._run(installer, "grub2-install")
