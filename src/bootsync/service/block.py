#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import enum
import logging
import os
import pathlib
import re
import sh
import typing

import bootsync.error
import bootsync.namespace

_log = logging.getLogger(__name__)


class DeviceKind(enum.Enum):
    """Block device kind."""

    PARTITION = "partition"
    DISK = "disk"


class DeviceNode(object):
    """Block device, named without the /dev/ prefix."""

    def __init__(self, name: str, kind: DeviceKind) -> None:
        self.name = name
        self.kind = kind

    def __repr__(self) -> str:
        return f"DeviceNode({self.name!r}, {self.kind.value})"


class FileSystem(object):
    """Mounted file system."""

    def __init__(
            self, source: str, target: str, fstype: str = None,
            uuid: str = None) -> None:
        # Btrfs reports subvolume mounts as device[/subvolume].
        self.source = re.sub(r"\[.*\]$", "", source or "")
        self.target = target
        self.fstype = fstype
        self.uuid = uuid


class MountTable(object):
    """The mount table of the running system."""

    def file_systems(self, path: str) -> typing.List[FileSystem]:
        """
        Returns the file systems mounted at path or at the closest ancestor of
        path, topmost mount first.

        Keyword arguments:
        path -- the path
        """
        try:
            block = bootsync.namespace.Namespace.loads(self._findmnt(
                "-J", "-T", path, "-o", "SOURCE,TARGET,FSTYPE,UUID"))
        except sh.CommandNotFound:
            raise bootsync.error.InitializationError(
                "findmnt: Command not found")
        except sh.ErrorReturnCode:
            _log.warning("findmnt found nothing mounted at %s", path)
            return []

        return [
            FileSystem(
                file_system.source, file_system.target, file_system.fstype,
                file_system.uuid)
            for file_system in block.filesystems or []]

    def source(self, path: str) -> typing.Optional[str]:
        """
        Returns the device the file system containing path is mounted from.
        Sources which are not paths (tmpfs, overlay and the like) are skipped.

        Keyword arguments:
        path -- the path
        """
        for file_system in self.file_systems(path):
            if file_system.source.startswith("/"):
                return file_system.source

        return None

    def _findmnt(self, *args: str) -> str:
        return str(sh.findmnt(*args))


class Topology(object):
    """Block device topology as exposed by sysfs."""

    def __init__(self, root: pathlib.Path = pathlib.Path("/")) -> None:
        self._dev = root / "dev"
        self._sys_block = root / "sys" / "block"

    def canonicalize(self, device: str) -> typing.Optional[str]:
        """
        Resolves symbolic links such as /dev/disk/by-uuid/... or
        /dev/mapper/... and returns the kernel device name without /dev/, or
        None if there is no such device.

        Keyword arguments:
        device -- device path or name
        """
        name = re.sub(r"^/dev/", "", device.strip())

        if not name:
            return None

        node = self._dev / name

        if node.is_symlink() or node.exists():
            real = pathlib.Path(os.path.realpath(node))

            try:
                name = str(real.relative_to(os.path.realpath(self._dev)))
            except ValueError:
                name = real.name
        elif not (self._sys_block / _sysfs(name)).exists() and \
                self.partition_to_disk(name) is None:
            return None

        return name

    def partition_to_disk(self, name: str) -> typing.Optional[str]:
        """
        Returns the disk partition name belongs to or None if name is not a
        partition.

        Keyword arguments:
        name -- the partition name
        """
        try:
            disks = sorted(self._sys_block.iterdir())
        except FileNotFoundError:
            return None

        for disk in disks:
            if (disk / _sysfs(name) / "partition").exists():
                return _device(disk.name)

        return None

    def slaves(self, name: str) -> typing.List[str]:
        """
        Returns the devices underlying the virtual device name (RAID, device
        mapper) in lexicographic order.

        Keyword arguments:
        name -- the device name
        """
        try:
            return [
                _device(slave) for slave in sorted(os.listdir(
                    self._sys_block / _sysfs(name) / "slaves"))]
        except (FileNotFoundError, NotADirectoryError):
            return []

    def first_slave(self, name: str) -> typing.Optional[str]:
        slaves = self.slaves(name)
        return slaves[0] if slaves else None

    def node(self, name: str) -> DeviceNode:
        return DeviceNode(
            name, DeviceKind.PARTITION if self.partition_to_disk(name)
            else DeviceKind.DISK)


class Resolver(object):
    """
    Resolves a mount point or partition to the physical disk a legacy BIOS
    boot loader has to be installed on.
    """

    def __init__(
            self, topology: Topology = None,
            mount_table: MountTable = None) -> None:
        self._topology = topology or Topology()
        self._mount_table = mount_table or MountTable()

    def resolve(self, target: str) -> str:
        """
        Returns the disk name (without /dev/) for target.  Partitions are
        replaced by their disk and virtual devices by their first slave until
        neither applies.  Raises DeviceNotFoundError if target does not lead
        to a device.

        Keyword arguments:
        target -- a path such as /boot, or a device such as /dev/sda1 or sda1
        """
        device = target

        if target.startswith("/") and not target.startswith("/dev/"):
            device = self._mount_table.source(target)

            if not device:
                raise bootsync.error.DeviceNotFoundError(
                    f"No device is mounted at {target}")

            _log.debug("%s is mounted from %s", target, device)

        name = self._topology.canonicalize(device)

        if not name:
            raise bootsync.error.DeviceNotFoundError(
                f"Device {device} not found")

        seen = {name}

        while True:
            parent = self._topology.partition_to_disk(name)

            if parent is None:
                parent = self._topology.first_slave(name)

            if parent is None or parent in seen:
                break

            _log.debug(
                "Following %r to %s", self._topology.node(name), parent)
            name = parent
            seen.add(name)

        _log.info("Resolved %s to disk %s", target, name)
        return name


def _sysfs(name: str) -> str:
    return name.replace("/", "!")


def _device(name: str) -> str:
    return name.replace("!", "/")
