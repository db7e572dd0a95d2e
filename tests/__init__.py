#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import json
import logging
import os
import pathlib
import shutil
import tempfile
import typing

import bootsync.configuration
import bootsync.context
import bootsync.service.installer

log = logging.getLogger()
log.setLevel(logging.DEBUG)

# Configuration files are looked up below the sandbox root in /etc/xdg.
os.environ.pop("XDG_CONFIG_DIRS", None)


class Sandbox(object):
    """Temporary root directory standing in for /."""

    def __init__(self) -> None:
        self.root = pathlib.Path(tempfile.mkdtemp(prefix="bootsync-"))

    def remove(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)

    def path(self, path: str) -> pathlib.Path:
        return self.root / path.lstrip("/")

    def write(self, path: str, buffer: str) -> pathlib.Path:
        file = self.path(path)
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(buffer)
        return file

    def read(self, path: str) -> str:
        return self.path(path).read_text()

    def configure(self, **kwargs: typing.Any) -> None:
        self.write("/etc/xdg/bootsync/bootsync.conf", json.dumps(kwargs))

    def context(self, **kwargs: typing.Any) -> bootsync.context.RuntimeContext:
        kwargs.setdefault("architecture", "x86_64")
        return bootsync.context.RuntimeContext(
            root_prefix=self.root, **kwargs)

    def configuration(
            self, **kwargs: typing.Any) -> \
            bootsync.configuration.Configuration:
        return bootsync.configuration.Configuration(self.context(**kwargs))

    def partition(self, disk: str, partition: str) -> None:
        """Creates a partition of disk in the fake sysfs and /dev."""
        sysfs = self.path(f"/sys/block/{disk}/{partition}")
        sysfs.mkdir(parents=True, exist_ok=True)
        (sysfs / "partition").write_text("1\n")
        self.device(disk)
        self.device(partition)

    def raid(self, name: str, slaves: typing.Sequence[str]) -> None:
        """Creates a virtual device built from slaves in the fake sysfs."""
        path = self.path(f"/sys/block/{name}/slaves")
        path.mkdir(parents=True, exist_ok=True)

        for slave in slaves:
            (path / slave).touch()

        self.device(name)

    def device(self, name: str) -> None:
        """Creates the device node /dev/name."""
        node = self.path(f"/dev/{name}")
        node.parent.mkdir(parents=True, exist_ok=True)
        node.touch()


class FakeInstaller(bootsync.service.installer.Installer):
    """Records programs instead of running them."""

    def __init__(
            self, missing: typing.Iterable[str] = (),
            failing: typing.Mapping[str, int] = None) -> None:
        self.calls = []
        self._missing = set(missing)
        self._failing = failing or {}

    def available(self, program: str) -> bool:
        return program not in self._missing

    def install(
            self, target: str,
            options: typing.Sequence[str]) -> \
            bootsync.service.installer.Result:
        self.calls.append([target] + list(options))
        code = self._failing.get(target, 0)
        return bootsync.service.installer.Result(
            code, f"{target} failed" if code else "")


class FakeMountTable(object):
    """Mount table with fixed contents."""

    def __init__(self, mounts: typing.Mapping[str, str]) -> None:
        self._mounts = mounts

    def source(self, path: str) -> typing.Optional[str]:
        while True:
            if path in self._mounts:
                return self._mounts[path]

            if "/" == path:
                return None

            path = str(pathlib.PurePath(path).parent)
