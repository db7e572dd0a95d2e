#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import contextlib
import enum
import fcntl
import importlib
import logging
import os
import pathlib
import re
import shutil
import tempfile
import typing

import bootsync.configuration
import bootsync.error
import bootsync.service.installer

_log = logging.getLogger(__name__)


class SectionType(enum.Enum):
    """Boot loader section type."""

    IMAGE = "image"
    XEN = "xen"


class Origin(enum.Enum):
    """Why a section was created, as recorded in its identifier comment."""

    LINUX = "linux"
    XEN = "xen"
    FAILSAFE = "failsafe"
    NONE = "none"

    @classmethod
    def guess(cls, tag: typing.Optional[str], name: str) -> "Origin":
        """
        Returns the origin recorded in tag.  Sections without identifier
        comment are only recognized as failsafe sections by their name.

        Keyword arguments:
        tag  -- the tag from the identifier comment or None
        name -- the section name
        """
        if tag:
            try:
                return cls(tag.lower())
            except ValueError:
                return cls.NONE

        return cls.FAILSAFE if name and \
            name.lower().startswith("failsafe") else cls.NONE


# Origins of sections which are not auxiliary to another section.
PRIMARY_ORIGINS = frozenset([Origin.LINUX, Origin.XEN, Origin.NONE])

# Identifier comment written above every section with a known origin.
IDENTIFIER = "###Don't change this comment - YaST2 identifier: " \
    "Original name: {}###"
IDENTIFIER_RE = re.compile(
    r"^\s*###Don't change this comment - YaST2 identifier: "
    r"Original name: (?P<tag>[\w-]+)###\s*$")


class Section(object):
    """Boot loader section."""

    def __init__(
            self, name: str, type: SectionType = SectionType.IMAGE,
            image: str = None, initrd: str = None, xen_kernel: str = None,
            is_default: bool = False, origin: Origin = Origin.NONE,
            append: str = None, xen_append: str = None,
            extra: typing.List[str] = None) -> None:
        self.name = name
        self.type = type
        self.image = image
        self.initrd = initrd
        self.xen_kernel = xen_kernel
        self.is_default = is_default
        self.origin = origin
        self.append = append
        self.xen_append = xen_append
        self.extra = extra if extra is not None else []

    def __repr__(self) -> str:
        return f"Section({self.name!r}, {self.type.value}, {self.image!r}, " \
            f"initrd={self.initrd!r}, default={self.is_default})"


def normalize_path(path: typing.Optional[str]) -> typing.Optional[str]:
    """
    Normalizes a kernel, initrd or hypervisor path for comparison.  GRUB
    device prefixes such as (hd0,1) are removed.
    """
    if not path:
        return path

    path = re.sub(r"^\([^)]*\)", "", path.strip())
    return os.path.normpath(path) if path else path


class Filter(object):
    """
    Section filter.  Fields which are None are wildcards, except origins:
    failsafe sections are auxiliary to their primary section and only match
    filters asking for them explicitly.
    """

    def __init__(
            self, type: SectionType = None, image: str = None,
            initrd: str = None, xen_kernel: str = None, name: str = None,
            origins: typing.Iterable[Origin] = None) -> None:
        self.type = type
        self.image = image
        self.initrd = initrd
        self.xen_kernel = xen_kernel
        self.name = name
        self.origins = frozenset(origins) if origins is not None \
            else PRIMARY_ORIGINS

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{name}={value!r}" for name, value in vars(self).items()
            if value is not None)
        return f"Filter({fields})"

    def matches(self, section: Section) -> bool:
        if self.type is not None and self.type != section.type:
            return False

        for name in ["image", "initrd", "xen_kernel"]:
            value = getattr(self, name)

            if value and normalize_path(value) != \
                    normalize_path(getattr(section, name)):
                return False

        if self.name and self.name != section.name:
            return False

        if section.origin not in self.origins:
            return False

        return True


class Loader(object):
    """
    Boot loader.  Subclasses know where the boot loader configuration is
    stored, how sections are represented in it and how the boot loader is
    installed.
    """

    # Values of the loader identity handled by the class.
    names = ()

    # False if the boot loader generates its menu itself.
    manages_sections = True

    supports_xen = False

    # True if the installer has to be run for configuration changes to take
    # effect.
    install_on_refresh = False

    # True if the installer needs the disk to write the boot code to.
    needs_install_device = False

    def __init__(
            self,
            configuration: bootsync.configuration.Configuration) -> None:
        if type(self) is Loader:
            raise NotImplementedError

        self._configuration = configuration
        self._context = configuration.context
        self._header = []

    @property
    def path(self) -> pathlib.Path:
        """Path to the boot loader configuration file."""
        raise NotImplementedError

    def available(
            self, installer: bootsync.service.installer.Installer) -> bool:
        """Returns whether the boot loader tooling is available."""
        return True

    @contextlib.contextmanager
    def lock(self) -> typing.Iterator[None]:
        """
        Holds an exclusive lock on the boot loader configuration.  Concurrent
        invocations serialize their read-modify-write cycles on this lock.
        """
        lock = self.path.parent / f".{self.path.name}.lock"
        lock.parent.mkdir(parents=True, exist_ok=True)

        with open(lock, "a") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)

            try:
                yield
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def read(self) -> typing.List[Section]:
        """Reads all sections from the boot loader configuration."""
        try:
            with open(self.path, "r") as f:
                buffer = f.read()
        except FileNotFoundError:
            _log.info("%s does not exist yet", self.path)
            buffer = ""

        self._header = []
        return self._parse(buffer)

    def write(self, sections: typing.Sequence[Section]) -> None:
        """
        Replaces the boot loader configuration.  The new configuration is
        written to a temporary file which is then renamed over the old one,
        so readers never see a partially written file.

        Keyword arguments:
        sections -- the sections to write
        """
        buffer = self._format(sections)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temporary = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=self.path.parent)

        try:
            with os.fdopen(fd, "w") as f:
                f.write(buffer)
                f.flush()
                os.fsync(f.fileno())

            if self.path.exists():
                shutil.copymode(self.path, temporary)

            os.replace(temporary, self.path)
        except BaseException:
            os.unlink(temporary)
            raise

        _log.info("Wrote %d section(s) to %s", len(sections), self.path)

    def update(self, installer: bootsync.service.installer.Installer) -> None:
        """
        Re-materializes the boot loader configuration.

        Keyword arguments:
        installer -- the installer used to run external programs
        """
        with self.lock():
            self.write(self.read())

    def install(
            self, installer: bootsync.service.installer.Installer,
            device: str = None) -> None:
        """
        Installs the boot loader.

        Keyword arguments:
        installer -- the installer used to run external programs
        device    -- the disk to install to, without /dev/ (default None)
        """
        raise NotImplementedError

    def _parse(self, buffer: str) -> typing.List[Section]:
        raise NotImplementedError

    def _format(self, sections: typing.Sequence[Section]) -> str:
        raise NotImplementedError

    def _run(
            self, installer: bootsync.service.installer.Installer,
            target: str, *options: str) -> None:
        result = installer.install(target, list(options))

        if not result:
            raise bootsync.error.InstallerFailedError(
                f"{target} failed with exit code {result.code}: "
                f"{result.output.strip()}", result.code)


def _subclasses(cls: type) -> typing.Iterator[type]:
    for subclass in cls.__subclasses__():
        yield subclass
        yield from _subclasses(subclass)


def load(
        name: str,
        configuration: bootsync.configuration.Configuration) -> Loader:
    """
    Imports the boot loader module for name and returns an instance of its
    boot loader class.

    Keyword arguments:
    name          -- the boot loader, e.g. "grub2-efi"
    configuration -- the configuration
    """
    module = name.split("-")[0]

    try:
        importlib.import_module(f"bootsync.service.boot.loader.{module}")
    except ModuleNotFoundError:
        raise bootsync.error.InitializationError(
            f"Boot loader module {module} not found")

    for cls in _subclasses(Loader):
        if name in cls.names:
            return cls(configuration)

    raise bootsync.error.InitializationError(
        f"Unsupported boot loader {name}")
