#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import pathlib
import re
import typing

import bootsync.service.boot
import bootsync.service.installer

Origin = bootsync.service.boot.Origin
Section = bootsync.service.boot.Section

DEFAULT_TARGET = "/boot/zipl"


class ZIPL(bootsync.service.boot.Loader):
    """
    zipl boot loader for IBM Z.  Every [name] block of zipl.conf is a
    section; the [defaultboot] block names the default section.  Menu blocks
    (":name") are kept as they are.
    """

    names = ("zipl",)
    install_on_refresh = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._defaultboot = []
        self._menus = []
        self._addresses = {}

    @property
    def path(self) -> pathlib.Path:
        return self._context.path("/etc/zipl.conf")

    def install(
            self, installer: bootsync.service.installer.Installer,
            device: str = None) -> None:
        """
        Writes the boot record as configured in zipl.conf.

        Keyword arguments:
        installer -- the installer used to run external programs
        device    -- ignored
        """
        self._run(installer, "zipl")

    def _parse(self, buffer: str) -> typing.List[Section]:
        sections = []
        default = None
        tag = None
        block = self._header
        current = None
        self._defaultboot = []
        self._menus = []
        self._addresses = {}

        for line in buffer.splitlines():
            m = bootsync.service.boot.IDENTIFIER_RE.match(line)

            if m:
                tag = m.group("tag")
                continue

            m = re.match(r"^\s*\[(?P<name>[^\]]+)\]\s*$", line)

            if m and "defaultboot" == m.group("name"):
                block, current = self._defaultboot, None
                continue
            elif m:
                current = Section(m.group("name"))
                current.origin = Origin.guess(tag, current.name)
                sections.append(current)
                block, tag = None, None
                continue
            elif re.match(r"^\s*:", line):
                block, current = self._menus, None
                block.append(line)
                continue

            m = re.match(r"^\s*(?P<key>\w+)\s*=\s*(?P<value>.*?)\s*$", line)
            key, value = (m.group("key"), m.group("value").strip("\"'")) \
                if m else (None, "")

            if current is not None:
                if "image" == key:
                    current.image = value
                elif "ramdisk" == key:
                    # path[,load address]
                    current.initrd, _, address = value.partition(",")

                    if address:
                        self._addresses[current.initrd] = address
                elif "parameters" == key:
                    current.append = value
                elif line.strip():
                    current.extra.append(line.strip())
            elif block is self._defaultboot and "default" == key:
                default = value
            elif block is not None:
                block.append(line)

        for section in sections:
            section.is_default = default == section.name

        return sections

    def _format(self, sections: typing.Sequence[Section]) -> str:
        buffer = [line for line in self._header]

        while buffer and not buffer[-1].strip():
            buffer.pop()

        defaultboot = [line for line in self._defaultboot if line.strip()]

        for section in sections:
            if section.is_default:
                defaultboot = [
                    line for line in defaultboot
                    if not re.match(r"^\s*defaultmenu\s*=", line)]
                defaultboot.append(f"    default = {section.name}")
                break

        if defaultboot:
            buffer += ["", "[defaultboot]"] + defaultboot

        for section in sections:
            buffer.append("")

            if Origin.NONE != section.origin:
                buffer.append(bootsync.service.boot.IDENTIFIER.format(
                    section.origin.value))

            buffer.append(f"[{section.name}]")
            buffer.append(f"    image = {section.image}")

            if not any(
                    re.match(r"^target\s*=", line) for line in section.extra):
                buffer.append(f"    target = {DEFAULT_TARGET}")

            buffer += [f"    {line}" for line in section.extra]

            if section.initrd in self._addresses:
                buffer.append(
                    f"    ramdisk = {section.initrd},"
                    f"{self._addresses[section.initrd]}")
            elif section.initrd:
                buffer.append(f"    ramdisk = {section.initrd}")

            if section.append:
                buffer.append(f"    parameters = \"{section.append}\"")

        if self._menus:
            buffer.append("")
            buffer += self._menus

        return "\n".join(buffer) + "\n"
