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
SectionType = bootsync.service.boot.SectionType


class GRUB(bootsync.service.boot.Loader):
    """GRUB legacy boot loader (menu.lst)."""

    names = ("grub",)
    supports_xen = True
    needs_install_device = True

    @property
    def path(self) -> pathlib.Path:
        return self._context.path("/boot/grub/menu.lst")

    def install(
            self, installer: bootsync.service.installer.Installer,
            device: str = None) -> None:
        """
        Installs GRUB into the boot sector of device.

        Keyword arguments:
        installer -- the installer used to run external programs
        device    -- the disk to install to, without /dev/
        """
        self._run(installer, "grub-install", "--no-floppy", f"/dev/{device}")

    def _parse(self, buffer: str) -> typing.List[Section]:
        sections = []
        default = None
        tag = None
        current = None

        for line in buffer.splitlines():
            m = bootsync.service.boot.IDENTIFIER_RE.match(line)

            if m:
                tag = m.group("tag")
                continue

            m = re.match(r"^\s*(?P<keyword>\w+)[\s=]*(?P<value>.*?)\s*$", line)
            keyword = m.group("keyword").lower() if m else None
            value = m.group("value") if m else ""

            if "title" == keyword:
                current = _Stanza(value, Origin.guess(tag, value))
                sections.append(current)
                tag = None
            elif current is None:
                if "default" == keyword and value.isdigit():
                    default = int(value)
                else:
                    self._header.append(line)
            elif keyword in ["kernel", "module", "initrd"]:
                path, _, options = value.partition(" ")
                getattr(current, keyword).append((path, options.strip()))
            elif line.strip():
                current.extra.append(line.strip())

        result = [stanza.section() for stanza in sections]

        if default is not None and default < len(result):
            result[default].is_default = True

        return result

    def _format(self, sections: typing.Sequence[Section]) -> str:
        buffer = [line for line in self._header]

        while buffer and not buffer[-1].strip():
            buffer.pop()

        for number, section in enumerate(sections):
            if section.is_default:
                # Replaces non-numeric directives such as "default saved".
                buffer = [
                    line for line in buffer
                    if not re.match(r"^\s*default\b", line, re.IGNORECASE)]
                buffer.append(f"default {number}")
                break

        for section in sections:
            buffer.append("")

            if Origin.NONE != section.origin:
                buffer.append(bootsync.service.boot.IDENTIFIER.format(
                    section.origin.value))

            buffer.append(f"title {section.name}")
            buffer += [f"    {line}" for line in section.extra]

            if SectionType.XEN == section.type:
                buffer.append(_line(
                    "kernel", section.xen_kernel, section.xen_append))
                buffer.append(_line("module", section.image, section.append))

                if section.initrd:
                    buffer.append(_line("module", section.initrd))
            else:
                buffer.append(_line("kernel", section.image, section.append))

                if section.initrd:
                    buffer.append(_line("initrd", section.initrd))

        return "\n".join(buffer) + "\n"


class _Stanza(object):
    def __init__(self, name: str, origin: Origin) -> None:
        self.name = name
        self.origin = origin
        self.kernel = []
        self.module = []
        self.initrd = []
        self.extra = []

    def section(self) -> Section:
        kernel, append = self.kernel[0] if self.kernel else (None, None)

        # Xen sections boot the hypervisor and load the kernel and initrd as
        # modules.
        if self.module and kernel and \
                pathlib.PurePath(re.sub(r"^\([^)]*\)", "", kernel)).name \
                .startswith("xen"):
            image, image_append = self.module[0]
            initrd = self.module[1][0] if len(self.module) > 1 else None
            return Section(
                self.name, SectionType.XEN, image, initrd, kernel,
                origin=self.origin, append=image_append or None,
                xen_append=append or None, extra=self.extra)

        initrd = self.initrd[0][0] if self.initrd else None
        return Section(
            self.name, SectionType.IMAGE, kernel, initrd,
            origin=self.origin, append=append or None, extra=self.extra)


def _line(keyword: str, path: str, options: str = None) -> str:
    return f"    {keyword} {path} {options}" if options \
        else f"    {keyword} {path}"
