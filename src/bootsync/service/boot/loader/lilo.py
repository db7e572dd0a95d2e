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

# Keys mapped onto Section fields.  Everything else is kept verbatim.
_FIELDS = {
    "label": "name",
    "initrd": "initrd",
    "append": "append"
}


class LILO(bootsync.service.boot.Loader):
    """LILO boot loader (lilo.conf)."""

    names = ("lilo",)
    install_on_refresh = True
    program = "lilo"

    @property
    def path(self) -> pathlib.Path:
        return self._context.path("/etc/lilo.conf")

    def install(
            self, installer: bootsync.service.installer.Installer,
            device: str = None) -> None:
        """
        Runs the map installer.  The boot device is taken from lilo.conf.

        Keyword arguments:
        installer -- the installer used to run external programs
        device    -- ignored
        """
        self._run(installer, self.program)

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

            key, value = _split(line)

            if key in ["image", "other"]:
                current = Section(None, image=value if "image" == key
                                  else None)

                if "other" == key:
                    current.extra.append(f"other = {value}")

                sections.append((current, tag))
                tag = None
            elif current is None:
                if "default" == key:
                    default = value
                else:
                    self._header.append(line)
            elif key in _FIELDS:
                setattr(current, _FIELDS[key], value)
            elif line.strip():
                current.extra.append(line.strip())

        for section, tag in sections:
            section.origin = Origin.guess(tag, section.name)
            section.is_default = default is not None and \
                default == section.name

        return [section for section, _ in sections]

    def _format(self, sections: typing.Sequence[Section]) -> str:
        buffer = [line for line in self._header]

        while buffer and not buffer[-1].strip():
            buffer.pop()

        for section in sections:
            if section.is_default:
                buffer.append(f"default = {_quote(section.name)}")
                break

        for section in sections:
            if SectionType.XEN == section.type:
                continue

            buffer.append("")

            if Origin.NONE != section.origin:
                buffer.append(bootsync.service.boot.IDENTIFIER.format(
                    section.origin.value))

            if section.image:
                buffer.append(f"image = {section.image}")
                buffer += [f"    {line}" for line in section.extra]
            else:
                buffer.append(section.extra[0])
                buffer += [f"    {line}" for line in section.extra[1:]]

            buffer.append(f"    label = {_quote(section.name)}")

            if section.initrd:
                buffer.append(f"    initrd = {section.initrd}")

            if section.append:
                buffer.append(f"    append = \"{section.append}\"")

        return "\n".join(buffer) + "\n"


def _split(line: str) -> typing.Tuple[typing.Optional[str], str]:
    m = re.match(r"^\s*(?P<key>[\w-]+)\s*=\s*(?P<value>.*?)\s*$", line)

    if not m:
        return None, ""

    value = m.group("value")

    if len(value) > 1 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]

    return m.group("key").lower(), value


def _quote(value: str) -> str:
    return f"\"{value}\"" if re.search(r"\s", value or "") else value
