#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import enum
import pathlib
import re
import typing


class FlavorKind(enum.Enum):
    """Kernel flavor kind."""

    DEFAULT = "default"
    SMP = "smp"
    BIGSMP = "bigsmp"
    PAE = "pae"
    DESKTOP = "desktop"
    XEN = "xen"
    DEBUG = "debug"
    OTHER = "other"
    NONE = "none"


class KernelFlavor(object):
    """
    Kernel build variant.  Xen and unrecognized flavors carry the flavor
    token found in the image file name, e.g. "xenpae" or "rt".
    """

    def __init__(self, kind: FlavorKind, token: str = "") -> None:
        self.kind = kind
        self.token = token if token else (
            kind.value if kind not in [FlavorKind.OTHER, FlavorKind.NONE]
            else "")

    def __eq__(self, other: typing.Any) -> bool:
        return isinstance(other, KernelFlavor) and \
            (self.kind, self.token) == (other.kind, other.token)

    def __hash__(self) -> int:
        return hash((self.kind, self.token))

    def __repr__(self) -> str:
        return f"KernelFlavor({self.kind.name}, {self.token!r})"

    def __str__(self) -> str:
        return self.token

    @property
    def is_canonical(self) -> bool:
        """True for the flavors of the standard distribution kernel."""
        return self.kind in [
            FlavorKind.DEFAULT, FlavorKind.SMP, FlavorKind.BIGSMP,
            FlavorKind.PAE]

    @property
    def is_xen(self) -> bool:
        return FlavorKind.XEN == self.kind


class KernelImage(object):
    """Kernel image file name broken down into version and flavor."""

    def __init__(self, version: str, flavor: KernelFlavor) -> None:
        self.version = version
        self.flavor = flavor


_kinds = {
    kind.value: kind for kind in FlavorKind
    if kind not in [FlavorKind.XEN, FlavorKind.OTHER, FlavorKind.NONE]}


def parse_flavor(token: str) -> KernelFlavor:
    """
    Classifies a flavor token.

    Keyword arguments:
    token -- the flavor token, e.g. "default" or "xenpae"
    """
    token = token.lower()

    if not token:
        return KernelFlavor(FlavorKind.NONE)
    elif token in _kinds:
        return KernelFlavor(_kinds[token])
    elif token.startswith("xen"):
        return KernelFlavor(FlavorKind.XEN, token)

    return KernelFlavor(FlavorKind.OTHER, token)


def parse_image(image: str) -> KernelImage:
    """
    Breaks a kernel image path such as /boot/vmlinuz-5.3.18-59-default down
    into its version ("5.3.18-59") and flavor (default).  Images without a
    flavor suffix, such as /boot/vmlinuz, have the flavor NONE.

    Keyword arguments:
    image -- the kernel image path or file name
    """
    name = pathlib.PurePath(image).name
    segments = name.split("-")

    # The first segment is the image type (vmlinuz, vmlinux, image, ...).
    segments = segments[1:]

    if not segments:
        return KernelImage("", KernelFlavor(FlavorKind.NONE))

    # A trailing segment starting with a digit is still part of the version.
    if re.match(r"\d", segments[-1]):
        return KernelImage("-".join(segments), KernelFlavor(FlavorKind.NONE))

    return KernelImage("-".join(segments[:-1]), parse_flavor(segments[-1]))
