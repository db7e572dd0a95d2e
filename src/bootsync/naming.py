#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import re
import typing

import bootsync.kernel

# Boot loaders whose menus get descriptive, product-qualified names.  All
# other boot loaders have limited display width or no localization and get
# short, generic names.
DESCRIPTIVE_LOADERS = ("grub", "grub2", "grub2-efi", "lilo")

# Architectures with known-working failsafe kernels.
FAILSAFE_ARCHITECTURES = ("i386", "x86_64", "s390x", "ia64")

FAILSAFE_FLAVORS = (
    bootsync.kernel.FlavorKind.DEFAULT, bootsync.kernel.FlavorKind.SMP,
    bootsync.kernel.FlavorKind.BIGSMP, bootsync.kernel.FlavorKind.PAE,
    bootsync.kernel.FlavorKind.DESKTOP)


class Names(object):
    """Section names to create for one kernel image."""

    def __init__(self, primary: str, failsafe: str = None) -> None:
        self.primary = primary
        self.failsafe = failsafe

    def __repr__(self) -> str:
        return f"Names({self.primary!r}, {self.failsafe!r})"


def normalize_architecture(architecture: str) -> str:
    """Maps i486, i586 and i686 to i386, as uname -i does."""
    return "i386" if re.match(r"i[3-6]86$", architecture) else architecture


def wants_failsafe(
        architecture: str, flavor: bootsync.kernel.KernelFlavor,
        xen: bool) -> bool:
    """
    Returns whether a failsafe sibling is created next to the primary
    section.

    Keyword arguments:
    architecture -- the host CPU architecture
    flavor       -- the flavor of the kernel image
    xen          -- whether the section being added is a Xen section
    """
    return not xen and flavor.kind in FAILSAFE_FLAVORS and \
        normalize_architecture(architecture) in FAILSAFE_ARCHITECTURES


def section_names(
        loader: str, image: str, product: str, xen: bool = False,
        previous: bool = False, architecture: str = "",
        name: str = None) -> Names:
    """
    Derives the section names for a kernel image.  The failsafe name is None
    if no failsafe sibling is to be created.

    Keyword arguments:
    loader       -- the boot loader
    image        -- the kernel image path
    product      -- the product name of the running system
    xen          -- whether a Xen section is being added (default False)
    previous     -- whether the section is for the previous kernel
                    (default False)
    architecture -- the host CPU architecture (default "")
    name         -- the name supplied by the caller, used for images without
                    a flavor suffix (default None)
    """
    kernel = bootsync.kernel.parse_image(image)
    flavor = kernel.flavor
    descriptive = loader in DESCRIPTIVE_LOADERS

    if bootsync.kernel.FlavorKind.NONE == flavor.kind and not xen:
        return Names(name or product)

    failsafe = wants_failsafe(architecture, flavor, xen)

    if previous:
        # Previous entries do not track the product name.
        product = "Kernel"

    label = f"{product} - {kernel.version}" if kernel.version else product

    # Canonical flavors are named the same with and without Xen.
    if flavor.is_canonical:
        primary = label
    elif xen:
        token = flavor.token if flavor.is_xen else "xen"

        if descriptive:
            primary = f"{token.capitalize()} -- {label}"
        elif previous:
            return Names(f"previous {token}")
        else:
            return Names(token.capitalize())
    else:
        primary = f"{flavor.token.capitalize()} -- {label}"

    if not descriptive:
        if previous:
            return Names(
                "previous linux", "previous failsafe" if failsafe else None)

        return Names(product, "Failsafe" if failsafe else None)

    if previous:
        primary = f"Previous {primary}"

    return Names(primary, f"Failsafe -- {primary}" if failsafe else None)
