#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import enum
import logging
import typing

import bootsync.configuration
import bootsync.error
import bootsync.kernel
import bootsync.naming
import bootsync.registry
import bootsync.service.block
import bootsync.service.boot
import bootsync.service.installer
import bootsync.service.product
import bootsync.service.queue

_log = logging.getLogger(__name__)

Origin = bootsync.service.boot.Origin
Section = bootsync.service.boot.Section
SectionType = bootsync.service.boot.SectionType


class Operation(enum.Enum):
    """Boot loader operation."""

    ADD = "add"
    REMOVE = "remove"
    REFRESH = "refresh"
    REINIT = "reinit"


class Request(object):
    """A single update-bootloader invocation."""

    def __init__(
            self, operations: typing.Iterable[Operation],
            image: str = None, initrd: str = None, xen: bool = False,
            xen_kernel: str = None, name: str = None, default: bool = False,
            force_default: bool = False, force: bool = False,
            previous: bool = False,
            argv: typing.Sequence[str] = ()) -> None:
        self.operations = list(operations)
        self.image = image
        self.initrd = initrd
        self.xen = xen or xen_kernel is not None
        self.xen_kernel = xen_kernel
        self.name = name
        self.default = default
        self.force_default = force_default
        self.force = force
        self.previous = previous
        self.argv = list(argv)

    @property
    def operation(self) -> Operation:
        """
        Returns the requested operation.  Raises InvalidUsageError unless
        exactly one operation was requested.
        """
        if 1 != len(self.operations):
            raise bootsync.error.InvalidUsageError(
                "Exactly one of --add, --remove, --refresh or --reinit is "
                "required")

        return self.operations[0]

    @property
    def section_type(self) -> SectionType:
        return SectionType.XEN if self.xen else SectionType.IMAGE


class Coordinator(object):
    """Executes update-bootloader requests."""

    def __init__(
            self, configuration: bootsync.configuration.Configuration,
            installer: bootsync.service.installer.Installer = None,
            resolver: bootsync.service.block.Resolver = None,
            queue: bootsync.service.queue.CommandLog = None,
            product: bootsync.service.product.Product = None) -> None:
        self._configuration = configuration
        self._context = configuration.context
        self._installer = installer or \
            bootsync.service.installer.CommandInstaller()
        self._resolver = resolver or bootsync.service.block.Resolver(
            bootsync.service.block.Topology(self._context.root_prefix))
        self._queue = queue or bootsync.service.queue.CommandLog(
            configuration.path("queue"))
        self._product = product or \
            bootsync.service.product.Product(configuration)

    def run(self, request: Request) -> None:
        """
        Executes request.  Inside an installation image, the request is only
        queued for later replay.

        Keyword arguments:
        request -- the request
        """
        operation = self._validate(request)

        if self._context.is_install_image and not self._context.is_replay:
            _log.info("Running inside the installation image, delaying %s",
                      operation.value)
            self._queue.append(request.argv)
            return

        name = self._configuration.loader()

        if "none" == name:
            _log.info("No boot loader configured, nothing to do")
            return

        loader = bootsync.service.boot.load(name, self._configuration)

        if not loader.available(self._installer):
            return

        _log.info("%s: %s image=%s initrd=%s xen=%s", name, operation.value,
                  request.image, request.initrd, request.xen)
        getattr(self, f"_{operation.value}")(name, loader, request)

    def _validate(self, request: Request) -> Operation:
        operation = request.operation

        if request.force_default and Operation.ADD != operation:
            raise bootsync.error.InvalidUsageError(
                "--force-default is only valid with --add")

        if Operation.ADD == operation:
            if not request.name:
                raise bootsync.error.MissingArgumentError(
                    "--add requires --name")

            if not request.image:
                raise bootsync.error.MissingArgumentError(
                    "--add requires --image")
        elif Operation.REMOVE == operation and not request.image:
            raise bootsync.error.MissingArgumentError(
                "--remove requires --image")

        return operation

    def _add(
            self, name: str, loader: bootsync.service.boot.Loader,
            request: Request) -> None:
        if not loader.manages_sections:
            _log.info("%s generates its own menu, refreshing instead", name)
            self._refresh(name, loader, request)
            return

        if request.xen and not loader.supports_xen:
            _log.warning("%s does not support Xen, not adding %s", name,
                         request.image)
            return

        names = bootsync.naming.section_names(
            name, request.image, self._product.name(), request.xen,
            request.previous, self._context.architecture, request.name)
        _log.debug("Section names: %r", names)

        section = Section(
            names.primary, request.section_type, request.image,
            request.initrd, origin=Origin.XEN if request.xen else Origin.LINUX,
            append=self._configuration.append or None)

        if request.xen:
            section.xen_kernel = request.xen_kernel or \
                self._configuration.xen_kernel
            section.xen_append = self._configuration.xen_append or None

        siblings = []

        if names.failsafe:
            siblings.append(Section(
                names.failsafe, SectionType.IMAGE, request.image,
                request.initrd, origin=Origin.FAILSAFE,
                append=self._configuration.failsafe_append or None))

        bootsync.registry.SectionRegistry(loader).add(
            section, request.force, siblings,
            lambda current: self._wants_default(request, current))

        if loader.install_on_refresh:
            loader.install(self._installer, None)

    def _wants_default(
            self, request: Request,
            current: typing.Optional[Section]) -> bool:
        if request.force_default:
            return True

        if current is None:
            return request.default

        # The new kernel takes over if it has the flavor of the current
        # default kernel.
        flavor = bootsync.kernel.parse_image(request.image).flavor
        current_flavor = bootsync.kernel.parse_image(current.image or "").flavor
        _log.debug("Default flavor %s, new flavor %s", current_flavor, flavor)
        return flavor == current_flavor

    def _remove(
            self, name: str, loader: bootsync.service.boot.Loader,
            request: Request) -> None:
        if not loader.manages_sections:
            _log.info("%s generates its own menu, refreshing instead", name)
            self._refresh(name, loader, request)
            return

        filter = bootsync.service.boot.Filter(
            request.section_type, request.image, request.initrd,
            request.xen_kernel, origins=bootsync.service.boot.PRIMARY_ORIGINS)
        count = bootsync.registry.SectionRegistry(loader).remove(
            filter, request.force, include_failsafe=not request.xen)

        if count and loader.install_on_refresh:
            loader.install(self._installer, None)

    def _refresh(
            self, name: str, loader: bootsync.service.boot.Loader,
            request: Request) -> None:
        loader.update(self._installer)

        if loader.install_on_refresh:
            loader.install(self._installer, self._install_device(loader))

    def _reinit(
            self, name: str, loader: bootsync.service.boot.Loader,
            request: Request) -> None:
        loader.update(self._installer)
        loader.install(self._installer, self._install_device(loader))

    def _install_device(
            self,
            loader: bootsync.service.boot.Loader) -> typing.Optional[str]:
        if not loader.needs_install_device:
            return None

        if self._configuration.install_device:
            device = self._configuration.install_device
            return device[5:] if device.startswith("/dev/") else device

        mount_point = self._configuration.boot_mount_point

        try:
            return self._resolver.resolve(mount_point)
        except bootsync.error.DeviceNotFoundError as e:
            raise bootsync.error.NoInstallDeviceError(
                f"Unable to determine the disk to install to: {e.message}")
