"""A VMware Fusion virtual machine kept in a store directory."""

from __future__ import annotations

import glob
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Iterable

from runnerpool.vmfusion_net import (
    DHCP_LEASES_GLOB,
    VMNET_CONFIG_GLOB,
    HostNotRunningError,
    VmrunNotFoundError,
    ip_from_dhcp_leases,
    ip_from_vmnet_config,
    mac_from_vmx,
    vmrun,
)
from runnerpool.vmx import VmState

log = logging.getLogger(__name__)

DEFAULT_CPU = 1
DEFAULT_MEMORY = 1024


@dataclass
class FusionMachine:
    """Settings of a Fusion virtual machine and operations on it.

    A CPU count or memory size of zero falls back to the default.
    """

    username: str = ""
    password: str = ""
    root_dir: str = ""
    iso: str = ""
    machine_name: str = ""
    cpu: int = DEFAULT_CPU
    memory: int = DEFAULT_MEMORY
    vdisk_path: str = ""
    store_path: str = ""
    user_data: str = ""
    vmnet_config_glob: str = VMNET_CONFIG_GLOB
    dhcp_leases_glob: str = DHCP_LEASES_GLOB

    def __post_init__(self) -> None:
        if not self.cpu:
            self.cpu = DEFAULT_CPU
        if not self.memory:
            self.memory = DEFAULT_MEMORY

    def resolve_store_path(self, file: str) -> str:
        """Path of file inside this machine's bundle in the store."""
        parts = [
            part
            for part in (self.store_path, f"{self.machine_name}.vmwarevm", file)
            if part
        ]
        return os.path.normpath(os.path.join(*parts))

    def vmx_path(self) -> str:
        """Path of this machine's .vmx description."""
        return self.resolve_store_path(f"{self.machine_name}.vmx")

    def state(self) -> VmState:
        """RUNNING if vmrun lists the machine, else STOPPED.

        Raises FileNotFoundError if the .vmx file does not exist.
        """
        path = self.vmx_path()
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        resolved = os.path.realpath(path)
        try:
            stdout, _ = vmrun("list")
        except VmrunNotFoundError:
            stdout = ""
        except subprocess.CalledProcessError as exc:
            stdout = exc.stdout or ""
        return VmState.RUNNING if resolved in stdout else VmState.STOPPED

    def mac_address(self) -> str:
        """The generated MAC address recorded in the .vmx file.

        Raises LookupError if the file holds none.
        """
        path = self.vmx_path()
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
        try:
            return mac_from_vmx(text)
        except LookupError:
            raise LookupError(f"couldn't find MAC address in VMX file {path}") from None

    def ip_address(self) -> str:
        """The guest's IP address, from vmnet configuration or DHCP leases.

        Raises HostNotRunningError if the machine is not running and
        LookupError if no address is found.
        """
        if self.state() is not VmState.RUNNING:
            raise HostNotRunningError()
        mac = self.mac_address()

        found = self._search(self.vmnet_config_glob, ip_from_vmnet_config, mac, "configuration")
        if found is not None:
            return found
        found = self._search(self.dhcp_leases_glob, ip_from_dhcp_leases, mac, "leases")
        if found is not None:
            return found
        raise LookupError(f"IP not found for MAC {mac} in DHCP leases")

    @staticmethod
    def _search(pattern: str, parse, mac: str, kind: str) -> str | None:
        for path in sorted(glob.glob(pattern)):
            log.debug("Trying to find IP address in %s file: %s", kind, path)
            try:
                with open(path, encoding="utf-8") as handle:
                    return parse(handle.read(), mac)
            except (OSError, LookupError):
                continue
        return None

    def destroy(self, vmx_paths: Iterable[str]) -> None:
        """Stop and delete each machine given by its .vmx path.

        Raises ValueError if no paths are given; a failed delete is raised.
        """
        paths = list(vmx_paths)
        if not paths:
            raise ValueError("no instance IDs provided")
        for path in paths:
            try:
                vmrun("stop", path)
            except (VmrunNotFoundError, subprocess.CalledProcessError):
                pass
            try:
                vmrun("deleteVM", path)
            except (VmrunNotFoundError, subprocess.CalledProcessError):
                log.exception("VMFusion: error deleting VM")
                raise