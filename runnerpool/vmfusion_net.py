"""Running vmrun and finding a VMware Fusion guest's MAC and IP addresses."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from datetime import datetime

log = logging.getLogger(__name__)

VMNET_CONFIG_GLOB = "/Library/Preferences/VMware Fusion/vmnet*/dhcpd.conf"
DHCP_LEASES_GLOB = "/var/db/vmware/*.leases"

_FUSION_LIBRARY = ("/", "Applications", "VMware Fusion.app", "Contents", "Library")

_VMX_MAC = re.compile(r'^ethernet0.generatedAddress\s*=\s*"(.*?)"\s*$')

_HOST_BEGIN = re.compile(r"^host (.+?) {")
_HOST_END = re.compile(r"^}")
_FIXED_ADDRESS = re.compile(r"^\s*fixed-address (.+?);$")
_HARDWARE_ETHERNET = re.compile(r"^\s*hardware ethernet (.+?);$")

_LEASE_IP = re.compile(r"^lease (.+?) {$")
_LEASE_END = re.compile(r"^\s*ends \d (.+?);$")
_LEASE_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"


class VmrunNotFoundError(FileNotFoundError):
    """Raised when the vmrun executable cannot be found."""

    def __init__(self) -> None:
        super().__init__("VMRUN not found")


class HostNotRunningError(RuntimeError):
    """Raised when the virtual machine is not running."""

    def __init__(self) -> None:
        super().__init__("host is not running")


def find_vmware_command(cmd: str) -> str:
    """Locate a VMware command on PATH, else in the Fusion application bundle."""
    found = shutil.which(cmd)
    if found:
        return found
    return os.path.join(*_FUSION_LIBRARY, cmd)


def vmrun(*args: str) -> tuple[str, str]:
    """Run vmrun with args and return its (stdout, stderr).

    Raises VmrunNotFoundError if vmrun is missing and
    subprocess.CalledProcessError if it exits with an error.
    """
    os.umask(0o022)
    binary = find_vmware_command("vmrun")
    log.debug("executing: %s %s", binary, " ".join(args))
    try:
        result = subprocess.run(
            [binary, *args], capture_output=True, text=True, check=False
        )
    except FileNotFoundError as exc:
        raise VmrunNotFoundError() from exc
    if result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, [binary, *args], result.stdout, result.stderr
        )
    return result.stdout, result.stderr


def mac_from_vmx(text: str) -> str:
    """Return the generated MAC address in a .vmx file's text, lower case.

    Raises LookupError if there is none.
    """
    mac = ""
    for line in text.split("\n"):
        found = _VMX_MAC.match(line)
        if found:
            mac = found.group(1).lower()
    if not mac:
        raise LookupError("couldn't find MAC address in VMX file")
    log.debug("MAC address in VMX: %s", mac)
    return mac


def ip_from_vmnet_config(text: str, mac: str) -> str:
    """Return the fixed address given to mac in a vmnet dhcpd.conf text.

    Raises LookupError if the MAC has no host entry.
    """
    addresses: dict[str, str] = {}
    last_ip = ""
    last_mac = ""
    depth = 0
    for line in text.split("\n"):
        if _HOST_BEGIN.match(line):
            depth += 1
            continue
        if depth > 0 and _HOST_END.match(line):
            depth -= 1
            if depth == 0:
                addresses[last_mac] = last_ip
                last_ip = ""
                last_mac = ""
            continue
        if depth == 1:
            found = _FIXED_ADDRESS.match(line)
            if found:
                last_ip = found.group(1)
                continue
            found = _HARDWARE_ETHERNET.match(line)
            if found:
                last_mac = found.group(1).lower()
                continue

    log.debug("Following IPs found %s", addresses)
    try:
        ip = addresses[mac.lower()]
    except KeyError:
        raise LookupError(
            f"IP not found for MAC {mac} in vmnet configuration"
        ) from None
    log.debug("IP found in vmnet configuration file: %s", ip)
    return ip


def _parse_lease_end(value: str) -> datetime:
    try:
        return datetime.strptime(value, _LEASE_TIME_FORMAT)
    except ValueError:
        return datetime.min


def ip_from_dhcp_leases(text: str, mac: str) -> str:
    """Return the address of mac's latest-ending lease in a DHCP leases text.

    Raises LookupError if no lease belongs to the MAC.
    """
    last_ip = ""
    last_end = datetime.min
    current_ip = ""
    current_end = datetime.min
    for line in text.split("\n"):
        found = _LEASE_IP.match(line)
        if found:
            last_ip = found.group(1)
            continue
        found = _LEASE_END.match(line)
        if found:
            last_end = _parse_lease_end(found.group(1))
            continue
        found = _HARDWARE_ETHERNET.match(line)
        if found and found.group(1) == mac and current_end < last_end:
            current_ip = last_ip
            current_end = last_end

    if not current_ip:
        raise LookupError(f"IP not found for MAC {mac} in DHCP leases")
    log.debug("IP found in DHCP lease table: %s", current_ip)
    return current_ip