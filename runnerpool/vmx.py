"""VMware Fusion machine description (.vmx) and virtual machine states."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum


class VmState(IntEnum):
    """Power state of a virtual machine."""

    NONE = 0
    RUNNING = 1
    PAUSED = 2
    SAVED = 3
    STOPPED = 4
    STOPPING = 5
    STARTING = 6
    ERROR = 7
    TIMEOUT = 8

    def __str__(self) -> str:
        if self is VmState.NONE:
            return ""
        return self.name.capitalize()


@dataclass
class VmxTemplateData:
    """Values substituted into the machine description."""

    iso: str = ""
    machine_name: str = ""
    cpu: int = 1
    memory: int = 1024
    vdisk_path: str = ""
    store_path: str = ""
    version: str = ""


_Setting = tuple[str, str]

_ON = "TRUE"
_OFF = "FALSE"
_ROOT_PORTS = (4, 5, 6, 7)


def _usb_device(
    prefix: str, device_type: str, port: int, speed: str | None = None
) -> Iterator[_Setting]:
    if speed is not None:
        yield f"{prefix}.speed", speed
    yield f"{prefix}.present", _ON
    yield f"{prefix}.deviceType", device_type
    yield f"{prefix}.port", str(port)
    yield f"{prefix}.parent", "-1"


def _settings(data: VmxTemplateData) -> Iterator[_Setting]:
    yield ".encoding", "UTF-8"
    yield "config.version", "8"
    yield "virtualHW.version", "19"
    yield "pciBridge0.present", _ON
    for bridge in _ROOT_PORTS:
        yield f"pciBridge{bridge}.present", _ON
        yield f"pciBridge{bridge}.virtualDev", "pcieRootPort"
        yield f"pciBridge{bridge}.functions", "8"
    yield "vmci0.present", _ON
    yield "hpet0.present", _ON
    yield "virtualHW.productCompatibility", "hosted"
    for action in ("powerOff", "powerOn", "suspend", "reset"):
        yield f"powerType.{action}", "soft"
    yield "displayName", data.machine_name
    yield "usb.vbluetooth.startConnected", _ON
    yield "smc.present", _ON
    yield "smbios.restrictSerialCharset", _ON
    yield "firmware", "efi"
    yield "keyboardAndMouseProfile", "12345678-1234-1234-1234-123456789abc"
    yield "guestOS", data.version
    yield "board-id.reflectHost", _ON
    yield "ich7m.present", _ON
    yield "tools.syncTime", _ON
    yield "tools.upgrade.policy", "upgradeAtPowerCycle"
    yield "sound.autoDetect", _ON
    yield "sound.virtualDev", "hdaudio"
    yield "sound.fileName", "-1"
    yield "sound.present", _ON
    yield "numvcpus", str(int(data.cpu))
    yield "cpuid.coresPerSocket", "2"
    yield "memsize", str(int(data.memory))
    yield "sata0.present", _ON
    yield "sata0:0.fileName", f"{data.machine_name}.vmdk"
    yield "sata0:0.present", _ON
    yield "sata0:1.deviceType", "cdrom-image"
    yield "sata0:1.fileName", data.iso
    yield "sata0:1.present", _ON
    for controller in ("usb", "ehci", "usb_xhci"):
        yield f"{controller}.present", _ON
    yield "ethernet0.connectionType", "nat"
    yield "ethernet0.addressType", "generated"
    yield "ethernet0.virtualDev", "vmxnet3"
    yield "ethernet0.wakeOnPcktRcv", _OFF
    yield "ethernet0.linkStatePropagation.enable", _ON
    yield "ethernet0.present", _ON
    yield "floppy0.present", _OFF
    yield "numa.autosize.cookie", "20022"
    yield "numa.autosize.vcpu.maxPerVirtualNode", "2"
    yield "uuid.action", "create"
    yield "sata0:0.redo", ""
    slots = {
        "pciBridge0": 17,
        **{f"pciBridge{bridge}": 17 + bridge for bridge in _ROOT_PORTS},
        "usb": 32,
        "ethernet0": 160,
        "sound": 33,
        "ehci": 34,
        "usb_xhci": 192,
        "sata0": 35,
    }
    for device, slot in slots.items():
        yield f"{device}.pciSlotNumber", str(slot)
    yield "svga.vramSize", "268435456"
    yield "vmotion.checkpointFBSize", "134217728"
    yield "vmotion.checkpointSVGAPrimarySize", "268435456"
    yield "vmotion.svga.mobMaxSize", "268435456"
    yield "vmotion.svga.graphicsMemoryKB", "262144"
    yield "vmci0.id", "1234567890"
    yield "monitor.phys_bits_used", "45"
    yield "cleanShutdown", _ON
    yield "softPowerOff", _OFF
    yield from _usb_device("usb_xhci:6", "hub", 6, speed="2")
    yield from _usb_device("usb_xhci:7", "hub", 7, speed="4")
    yield "toolsInstallManager.updateCounter", "8"
    yield from _usb_device("usb:1", "hub", 1, speed="2")
    yield "toolsInstallManager.lastInstallError", "21004"
    yield "sata0:1.startConnected", _ON
    yield "gui.fitGuestUsingNativeDisplayResolution", _ON
    yield "vc.uuid", ""
    yield "policy.vm.mvmtid", ""
    yield from _usb_device("usb_xhci:4", "hid", 4)
    yield from _usb_device("ehci:0", "video", 0)
    yield "vhv.enable", _ON
    yield "ulm.disableMitigations", _ON


def render_vmx(data: VmxTemplateData) -> str:
    """Render the machine description for the given values."""
    lines = [f'{key} = "{value}"' for key, value in _settings(data)]
    lines.append(f"msg.autoAnswer = {_ON}")
    return "\n" + "\n".join(lines) + "\n"