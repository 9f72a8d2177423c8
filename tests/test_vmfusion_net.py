import subprocess
from unittest import mock

import pytest

from runnerpool.vmfusion_net import (
    HostNotRunningError,
    VmrunNotFoundError,
    find_vmware_command,
    ip_from_dhcp_leases,
    ip_from_vmnet_config,
    mac_from_vmx,
    vmrun,
)

MAC = "aa:bb:cc:dd:ee:01"
OTHER_MAC = "aa:bb:cc:dd:ee:02"


def test_find_command_on_path():
    with mock.patch("runnerpool.vmfusion_net.shutil.which", return_value="/opt/bin/vmrun"):
        assert find_vmware_command("vmrun") == "/opt/bin/vmrun"


def test_find_command_falls_back_to_bundle():
    with mock.patch("runnerpool.vmfusion_net.shutil.which", return_value=None):
        path = find_vmware_command("vmrun")
    assert path == "/Applications/VMware Fusion.app/Contents/Library/vmrun"


def test_vmrun_missing_binary():
    with mock.patch(
        "runnerpool.vmfusion_net.subprocess.run", side_effect=FileNotFoundError()
    ):
        with pytest.raises(VmrunNotFoundError):
            vmrun("list")


def test_vmrun_returns_output():
    done = subprocess.CompletedProcess(["vmrun", "list"], 0, "listing\n", "")
    with mock.patch("runnerpool.vmfusion_net.subprocess.run", return_value=done) as run:
        assert vmrun("list") == ("listing\n", "")
    assert run.call_args.args[0][1:] == ["list"]


def test_vmrun_failure_raises():
    done = subprocess.CompletedProcess(["vmrun"], 1, "", "bad")
    with mock.patch("runnerpool.vmfusion_net.subprocess.run", return_value=done):
        with pytest.raises(subprocess.CalledProcessError) as info:
            vmrun("start", "x.vmx")
    assert info.value.stderr == "bad"


def test_host_not_running_message():
    assert str(HostNotRunningError()) == "host is not running"


def test_mac_from_vmx_last_match_lowered():
    text = (
        'ethernet0.present = "TRUE"\n'
        f'ethernet0.generatedAddress = "{OTHER_MAC}"\n'
        f'ethernet0.generatedAddress = "{MAC.upper()}"  \n'
    )
    assert mac_from_vmx(text) == MAC


def test_mac_from_vmx_missing():
    with pytest.raises(LookupError):
        mac_from_vmx('ethernet0.present = "TRUE"\n')


def _vmnet_conf() -> str:
    return (
        "allow unknown-clients;\n"
        "host first {\n"
        f"    hardware ethernet {OTHER_MAC.upper()};\n"
        "    fixed-address 192.168.50.10;\n"
        "}\n"
        "host second {\n"
        f"    hardware ethernet {MAC};\n"
        "    fixed-address 192.168.50.20;\n"
        "}\n"
    )


def test_vmnet_config_finds_ip():
    assert ip_from_vmnet_config(_vmnet_conf(), MAC) == "192.168.50.20"
    assert ip_from_vmnet_config(_vmnet_conf(), OTHER_MAC) == "192.168.50.10"


def test_vmnet_config_case_insensitive_lookup():
    assert ip_from_vmnet_config(_vmnet_conf(), MAC.upper()) == "192.168.50.20"


def test_vmnet_config_unknown_mac():
    with pytest.raises(LookupError):
        ip_from_vmnet_config(_vmnet_conf(), "aa:bb:cc:dd:ee:09")


def _leases() -> str:
    return (
        "lease 192.168.50.101 {\n"
        "    ends 2 2023/01/10 10:00:00;\n"
        f"    hardware ethernet {MAC};\n"
        "}\n"
        "lease 192.168.50.102 {\n"
        "    ends 3 2023/01/11 10:00:00;\n"
        f"    hardware ethernet {MAC};\n"
        "}\n"
        "lease 192.168.50.103 {\n"
        "    ends 1 2023/01/09 10:00:00;\n"
        f"    hardware ethernet {MAC};\n"
        "}\n"
        "lease 192.168.50.104 {\n"
        "    ends 4 2023/01/12 10:00:00;\n"
        f"    hardware ethernet {OTHER_MAC};\n"
        "}\n"
    )


def test_dhcp_leases_latest_wins():
    assert ip_from_dhcp_leases(_leases(), MAC) == "192.168.50.102"
    assert ip_from_dhcp_leases(_leases(), OTHER_MAC) == "192.168.50.104"


def test_dhcp_leases_mac_is_case_sensitive():
    with pytest.raises(LookupError):
        ip_from_dhcp_leases(_leases(), MAC.upper())


def test_dhcp_leases_unparseable_end_never_wins():
    text = (
        "lease 192.168.50.105 {\n"
        "    ends 1 never;\n"
        f"    hardware ethernet {MAC};\n"
        "}\n"
    )
    with pytest.raises(LookupError):
        ip_from_dhcp_leases(text, MAC)