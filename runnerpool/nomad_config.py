"""Settings and small helpers for scheduling virtual machines through Nomad."""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass

IGNITE_PATH = "/usr/local/bin/ignite"
LITE_ENGINE_PORT = 9079

CLIENT_DISCONNECT_TIMEOUT = 4 * 60.0
DESTROY_RETRY_ATTEMPTS = 3
RESOURCE_JOB_TIMEOUT = 3 * 60.0
INIT_TIMEOUT = 5 * 60.0
DESTROY_TIMEOUT = 10 * 60.0

MIN_NOMAD_CPU_MHZ = 40
MIN_NOMAD_MEMORY_MB = 20
MACHINE_FREQUENCY_MHZ = 5100

DEFAULT_IMAGE = "weaveworks/ignite-ubuntu:latest"
DEFAULT_MEMORY_GB = "6"
DEFAULT_CPUS = "2"
DEFAULT_DISK_SIZE = "50GB"

_GIGS_TO_MEGS = 1024
_NAME_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


@dataclass
class NomadConfig:
    """Connection and virtual machine settings for the Nomad driver.

    Empty image, memory, CPU and disk settings fall back to their defaults.
    """

    address: str = ""
    ca_cert_path: str = ""
    client_cert_path: str = ""
    client_key_path: str = ""
    insecure: bool = False
    vm_image: str = DEFAULT_IMAGE
    vm_memory_gb: str = DEFAULT_MEMORY_GB
    vm_cpus: str = DEFAULT_CPUS
    vm_disk_size: str = DEFAULT_DISK_SIZE
    noop: bool = False

    def __post_init__(self) -> None:
        self.vm_image = self.vm_image or DEFAULT_IMAGE
        self.vm_memory_gb = self.vm_memory_gb or DEFAULT_MEMORY_GB
        self.vm_cpus = self.vm_cpus or DEFAULT_CPUS
        self.vm_disk_size = self.vm_disk_size or DEFAULT_DISK_SIZE


def destroy_job_id(vm: str) -> str:
    """Job ID of the job that destroys a VM."""
    return f"destroy_job_{vm}"


def init_job_id(vm: str) -> str:
    """Job ID of the job that creates a VM."""
    return f"init_job_{vm}"


def resource_job_id(vm: str) -> str:
    """Job ID of the job that holds a node's resources for a VM."""
    return f"init_job_resources_{vm}"


def min_nomad_resources() -> dict[str, int]:
    """The smallest resource request a task may make."""
    return {"CPU": MIN_NOMAD_CPU_MHZ, "MemoryMB": MIN_NOMAD_MEMORY_MB}


def health_check_script(sleep_seconds: float, port: str) -> str:
    """Script that sleeps, then fails once the lite engine port stops answering."""
    return (
        "\n"
        "#!/usr/bin/bash\n"
        'echo "sleeping..."\n'
        f"sleep {float(sleep_seconds):f}\n"
        'echo "done sleeping"\n'
        "while true\n"
        "do\n"
        f"nc -vz localhost {port}\n"
        "if [ $? -eq 1 ]\n"
        "then\n"
        '    echo "The port check failed"\n'
        "\texit 1\n"
        "fi\n"
        'echo "Port check passed..."\n'
        "sleep 30\n"
        "done"
    )


def random_name(n: int) -> str:
    """Return n random ASCII letters and digits."""
    if n < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(_NAME_ALPHABET) for _ in range(n))


def gigs_to_megs(gigs: int) -> int:
    """Convert gigabytes to megabytes."""
    return gigs * _GIGS_TO_MEGS