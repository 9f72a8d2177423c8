"""Nomad job specifications for creating, holding and destroying virtual machines.

Jobs are plain dictionaries in the shape the Nomad HTTP API accepts.
Durations are given in nanoseconds, as the API expects.
"""

from __future__ import annotations

import base64
from typing import Any

from runnerpool.nomad_config import (
    CLIENT_DISCONNECT_TIMEOUT,
    DESTROY_RETRY_ATTEMPTS,
    IGNITE_PATH,
    INIT_TIMEOUT,
    LITE_ENGINE_PORT,
    MACHINE_FREQUENCY_MHZ,
    RESOURCE_JOB_TIMEOUT,
    NomadConfig,
    destroy_job_id,
    gigs_to_megs,
    health_check_script,
    init_job_id,
    min_nomad_resources,
    random_name,
    resource_job_id,
)

Job = dict[str, Any]

_NANOSECONDS = 1_000_000_000
_SHELL = "/usr/bin/su"
# Headroom left on a node so that destroy and init tasks can still be scheduled.
_CPU_BUFFER_MHZ = 109
_MEMORY_BUFFER_MB = 53
_SLEEP_BUFFER = 2 * 60.0


def _disconnect_timeout() -> int:
    return int(CLIENT_DISCONNECT_TIMEOUT * _NANOSECONDS)


def _node_constraint(node_id: str) -> dict[str, str]:
    return {"LTarget": "${node.unique.id}", "RTarget": node_id, "Operand": "="}


def _no_reschedule() -> dict[str, Any]:
    return {"Attempts": 0, "Unlimited": False}


def _shell_task(
    name: str,
    command: str,
    resources: dict[str, int] | None = None,
    hook: str | None = None,
) -> dict[str, Any]:
    task: dict[str, Any] = {
        "Name": name,
        "Driver": "raw_exec",
        "Resources": resources if resources is not None else min_nomad_resources(),
        "Config": {"command": _SHELL, "args": ["-c", command]},
    }
    if hook is not None:
        task["Lifecycle"] = {"Sidecar": False, "Hook": hook}
    return task


def _task_group(
    name: str,
    tasks: list[dict[str, Any]],
    restart_attempts: int = 0,
    port_label: str | None = None,
) -> dict[str, Any]:
    group: dict[str, Any] = {
        "StopAfterClientDisconnect": _disconnect_timeout(),
        "RestartPolicy": {"Attempts": restart_attempts},
        "Name": name,
        "Count": 1,
        "Tasks": tasks,
    }
    if port_label is not None:
        group["Networks"] = [{"DynamicPorts": [{"Label": port_label}]}]
    return group


def _batch_job(
    job_id: str,
    name: str,
    group: dict[str, Any],
    node_id: str | None = None,
    reschedule: bool = True,
) -> Job:
    job: Job = {
        "ID": job_id,
        "Name": name,
        "Type": "batch",
        "Datacenters": ["dc1"],
    }
    if node_id is not None:
        job["Constraints"] = [_node_constraint(node_id)]
    if reschedule:
        job["Reschedule"] = _no_reschedule()
    job["TaskGroups"] = [group]
    return job


def _resource_group_name(vm: str) -> str:
    return f"init_task_group_resource_{vm}"


def _init_group_name(vm: str) -> str:
    return f"init_task_group_{vm}"


def _destroy_group_name(vm: str) -> str:
    return f"delete_task_group_{vm}"


def resource_job(config: NomadConfig, cpus: int, mem_gb: int, vm: str) -> tuple[Job, str]:
    """Job that holds a node's resources for as long as the VM lives.

    It sleeps past the longest VM creation time, then checks the lite engine
    port periodically and exits once the VM stops answering.
    """
    job_id = resource_job_id(vm)
    sleep_seconds = RESOURCE_JOB_TIMEOUT + INIT_TIMEOUT + _SLEEP_BUFFER
    cpu = MACHINE_FREQUENCY_MHZ * cpus - _CPU_BUFFER_MHZ
    memory = gigs_to_megs(mem_gb) - _MEMORY_BUFFER_MB

    task = _shell_task(
        "sleep_and_ping",
        health_check_script(sleep_seconds, f"$NOMAD_PORT_{vm}"),
        resources={"MemoryMB": memory, "CPU": cpu},
    )
    group = _task_group(_resource_group_name(vm), [task], port_label=vm)
    return _batch_job(job_id, job_id, group), job_id


def init_job(
    config: NomadConfig, vm: str, startup_script: str, host_port: int, node_id: str
) -> tuple[Job, str, str]:
    """Job pinned to a node that starts the VM and runs the startup script in it.

    Returns the job, its ID and the name of its task group.
    """
    job_id = init_job_id(vm)
    group_name = _init_group_name(vm)
    encoded_script = base64.b64encode(startup_script.encode("utf-8")).decode("ascii")

    host_path = f"/usr/local/bin/{vm}.sh"
    vm_path = f"/usr/bin/{vm}.sh"

    run_cmd = (
        f"{IGNITE_PATH} run {config.vm_image} --name {vm} --cpus {config.vm_cpus} "
        f"--memory {config.vm_memory_gb}GB --size {config.vm_disk_size} --ssh "
        f"--runtime=docker --ports {host_port}:{LITE_ENGINE_PORT} "
        f"--copy-files {host_path}:{vm_path}"
    )

    tasks = [
        _shell_task(
            "create_startup_script_on_host",
            f"echo {encoded_script} >> {host_path}",
            hook="prestart",
        ),
        _shell_task("ignite_run", run_cmd),
        _shell_task(
            "ignite_exec",
            f"{IGNITE_PATH} exec {vm} 'cat {vm_path} | base64 --decode | bash'",
            hook="poststop",
        ),
        _shell_task(
            "cleanup_startup_script_from_host",
            f"rm {host_path}",
            hook="poststop",
        ),
    ]
    group = _task_group(group_name, tasks)
    return _batch_job(job_id, vm, group, node_id=node_id), job_id, group_name


def destroy_job(vm: str, node_id: str) -> tuple[Job, str]:
    """Job pinned to a node that stops and removes the VM."""
    job_id = destroy_job_id(vm)
    task = _shell_task(
        "ignite_stop_and_rm",
        f"{IGNITE_PATH} stop {vm} && {IGNITE_PATH} rm {vm}",
    )
    group = _task_group(
        _destroy_group_name(vm), [task], restart_attempts=DESTROY_RETRY_ATTEMPTS
    )
    job = _batch_job(job_id, random_name(20), group, node_id=node_id, reschedule=False)
    return job, job_id


def resource_job_noop(vm: str) -> tuple[Job, str]:
    """Stand-in resource job for scale testing: takes minimal resources and sleeps."""
    job_id = resource_job_id(vm)
    task = _shell_task("sleep_and_ping", "sleep 3")
    group = _task_group(_resource_group_name(vm), [task], port_label=vm)
    return _batch_job(job_id, job_id, group), job_id


def init_job_noop(vm: str, node_id: str) -> tuple[Job, str, str]:
    """Stand-in init job for scale testing: sleeps instead of creating a VM."""
    job_id = init_job_id(vm)
    group_name = _init_group_name(vm)
    task = _shell_task("sleep", "sleep 7")
    group = _task_group(group_name, [task])
    return _batch_job(job_id, vm, group, node_id=node_id), job_id, group_name


def destroy_job_noop(vm: str, node_id: str) -> tuple[Job, str]:
    """Stand-in destroy job for scale testing: sleeps instead of removing a VM."""
    job_id = destroy_job_id(vm)
    task = _shell_task("ignite_stop_and_rm", "sleep 2")
    group = _task_group(
        _destroy_group_name(vm), [task], restart_attempts=DESTROY_RETRY_ATTEMPTS
    )
    job = _batch_job(job_id, random_name(20), group, node_id=node_id, reschedule=False)
    return job, job_id