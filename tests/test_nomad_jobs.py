import base64

from runnerpool.nomad_config import (
    DESTROY_RETRY_ATTEMPTS,
    IGNITE_PATH,
    MACHINE_FREQUENCY_MHZ,
    NomadConfig,
    destroy_job_id,
    gigs_to_megs,
    init_job_id,
    min_nomad_resources,
    resource_job_id,
)
from runnerpool.nomad_jobs import (
    destroy_job,
    destroy_job_noop,
    init_job,
    init_job_noop,
    resource_job,
    resource_job_noop,
)

VM = "testvm"
NODE = "node-abc"


def _task(job, name):
    tasks = job["TaskGroups"][0]["Tasks"]
    return next(t for t in tasks if t["Name"] == name)


def _command(task):
    return task["Config"]["args"][1]


def test_resource_job_ids_and_group():
    job, job_id = resource_job(NomadConfig(), 2, 6, VM)
    assert job_id == resource_job_id(VM)
    assert job["ID"] == job_id
    assert job["Name"] == job_id
    assert job["Type"] == "batch"
    assert job["Datacenters"] == ["dc1"]
    group = job["TaskGroups"][0]
    assert group["Name"] == "init_task_group_resource_testvm"
    assert group["Networks"] == [{"DynamicPorts": [{"Label": VM}]}]
    assert group["RestartPolicy"] == {"Attempts": 0}
    assert job["Reschedule"] == {"Attempts": 0, "Unlimited": False}


def test_resource_job_leaves_headroom():
    job, _ = resource_job(NomadConfig(), 2, 6, VM)
    resources = _task(job, "sleep_and_ping")["Resources"]
    assert 0 < resources["CPU"] < MACHINE_FREQUENCY_MHZ * 2
    assert 0 < resources["MemoryMB"] < gigs_to_megs(6)


def test_resource_job_health_check_uses_port_label():
    job, _ = resource_job(NomadConfig(), 1, 1, VM)
    task = _task(job, "sleep_and_ping")
    assert task["Config"]["command"] == "/usr/bin/su"
    script = _command(task)
    assert "nc -vz localhost $NOMAD_PORT_testvm" in script
    assert "#!/usr/bin/bash" in script


def test_init_job_is_pinned_to_node():
    job, job_id, group = init_job(NomadConfig(), VM, "echo hi", 30000, NODE)
    assert job_id == init_job_id(VM)
    assert job["ID"] == job_id
    assert job["Name"] == VM
    assert group == "init_task_group_testvm"
    assert job["TaskGroups"][0]["Name"] == group
    assert job["Constraints"] == [
        {"LTarget": "${node.unique.id}", "RTarget": NODE, "Operand": "="}
    ]


def test_init_job_startup_script_round_trip():
    script = "#!/bin/bash\necho ready\n"
    job, _, _ = init_job(NomadConfig(), VM, script, 30000, NODE)
    command = _command(_task(job, "create_startup_script_on_host"))
    prefix, _, target = command.partition(" >> ")
    encoded = prefix.removeprefix("echo ")
    assert base64.b64decode(encoded).decode() == script
    assert target == "/usr/local/bin/testvm.sh"


def test_init_job_run_command():
    config = NomadConfig(vm_image="img:1", vm_cpus="4", vm_memory_gb="8", vm_disk_size="20GB")
    job, _, _ = init_job(config, VM, "x", 31000, NODE)
    command = _command(_task(job, "ignite_run"))
    assert command.startswith(f"{IGNITE_PATH} run img:1 --name testvm")
    assert "--cpus 4" in command
    assert "--memory 8GB" in command
    assert "--size 20GB" in command
    assert "--ports 31000:9079" in command
    assert command.endswith("--copy-files /usr/local/bin/testvm.sh:/usr/bin/testvm.sh")


def test_init_job_task_lifecycles():
    job, _, _ = init_job(NomadConfig(), VM, "x", 31000, NODE)
    names = [t["Name"] for t in job["TaskGroups"][0]["Tasks"]]
    assert names == [
        "create_startup_script_on_host",
        "ignite_run",
        "ignite_exec",
        "cleanup_startup_script_from_host",
    ]
    assert _task(job, "create_startup_script_on_host")["Lifecycle"]["Hook"] == "prestart"
    assert "Lifecycle" not in _task(job, "ignite_run")
    assert _task(job, "ignite_exec")["Lifecycle"] == {"Sidecar": False, "Hook": "poststop"}
    assert _command(_task(job, "cleanup_startup_script_from_host")) == "rm /usr/local/bin/testvm.sh"
    for task in job["TaskGroups"][0]["Tasks"]:
        assert task["Resources"] == min_nomad_resources()


def test_destroy_job():
    job, job_id = destroy_job(VM, NODE)
    assert job_id == destroy_job_id(VM)
    assert job["ID"] == job_id
    assert len(job["Name"]) == 20
    assert "Reschedule" not in job
    assert job["Constraints"][0]["RTarget"] == NODE
    group = job["TaskGroups"][0]
    assert group["Name"] == "delete_task_group_testvm"
    assert group["RestartPolicy"] == {"Attempts": DESTROY_RETRY_ATTEMPTS}
    command = _command(_task(job, "ignite_stop_and_rm"))
    assert command == f"{IGNITE_PATH} stop testvm && {IGNITE_PATH} rm testvm"


def test_destroy_job_names_are_random():
    first, _ = destroy_job(VM, NODE)
    second, _ = destroy_job(VM, NODE)
    assert first["Name"] != second["Name"] or first["Name"].isalnum()
    assert first["Name"].isalnum()


def test_resource_job_noop():
    job, job_id = resource_job_noop(VM)
    assert job_id == resource_job_id(VM)
    task = _task(job, "sleep_and_ping")
    assert _command(task) == "sleep 3"
    assert task["Resources"] == min_nomad_resources()
    assert job["TaskGroups"][0]["Networks"] == [{"DynamicPorts": [{"Label": VM}]}]


def test_init_job_noop():
    job, job_id, group = init_job_noop(VM, NODE)
    assert job_id == init_job_id(VM)
    assert group == "init_task_group_testvm"
    assert job["Constraints"][0]["RTarget"] == NODE
    assert _command(_task(job, "sleep")) == "sleep 7"


def test_destroy_job_noop():
    job, job_id = destroy_job_noop(VM, NODE)
    assert job_id == destroy_job_id(VM)
    assert job["TaskGroups"][0]["RestartPolicy"] == {"Attempts": DESTROY_RETRY_ATTEMPTS}
    assert _command(_task(job, "ignite_stop_and_rm")) == "sleep 2"


def test_disconnect_timeout_in_nanoseconds():
    job, _ = destroy_job_noop(VM, NODE)
    timeout = job["TaskGroups"][0]["StopAfterClientDisconnect"]
    assert timeout == 240 * 1_000_000_000