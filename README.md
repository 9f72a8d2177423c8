# runnerpool

Building blocks for a continuous-integration runner that keeps warm pools
of virtual machines and hands them out to build stages.

The package has no third-party dependencies.

## What is inside

| Module | Purpose |
| --- | --- |
| `runnerpool.strategy` | Pool sizing strategies: `Greedy` and `MinMax`, both following the `Strategy` interface. |
| `runnerpool.encoder` | `encode(value)` turns a settings value into the string form passed to steps. |
| `runnerpool.match` | `make_matcher(repos, events, trusted)` builds a guard that decides whether a `Repo` and `Build` may run; `path_match` does the glob matching and raises `PatternError` for a malformed pattern. |
| `runnerpool.httprender` | Helpers that write JSON bodies and error responses (`ok`, `json_response`, `bad_request`, `not_found`, `client_error`, `error`, `internal_error`) to a `Response`. |
| `runnerpool.naming` | `random_string(n)` and `substr_suffix(s, max_len)` for building machine names within length limits. |
| `runnerpool.nomad_status` | The `JobStatus` enumeration and `parse_status`. |
| `runnerpool.nomad_config` | `NomadConfig` and helpers that name Nomad jobs and size their resources. |
| `runnerpool.nomad_jobs` | Nomad job specifications, as plain dictionaries, that reserve a node, boot a VM on it and tear it down again, plus no-op variants for scale testing. |
| `runnerpool.vmx` | `VmState`, `VmxTemplateData` and `render_vmx` for VMware Fusion machine descriptions. |
| `runnerpool.vmfusion_net` | Running `vmrun` and reading a guest's MAC and IP address from `.vmx`, vmnet `dhcpd.conf` and DHCP lease texts. |
| `runnerpool.vmfusion` | `FusionMachine`, a VMware Fusion machine kept in a store directory. |

## Pool sizing

A strategy tells a pool manager how many instances to create or remove,
and whether a new instance may be created when no free one is left.

```python
from runnerpool.strategy import Greedy, MinMax

# Greedy keeps at least min_size free instances and never removes any.
Greedy().count_create_remove(2, 10, 5, 0)   # -> (2, 0)
Greedy().can_create(2, 10, 5, 0)            # -> True

# MinMax keeps the total between min_size and max_size,
# removing only free instances.
MinMax().count_create_remove(1, 3, 2, 3)    # -> (0, 2)
MinMax().can_create(1, 3, 2, 1)             # -> False
```

## Encoding settings

Strings pass through, booleans and numbers are formatted, bytes are base64
encoded, sequences of scalars are comma joined and anything else becomes
compact JSON.

```python
from runnerpool.encoder import encode

encode("foo")                    # 'foo'
encode(42)                       # '42'
encode(["foo", "bar", "baz"])    # 'foo,bar,baz'
encode(b"foo")                   # 'Zm9v'
encode({"foo": "bar"})           # '{"foo":"bar"}'
```

## Guarding which builds may run

Patterns use shell-style globbing with `/` as a separator; an empty
pattern list matches everything. With `trusted=True` only trusted
repositories are accepted.

```python
from runnerpool.match import Build, Repo, make_matcher

allowed = make_matcher(["octocat/*"], ["push"], True)
allowed(Repo(slug="octocat/hello-world", trusted=True), Build(event="push"))           # True
allowed(Repo(slug="octocat/hello-world", trusted=True), Build(event="pull_request"))   # False
```

## JSON responses

`Response` collects a status, headers and a body; the helpers write to it.

```python
from runnerpool.httprender import Response, internal_error, ok

response = Response()
ok(response, {"a": 1})
response.status    # 200
response.body      # b'{"a":1}\n'

response = Response()
internal_error(response, "cannot provision", ValueError("pool empty"), None)
response.body      # b'{"error_msg":"cannot provision: pool empty"}\n'
```

## Machine names

```python
from runnerpool.naming import random_string, substr_suffix

substr_suffix("hello", 2)    # 'lo'
substr_suffix("hello", 63)   # 'hello'
random_string(5)             # five characters from a-z and 0-9
```

## Nomad jobs

```python
from runnerpool.nomad_config import NomadConfig
from runnerpool.nomad_jobs import destroy_job, init_job, resource_job
from runnerpool.nomad_status import JobStatus, parse_status

config = NomadConfig(address="http://localhost:4646")
job, job_id = resource_job(config, 2, 6, "vm1")      # job_id == 'init_job_resources_vm1'
job, job_id, group = init_job(config, "vm1", "echo hi", 20000, "node-1")
job, job_id = destroy_job("vm1", "node-1")           # job_id == 'destroy_job_vm1'

parse_status("running") is JobStatus.RUNNING         # True
parse_status("something else")                       # JobStatus.UNKNOWN
```

Empty image, memory, CPU and disk settings in `NomadConfig` fall back to
`weaveworks/ignite-ubuntu:latest`, `"6"`, `"2"` and `"50GB"`.

## VMware Fusion

```python
from runnerpool.vmfusion import FusionMachine
from runnerpool.vmfusion_net import mac_from_vmx
from runnerpool.vmx import VmxTemplateData, render_vmx

text = render_vmx(VmxTemplateData(machine_name="runner-1", cpu=2, memory=4096))

mac_from_vmx('ethernet0.generatedAddress = "00:11:22:33:44:55"')   # '00:11:22:33:44:55'

machine = FusionMachine(store_path="/vms", machine_name="runner-1")
machine.vmx_path()   # '/vms/runner-1.vmwarevm/runner-1.vmx'
```

`FusionMachine.state()`, `ip_address()` and `destroy()` call `vmrun`,
which must be on `PATH` or in the VMware Fusion application bundle.

## What this package does not do

It holds building blocks only. It has no pool manager that provisions and
hibernates instances, no instance store, no cloud provider drivers, no
client that submits jobs to a Nomad server, no code that creates a Fusion
machine from its disk image, and no HTTP server or command-line program.

## Running the tests

The test suite uses pytest; install the `test` extra to get it.