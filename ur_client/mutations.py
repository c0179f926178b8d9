"""GraphQL mutation documents for container and VM control."""

from __future__ import annotations

DOCKER_START_MUTATION = """
mutation StartDockerContainer($id: PrefixedID!) {
    docker {
        start(id: $id) {
            id
            state
            status
        }
    }
}
"""

DOCKER_STOP_MUTATION = """
mutation StopDockerContainer($id: PrefixedID!) {
    docker {
        stop(id: $id) {
            id
            state
            status
        }
    }
}
"""


def _vm_mutation(operation: str, action: str) -> str:
    # VM mutations all return Boolean!
    return (
        f"mutation {operation}($id: PrefixedID!) {{\n"
        f"    vm {{\n"
        f"        {action}(id: $id)\n"
        f"    }}\n"
        f"}}\n"
    )


VM_START_MUTATION = _vm_mutation("StartVM", "start")
VM_STOP_MUTATION = _vm_mutation("StopVM", "stop")
VM_PAUSE_MUTATION = _vm_mutation("PauseVM", "pause")
VM_RESUME_MUTATION = _vm_mutation("ResumeVM", "resume")
VM_FORCE_STOP_MUTATION = _vm_mutation("ForceStopVM", "forceStop")
VM_REBOOT_MUTATION = _vm_mutation("RebootVM", "reboot")
VM_RESET_MUTATION = _vm_mutation("ResetVM", "reset")

CONTROL_MUTATIONS: dict[str, dict[str, str]] = {
    "docker": {
        "start": DOCKER_START_MUTATION,
        "stop": DOCKER_STOP_MUTATION,
    },
    "vm": {
        "start": VM_START_MUTATION,
        "stop": VM_STOP_MUTATION,
        "pause": VM_PAUSE_MUTATION,
        "resume": VM_RESUME_MUTATION,
        "forceStop": VM_FORCE_STOP_MUTATION,
        "reboot": VM_REBOOT_MUTATION,
        "reset": VM_RESET_MUTATION,
    },
}


def mutation_for(resource_type: str, action: str) -> str | None:
    return CONTROL_MUTATIONS.get(resource_type, {}).get(action)
