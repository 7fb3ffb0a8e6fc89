"""Human-readable status strings derived from raw object state.

All functions take the camelCase dict form of an API object.
"""

from __future__ import annotations

from typing import Any

_POD_INITIALIZING = "PodInitializing"


def pod_status(pod: dict[str, Any]) -> str:
    """Collapse a pod's state into the single string ``kubectl get pods`` shows.

    First match wins:
      1. deletion timestamp set -> "Terminating"
      2. status.reason
      3. init containers in order: failed termination -> "Init:<reason>"
         (or "Init:Error"); waiting other than PodInitializing -> "Init:<reason>"
      4. main containers in order: waiting reason, then failed termination
         reason (or "Error")
      5. status.phase
    """
    metadata = pod.get("metadata") or {}
    if metadata.get("deletionTimestamp"):
        return "Terminating"

    status = pod.get("status") or {}
    if status.get("reason"):
        return str(status["reason"])

    for cs in status.get("initContainerStatuses") or []:
        state = cs.get("state") or {}
        terminated = state.get("terminated")
        if terminated and terminated.get("exitCode", 0) != 0:
            return "Init:" + (terminated.get("reason") or "Error")
        waiting = state.get("waiting")
        if waiting and waiting.get("reason") and waiting["reason"] != _POD_INITIALIZING:
            return "Init:" + waiting["reason"]

    for cs in status.get("containerStatuses") or []:
        state = cs.get("state") or {}
        waiting = state.get("waiting")
        if waiting and waiting.get("reason"):
            return str(waiting["reason"])
        terminated = state.get("terminated")
        if terminated and terminated.get("exitCode", 0) != 0:
            return terminated.get("reason") or "Error"

    return str(status.get("phase") or "Unknown")


def node_status(node: dict[str, Any]) -> str:
    for cond in (node.get("status") or {}).get("conditions") or []:
        if cond.get("type") == "Ready":
            return "Ready" if cond.get("status") == "True" else "NotReady"
    return "Unknown"


def object_status(kind: str, obj: dict[str, Any]) -> str:
    """Per-kind one-line status used in listings."""
    spec = obj.get("spec") or {}
    status = obj.get("status") or {}
    match kind:
        case "Pod":
            return pod_status(obj)
        case "Service":
            return f"Type: {spec.get('type', '')}"
        case "Deployment":
            return f"{status.get('readyReplicas') or 0}/{spec.get('replicas') or 0}"
        case "ConfigMap":
            return f"{len(obj.get('data') or {})} keys"
        case "Secret":
            return f"Type: {obj.get('type', '')}"
        case "Node":
            return node_status(obj)
        case "Namespace":
            return str(status.get("phase", ""))
        case "Event":
            return f"{obj.get('type', '')}: {obj.get('reason', '')}"
    return ""
