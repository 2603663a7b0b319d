from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from .core import PROJECT_ID_KEY, STATE_KEY, ZONE_KEY
from .exceptions import ConfigurationError, StateError
from .schemas.info import ClusterInfo
from .schemas.state import ClusterState, Toggle

# Field -> option names, in lookup order. The first non-empty value wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name",),
    "display_name": ("display-name", "displayName"),
    "project_id": ("project-id", "projectId"),
    "zone": ("zone",),
    "node_pool_id": ("nodePool",),
    "cluster_ipv4_cidr": ("cluster-ipv4-cidr", "clusterIpv4Cidr"),
    "service_ipv4_cidr": ("service-ipv4-cidr", "serviceIpv4Cidr"),
    "description": ("description",),
    "master_version": ("master-version", "masterVersion"),
    "node_version": ("node-version", "nodeVersion"),
    "node_count": ("node-count", "nodeCount"),
    "credential_path": ("gke-credential-path", "credentialPath"),
    "credential_content": ("credential",),
    "enable_alpha_feature": ("enable-alpha-feature", "enableAlphaFeature"),
    "locations": ("locations",),
    "network": ("network",),
    "subnetwork": ("sub-network", "subNetwork"),
    "maintenance_window": ("maintenance-window", "maintenanceWindow"),
}

NODE_CONFIG_ALIASES: dict[str, tuple[str, ...]] = {
    "machine_type": ("machine-type", "machineType"),
    "disk_size_gb": ("disk-size-gb", "diskSizeGb"),
    "disk_type": ("disk-type", "diskType"),
    "image_type": ("image-type", "imageType"),
}

TOGGLE_ALIASES: dict[str, tuple[str, ...]] = {
    "http_load_balancing": ("enable-http-load-balancing", "enableHttpLoadBalancing"),
    "horizontal_pod_autoscaling": (
        "enable-horizontal-pod-autoscaling",
        "enableHorizontalPodAutoscaling",
    ),
    "network_policy_config": (
        "enable-network-policy-config",
        "enableNetworkPolicyConfig",
    ),
    "kubernetes_dashboard": ("kubernetes-dashboard", "enableKubernetesDashboard"),
    "legacy_abac": ("legacy-authorization", "enableLegacyAbac"),
    "stackdriver_logging": ("enable-stackdriver-logging", "enableStackdriverLogging"),
    "stackdriver_monitoring": (
        "enable-stackdriver-monitoring",
        "enableStackdriverMonitoring",
    ),
}

LABELS_ALIASES = ("labels",)


def _is_zero(value: Any) -> bool:
    return value is None or value == "" or value == [] or value is False or value == 0


def _first(
    options: Mapping[str, Any],
    aliases: tuple[str, ...],
    empty: Callable[[Any], bool] = _is_zero,
) -> Any:
    for alias in aliases:
        value = options.get(alias)
        if not empty(value):
            return value
    return None


def _parse_labels(values: list[str] | str | None) -> dict[str, str]:
    if isinstance(values, str):
        values = [values]
    labels = {}
    for part in values or []:
        kv = part.split("=")
        if len(kv) == 2:
            labels[kv[0]] = kv[1]
    return labels


def _pick(options: Mapping[str, Any], table: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    picked = {}
    for field, aliases in table.items():
        value = _first(options, aliases)
        if value is not None:
            picked[field] = value
    return picked


def validate(state: ClusterState) -> None:
    if not state.project_id:
        raise ConfigurationError("project ID is required")
    if not state.zone:
        raise ConfigurationError("zone is required")
    if not state.name:
        raise ConfigurationError("cluster name is required")


def decode(options: Mapping[str, Any]) -> ClusterState:
    """
    Builds a ClusterState from a driver option bag.
    Raises ConfigurationError if a value has the wrong type or if
    project id, zone or cluster name is missing.
    """
    fields = _pick(options, FIELD_ALIASES)
    node_config = _pick(options, NODE_CONFIG_ALIASES)
    node_config["labels"] = _parse_labels(_first(options, LABELS_ALIASES))
    fields["node_config"] = node_config

    try:
        for field, aliases in TOGGLE_ALIASES.items():
            value = _first(options, aliases, empty=lambda v: v is None)
            fields[field] = Toggle.from_option(value)
        state = ClusterState.model_validate(fields)
    except (ValueError, ValidationError) as e:
        raise ConfigurationError(f"invalid driver options: {e}") from e

    validate(state)
    return state


def encode(info: ClusterInfo, state: ClusterState) -> None:
    """Stores state in info.metadata, plus plaintext project id and zone."""
    try:
        serialized = state.model_dump_json()
    except (ValueError, TypeError) as e:
        raise StateError(f"failed to serialize cluster state: {e}") from e

    if info.metadata is None:
        info.metadata = {}
    info.metadata[STATE_KEY] = serialized
    info.metadata[PROJECT_ID_KEY] = state.project_id
    info.metadata[ZONE_KEY] = state.zone


def restore(serialized: str | None, allow_empty: bool = False) -> ClusterState:
    """
    Reads back a state written by encode().
    A missing value is a StateError unless allow_empty is set, in which case
    an empty ClusterState is returned. A corrupt value is always a StateError.
    """
    if not serialized:
        if allow_empty:
            return ClusterState()
        raise StateError("no cluster state stored")

    try:
        return ClusterState.model_validate_json(serialized)
    except ValidationError as e:
        raise StateError(f"failed to restore cluster state: {e}") from e


def load(info: ClusterInfo, allow_empty: bool = False) -> ClusterState:
    return restore((info.metadata or {}).get(STATE_KEY), allow_empty=allow_empty)
