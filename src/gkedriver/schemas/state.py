from enum import Enum

from pydantic import BaseModel, Field


class Toggle(str, Enum):
    """Optional feature switch.

    INHERIT leaves the provider default alone. It is never the same as DISABLED.
    """

    INHERIT = "inherit"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def from_option(cls, value: bool | str | None) -> "Toggle":
        if value is None:
            return cls.INHERIT
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("", "inherit"):
                return cls.INHERIT
            if lowered in ("true", "enabled"):
                return cls.ENABLED
            if lowered in ("false", "disabled"):
                return cls.DISABLED
            raise ValueError(f"not a boolean: {value!r}")
        return cls.ENABLED if value else cls.DISABLED


class NodeConfig(BaseModel):
    machine_type: str = ""
    disk_size_gb: int = 0
    disk_type: str = ""
    image_type: str = ""
    labels: dict[str, str] = Field(default_factory=dict)


class ClusterRef(BaseModel, frozen=True):
    project_id: str
    zone: str
    cluster_name: str

    @property
    def kind(self) -> str:
        return "cluster"

    @property
    def display_name(self) -> str:
        return self.cluster_name

    @property
    def path(self) -> str:
        return (
            f"projects/{self.project_id}/locations/{self.zone}"
            f"/clusters/{self.cluster_name}"
        )


class NodePoolRef(ClusterRef, frozen=True):
    node_pool_id: str

    @property
    def kind(self) -> str:
        return "nodepool"

    @property
    def display_name(self) -> str:
        return self.node_pool_id

    @property
    def path(self) -> str:
        return f"{super().path}/nodePools/{self.node_pool_id}"


class ClusterState(BaseModel):
    """Everything the driver knows about one cluster, as persisted in metadata."""

    name: str = ""
    display_name: str = ""
    project_id: str = ""
    zone: str = ""
    cluster_ipv4_cidr: str = Field(default="", description="Pod address range")
    service_ipv4_cidr: str = Field(default="", description="Service address range")
    description: str = ""
    node_count: int = 0
    master_version: str = ""
    node_version: str = ""
    node_config: NodeConfig = Field(default_factory=NodeConfig)
    credential_path: str = ""
    credential_content: str = ""
    enable_alpha_feature: bool = False
    http_load_balancing: Toggle = Toggle.INHERIT
    horizontal_pod_autoscaling: Toggle = Toggle.INHERIT
    network_policy_config: Toggle = Toggle.INHERIT
    kubernetes_dashboard: Toggle = Toggle.INHERIT
    legacy_abac: Toggle = Toggle.INHERIT
    stackdriver_logging: Toggle = Toggle.INHERIT
    stackdriver_monitoring: Toggle = Toggle.INHERIT
    locations: list[str] = Field(default_factory=list)
    network: str = ""
    subnetwork: str = ""
    node_pool_id: str = ""
    maintenance_window: str = Field(default="", description="Daily start time, HH:MM")

    def cluster_ref(self) -> ClusterRef:
        return ClusterRef(
            project_id=self.project_id, zone=self.zone, cluster_name=self.name
        )

    def node_pool_ref(self) -> NodePoolRef:
        return NodePoolRef(
            project_id=self.project_id,
            zone=self.zone,
            cluster_name=self.name,
            node_pool_id=self.node_pool_id,
        )

    @property
    def location_path(self) -> str:
        return f"projects/{self.project_id}/locations/{self.zone}"
