from google.cloud import container_v1

from .core import ADMIN_USERNAME, NONE_SERVICE
from .schemas.state import ClusterState, Toggle


def _node_config(state: ClusterState) -> container_v1.NodeConfig:
    node = state.node_config
    return container_v1.NodeConfig(
        machine_type=node.machine_type,
        disk_size_gb=node.disk_size_gb,
        disk_type=node.disk_type,
        image_type=node.image_type,
        labels=dict(node.labels),
    )


def _addons_config(state: ClusterState) -> container_v1.AddonsConfig:
    # Unset toggles keep the addon on, except the dashboard which is opt-in.
    return container_v1.AddonsConfig(
        http_load_balancing=container_v1.HttpLoadBalancing(
            disabled=state.http_load_balancing is Toggle.DISABLED
        ),
        horizontal_pod_autoscaling=container_v1.HorizontalPodAutoscaling(
            disabled=state.horizontal_pod_autoscaling is Toggle.DISABLED
        ),
        kubernetes_dashboard=container_v1.KubernetesDashboard(
            disabled=state.kubernetes_dashboard is not Toggle.ENABLED
        ),
        network_policy_config=container_v1.NetworkPolicyConfig(
            disabled=state.network_policy_config is Toggle.DISABLED
        ),
    )


def build_create_request(state: ClusterState) -> container_v1.CreateClusterRequest:
    """
    Maps a ClusterState onto a GKE CreateClusterRequest.
    """
    cluster = container_v1.Cluster(
        name=state.name,
        description=state.description,
        initial_cluster_version=state.master_version,
        initial_node_count=state.node_count,
        enable_kubernetes_alpha=state.enable_alpha_feature,
        addons_config=_addons_config(state),
        network=state.network,
        subnetwork=state.subnetwork,
        locations=list(state.locations),
        legacy_abac=container_v1.LegacyAbac(
            enabled=state.legacy_abac is Toggle.ENABLED
        ),
        master_auth=container_v1.MasterAuth(username=ADMIN_USERNAME),
        node_config=_node_config(state),
        resource_labels={"display-name": state.display_name.lower()},
    )

    # A separate service range needs VPC-native (alias IP) networking,
    # which then owns the pod range too.
    if state.service_ipv4_cidr:
        cluster.ip_allocation_policy = container_v1.IPAllocationPolicy(
            use_ip_aliases=True,
            cluster_ipv4_cidr_block=state.cluster_ipv4_cidr,
            services_ipv4_cidr_block=state.service_ipv4_cidr,
        )
    else:
        cluster.cluster_ipv4_cidr = state.cluster_ipv4_cidr

    if state.stackdriver_logging is Toggle.DISABLED:
        cluster.logging_service = NONE_SERVICE
    if state.stackdriver_monitoring is Toggle.DISABLED:
        cluster.monitoring_service = NONE_SERVICE

    if state.maintenance_window:
        cluster.maintenance_policy = container_v1.MaintenancePolicy(
            window=container_v1.MaintenanceWindow(
                daily_maintenance_window=container_v1.DailyMaintenanceWindow(
                    start_time=state.maintenance_window
                )
            )
        )

    return container_v1.CreateClusterRequest(
        parent=state.location_path, cluster=cluster
    )
