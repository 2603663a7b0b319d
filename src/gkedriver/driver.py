import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions
from google.cloud import container_v1

from . import state as codec
from .builder import build_create_request
from .clients import get_cluster_manager_client
from .core import NODE_POOL_KEY, POLL_INTERVAL
from .exceptions import ProviderError
from .logger import logger
from .schemas.info import Capability, ClusterInfo
from .schemas.state import ClusterRef, ClusterState
from .waiter import wait_until_running


def first_node_pool(cluster: container_v1.Cluster) -> container_v1.NodePool:
    if not cluster.node_pools:
        raise ProviderError(f"cluster {cluster.name} has no node pools")
    return cluster.node_pools[0]


@contextmanager
def provider_call(action: str) -> Iterator[None]:
    """Re-raises GKE API errors as ProviderError with a short prefix."""
    try:
        yield
    except exceptions.GoogleAPICallError as e:
        raise ProviderError(f"error {action}: {e}") from e


class Driver:
    """
    GKE cluster driver.

    Every operation restores (or decodes) a ClusterState, builds an
    authenticated client for it, calls the GKE API and waits for the
    cluster or node pool to settle back to RUNNING.
    """

    def __init__(
        self,
        poll_interval: float = POLL_INTERVAL,
        wait_timeout: float | None = None,
        cancel: threading.Event | None = None,
        token_generator: Callable[[container_v1.Cluster], str] | None = None,
    ) -> None:
        self.poll_interval = poll_interval
        self.wait_timeout = wait_timeout
        self.cancel = cancel or threading.Event()
        self.token_generator = token_generator

    def get_capabilities(self) -> frozenset[Capability]:
        return frozenset(Capability)

    def _wait(self, client: Any, ref: ClusterRef) -> None:
        with provider_call(f"waiting for {ref.kind} {ref.display_name}"):
            wait_until_running(
                client,
                ref,
                interval=self.poll_interval,
                timeout=self.wait_timeout,
                cancel=self.cancel,
            )

    def _get_cluster(self, client: Any, state: ClusterState) -> container_v1.Cluster:
        with provider_call("getting cluster info"):
            return client.get_cluster(
                request=container_v1.GetClusterRequest(name=state.cluster_ref().path)
            )

    def create(
        self, options: Mapping[str, Any], info: ClusterInfo | None = None
    ) -> ClusterInfo:
        state = codec.decode(options)
        client = get_cluster_manager_client(state)

        try:
            with provider_call("creating cluster"):
                operation = client.create_cluster(request=build_create_request(state))
            logger.debug(
                f"Cluster {state.name} create is called for project {state.project_id} "
                f"and zone {state.zone}. Operation {operation.name}"
            )
        except ProviderError as e:
            if not isinstance(e.__cause__, exceptions.AlreadyExists):
                raise
            logger.warning(f"Cluster {state.name} already exists, waiting for it")

        self._wait(client, state.cluster_ref())

        if info is None:
            info = ClusterInfo()
        codec.encode(info, state)
        return info

    def update(self, info: ClusterInfo, options: Mapping[str, Any]) -> ClusterInfo:
        """
        Applies master version, node version and node count changes, in that
        order. Each step waits before the next starts and is persisted into
        info as soon as it completes. A failing step leaves earlier ones
        in place.
        """
        state = codec.load(info)
        new_state = codec.decode(options)
        client = get_cluster_manager_client(state)

        if not state.node_pool_id:
            cluster = self._get_cluster(client, state)
            state = state.model_copy(update={"node_pool_id": first_node_pool(cluster).name})

        logger.debug(
            f"Updating config. MasterVersion: {new_state.master_version}, "
            f"NodeVersion: {new_state.node_version}, NodeCount: {new_state.node_count}"
        )

        if new_state.master_version:
            logger.info(f"Updating master to {new_state.master_version}")
            with provider_call("updating master version"):
                client.update_cluster(
                    request=container_v1.UpdateClusterRequest(
                        name=state.cluster_ref().path,
                        update=container_v1.ClusterUpdate(
                            desired_master_version=new_state.master_version
                        ),
                    )
                )
            self._wait(client, state.cluster_ref())
            state = state.model_copy(update={"master_version": new_state.master_version})
            codec.encode(info, state)

        if new_state.node_version:
            logger.info(f"Updating node version to {new_state.node_version}")
            request = container_v1.UpdateNodePoolRequest(
                name=state.node_pool_ref().path,
                node_version=new_state.node_version,
            )
            if state.node_config.image_type:
                request.image_type = state.node_config.image_type
            with provider_call("updating node version"):
                client.update_node_pool(request=request)
            self._wait(client, state.node_pool_ref())
            state = state.model_copy(update={"node_version": new_state.node_version})
            codec.encode(info, state)

        if new_state.node_count:
            logger.info(f"Updating node number to {new_state.node_count}")
            with provider_call("resizing node pool"):
                client.set_node_pool_size(
                    request=container_v1.SetNodePoolSizeRequest(
                        name=state.node_pool_ref().path,
                        node_count=new_state.node_count,
                    )
                )
            self._wait(client, state.cluster_ref())
            state = state.model_copy(update={"node_count": new_state.node_count})

        codec.encode(info, state)
        return info

    def post_check(self, info: ClusterInfo) -> ClusterInfo:
        state = codec.load(info)
        client = get_cluster_manager_client(state)

        self._wait(client, state.cluster_ref())
        cluster = self._get_cluster(client, state)

        info.endpoint = cluster.endpoint
        info.version = cluster.current_master_version
        info.username = cluster.master_auth.username
        info.password = cluster.master_auth.password
        info.root_ca_certificate = cluster.master_auth.cluster_ca_certificate
        info.client_certificate = cluster.master_auth.client_certificate
        info.client_key = cluster.master_auth.client_key
        info.node_count = cluster.current_node_count
        if cluster.node_pools:
            info.metadata[NODE_POOL_KEY] = cluster.node_pools[0].name

        if self.token_generator is not None:
            info.service_account_token = self.token_generator(cluster)
        else:
            logger.debug("No token generator configured, skipping service account token")

        return info

    def remove(self, info: ClusterInfo) -> None:
        state = codec.load(info, allow_empty=True)
        if not state.name:
            logger.debug("No cluster state stored, nothing to remove")
            return

        client = get_cluster_manager_client(state)

        logger.debug(
            f"Removing cluster {state.name} from project {state.project_id}, "
            f"zone {state.zone}"
        )
        try:
            with provider_call("deleting cluster"):
                operation = client.delete_cluster(
                    request=container_v1.DeleteClusterRequest(
                        name=state.cluster_ref().path
                    )
                )
        except ProviderError as e:
            if not isinstance(e.__cause__, exceptions.NotFound):
                raise
            logger.debug(f"Cluster {state.name} doesn't exist")
            return

        logger.debug(f"Cluster {state.name} delete is called. Operation {operation.name}")

    def get_cluster_size(self, info: ClusterInfo) -> int:
        state = codec.load(info)
        cluster = self._get_cluster(get_cluster_manager_client(state), state)
        return int(first_node_pool(cluster).initial_node_count)

    def set_cluster_size(self, info: ClusterInfo, count: int) -> None:
        state = codec.load(info)
        client = get_cluster_manager_client(state)
        cluster = self._get_cluster(client, state)
        state = state.model_copy(update={"node_pool_id": first_node_pool(cluster).name})

        logger.info("updating cluster size")
        with provider_call("resizing node pool"):
            client.set_node_pool_size(
                request=container_v1.SetNodePoolSizeRequest(
                    name=state.node_pool_ref().path, node_count=count
                )
            )
        self._wait(client, state.cluster_ref())

        codec.encode(info, state.model_copy(update={"node_count": count}))
        logger.info("cluster size updated successfully")

    def get_version(self, info: ClusterInfo) -> str:
        state = codec.load(info)
        cluster = self._get_cluster(get_cluster_manager_client(state), state)
        return str(cluster.current_master_version)

    def _update_and_wait(
        self, info: ClusterInfo, update: container_v1.ClusterUpdate
    ) -> None:
        state = codec.load(info)
        client = get_cluster_manager_client(state)

        with provider_call("updating cluster"):
            client.update_cluster(
                request=container_v1.UpdateClusterRequest(
                    name=state.cluster_ref().path, update=update
                )
            )
        self._wait(client, state.cluster_ref())

    def set_version(self, info: ClusterInfo, version: str) -> None:
        logger.info("updating master version")
        self._update_and_wait(
            info, container_v1.ClusterUpdate(desired_master_version=version)
        )
        logger.info("master version updated successfully")

        logger.info("updating node version")
        self._update_and_wait(
            info, container_v1.ClusterUpdate(desired_node_version=version)
        )
        logger.info("node version updated successfully")

        state = codec.load(info)
        codec.encode(
            info, state.model_copy(update={"master_version": version, "node_version": version})
        )
