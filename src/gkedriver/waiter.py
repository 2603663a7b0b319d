import threading
from collections.abc import Callable
from typing import Any

from google.cloud import container_v1
from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_delay,
    stop_when_event_set,
    wait_fixed,
)

from .core import POLL_INTERVAL, RUNNING_STATUS
from .exceptions import WaitCancelledError, WaitTimeoutError
from .logger import logger
from .schemas.state import ClusterRef, NodePoolRef


def fetch_status(client: Any, ref: ClusterRef) -> str:
    """Returns the status name of the cluster or node pool behind ref."""
    if isinstance(ref, NodePoolRef):
        resource = client.get_node_pool(
            request=container_v1.GetNodePoolRequest(name=ref.path)
        )
    else:
        resource = client.get_cluster(
            request=container_v1.GetClusterRequest(name=ref.path)
        )
    return str(resource.status.name)


def wait_until_running(
    client: Any,
    ref: ClusterRef,
    *,
    interval: float = POLL_INTERVAL,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    on_progress: Callable[[str], None] | None = None,
    sleep: Callable[[float], Any] | None = None,
) -> None:
    """
    Polls a cluster or node pool until its status is RUNNING.

    A failed fetch is raised as-is, without another poll. Progress is reported
    once per distinct status. Raises WaitTimeoutError once timeout seconds have
    passed and WaitCancelledError when cancel is set.
    """
    cancel = cancel or threading.Event()
    last_status = ""

    def notify(status: str) -> None:
        if on_progress is not None:
            on_progress(status)
        else:
            logger.info(f"{status.lower()} {ref.kind} {ref.display_name}......")

    def poll() -> str:
        nonlocal last_status
        if cancel.is_set():
            raise WaitCancelledError(f"wait for {ref.kind} {ref.display_name} cancelled")
        status = fetch_status(client, ref)
        if status != RUNNING_STATUS and status != last_status:
            notify(status)
            last_status = status
        return status

    stop = stop_when_event_set(cancel)
    if timeout is not None:
        stop = stop | stop_after_delay(timeout)

    retrying = Retrying(
        retry=retry_if_result(lambda status: status != RUNNING_STATUS),
        wait=wait_fixed(interval),
        stop=stop,
        # Event.wait wakes up as soon as cancel is set
        sleep=sleep or cancel.wait,
    )

    try:
        retrying(poll)
    except RetryError as e:
        if cancel.is_set():
            raise WaitCancelledError(
                f"wait for {ref.kind} {ref.display_name} cancelled"
            ) from e
        raise WaitTimeoutError(
            f"{ref.kind} {ref.display_name} not running after {timeout}s "
            f"(last status {last_status or 'unknown'})"
        ) from e

    logger.info(f"{ref.kind.capitalize()} {ref.display_name} is running")
