import threading

import pytest
from google.api_core import exceptions

from gkedriver.exceptions import WaitCancelledError, WaitTimeoutError
from gkedriver.schemas.state import ClusterRef, NodePoolRef
from gkedriver.waiter import wait_until_running

CLUSTER = ClusterRef(project_id="p1", zone="z1", cluster_name="c1")
NODE_POOL = NodePoolRef(
    project_id="p1", zone="z1", cluster_name="c1", node_pool_id="default-pool"
)


def _with_status(mocker, status):
    resource = mocker.Mock()
    resource.status.name = status
    return resource


def test_running_on_first_fetch_does_not_sleep(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.return_value = _with_status(mocker, "RUNNING")
    mock_sleep = mocker.Mock()

    wait_until_running(mock_client, CLUSTER, sleep=mock_sleep)

    mock_sleep.assert_not_called()
    request = mock_client.get_cluster.call_args.kwargs["request"]
    assert request.name == "projects/p1/locations/z1/clusters/c1"


def test_fetch_error_propagates_without_retry(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.side_effect = exceptions.ServiceUnavailable("backend down")
    mock_sleep = mocker.Mock()

    with pytest.raises(exceptions.ServiceUnavailable):
        wait_until_running(mock_client, CLUSTER, sleep=mock_sleep)

    mock_sleep.assert_not_called()
    mock_client.get_cluster.assert_called_once()


def test_progress_reported_once_per_status(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.side_effect = [
        _with_status(mocker, "PROVISIONING"),
        _with_status(mocker, "PROVISIONING"),
        _with_status(mocker, "RUNNING"),
    ]
    mock_sleep = mocker.Mock()
    progress = []

    wait_until_running(
        mock_client,
        CLUSTER,
        interval=5,
        on_progress=progress.append,
        sleep=mock_sleep,
    )

    assert progress == ["PROVISIONING"]
    assert mock_client.get_cluster.call_count == 3
    assert mock_sleep.call_count == 2
    mock_sleep.assert_called_with(5)


def test_progress_repeats_only_after_a_change(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.side_effect = [
        _with_status(mocker, s)
        for s in ["PROVISIONING", "RECONCILING", "RECONCILING", "PROVISIONING", "RUNNING"]
    ]
    progress = []

    wait_until_running(
        mock_client, CLUSTER, on_progress=progress.append, sleep=mocker.Mock()
    )

    assert progress == ["PROVISIONING", "RECONCILING", "PROVISIONING"]


def test_default_progress_goes_to_logger(mocker):
    mock_log = mocker.patch("gkedriver.waiter.logger")
    mock_client = mocker.Mock()
    mock_client.get_cluster.side_effect = [
        _with_status(mocker, "PROVISIONING"),
        _with_status(mocker, "RUNNING"),
    ]

    wait_until_running(mock_client, CLUSTER, sleep=mocker.Mock())

    messages = [c.args[0] for c in mock_log.info.call_args_list]
    assert messages == ["provisioning cluster c1......", "Cluster c1 is running"]


def test_node_pool_is_polled_through_get_node_pool(mocker):
    mock_client = mocker.Mock()
    mock_client.get_node_pool.return_value = _with_status(mocker, "RUNNING")

    wait_until_running(mock_client, NODE_POOL, sleep=mocker.Mock())

    mock_client.get_cluster.assert_not_called()
    request = mock_client.get_node_pool.call_args.kwargs["request"]
    assert request.name == "projects/p1/locations/z1/clusters/c1/nodePools/default-pool"


def test_timeout_raises_wait_timeout(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.return_value = _with_status(mocker, "PROVISIONING")
    mock_sleep = mocker.Mock()

    with pytest.raises(WaitTimeoutError, match="PROVISIONING"):
        wait_until_running(mock_client, CLUSTER, timeout=0, sleep=mock_sleep)

    mock_sleep.assert_not_called()


def test_cancel_during_sleep_stops_polling(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.return_value = _with_status(mocker, "PROVISIONING")
    cancel = threading.Event()

    with pytest.raises(WaitCancelledError):
        wait_until_running(
            mock_client, CLUSTER, cancel=cancel, sleep=lambda _: cancel.set()
        )

    mock_client.get_cluster.assert_called_once()


def test_already_cancelled_does_not_fetch(mocker):
    mock_client = mocker.Mock()
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(WaitCancelledError):
        wait_until_running(mock_client, CLUSTER, cancel=cancel)

    mock_client.get_cluster.assert_not_called()


def test_default_sleep_wakes_up_on_cancel(mocker):
    mock_client = mocker.Mock()
    mock_client.get_cluster.return_value = _with_status(mocker, "PROVISIONING")
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()

    try:
        with pytest.raises(WaitCancelledError):
            wait_until_running(mock_client, CLUSTER, interval=60, cancel=cancel)
    finally:
        timer.cancel()
