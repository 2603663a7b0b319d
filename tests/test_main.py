import argparse

import pytest

from gkedriver.driver import Driver
from gkedriver.main import build_parser, load_info, parse_options, run, save_info
from gkedriver.schemas.info import Capability, ClusterInfo


def test_parse_options_lists_and_scalars():
    options = parse_options(
        [
            "name=c1",
            "node-count=3",
            "labels=env=prod",
            "labels=team=ml,tier=web",
            "locations=z1,z2",
        ]
    )

    assert options == {
        "name": "c1",
        "node-count": "3",
        "labels": ["env=prod", "team=ml", "tier=web"],
        "locations": ["z1", "z2"],
    }


def test_parse_options_rejects_bare_keys():
    with pytest.raises(ValueError):
        parse_options(["name"])


def test_info_file_round_trip(tmp_path):
    path = tmp_path / "info.json"
    assert load_info(path) == ClusterInfo()

    save_info(path, ClusterInfo(endpoint="1.2.3.4", metadata={"zone": "z1"}))

    assert load_info(path).endpoint == "1.2.3.4"
    assert load_info(path).metadata == {"zone": "z1"}


def _args(tmp_path, *argv):
    return build_parser().parse_args([*argv, "--info", str(tmp_path / "info.json")])


def test_run_create_saves_info(mocker, tmp_path):
    mock_driver = mocker.Mock(spec=Driver)
    mock_driver.create.return_value = ClusterInfo(metadata={"project-id": "p1"})
    args = _args(tmp_path, "create", "-o", "name=c1", "-o", "node-count=3")

    run(args, mock_driver, mocker.Mock())

    options = mock_driver.create.call_args.args[0]
    assert options == {"name": "c1", "node-count": "3"}
    assert load_info(tmp_path / "info.json").metadata == {"project-id": "p1"}


def test_run_update_saves_partial_progress(mocker, tmp_path):
    def failing_update(info, options):
        info.metadata["state"] = "{}"
        raise RuntimeError("node pool update failed")

    mock_driver = mocker.Mock(spec=Driver)
    mock_driver.update.side_effect = failing_update
    args = _args(tmp_path, "update", "-o", "master-version=1.30")

    with pytest.raises(RuntimeError):
        run(args, mock_driver, mocker.Mock())

    assert load_info(tmp_path / "info.json").metadata == {"state": "{}"}


def test_run_set_size_needs_value(mocker, tmp_path):
    args = _args(tmp_path, "set-size")

    with pytest.raises(ValueError):
        run(args, mocker.Mock(spec=Driver), mocker.Mock())


def test_run_set_size(mocker, tmp_path):
    mock_driver = mocker.Mock(spec=Driver)
    args = _args(tmp_path, "set-size", "5")

    run(args, mock_driver, mocker.Mock())

    assert mock_driver.set_cluster_size.call_args.args[1] == 5


def test_run_capabilities(mocker, tmp_path):
    mock_console = mocker.Mock()
    args = _args(tmp_path, "capabilities")

    run(args, Driver(), mock_console)

    printed = [c.args[0] for c in mock_console.print.call_args_list]
    assert sorted(printed) == sorted(c.value for c in Capability)


def test_parser_defaults():
    args = build_parser().parse_args(["get-version"])

    assert isinstance(args, argparse.Namespace)
    assert args.timeout is None
    assert args.poll_interval == 5.0
    assert args.option == []
