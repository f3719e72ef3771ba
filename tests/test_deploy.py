import json
import logging
import unittest
from unittest.mock import MagicMock

import pytest

from gasbuild.config import ConfigStore
from gasbuild.deploy import (
    Deployer,
    dev_url,
    parse_head_deployment,
    parse_new_deployment,
    prod_url,
)
from gasbuild.tools.base import ToolError
from tests.fakes import FakeDeployCli

DEPLOYMENTS_OUTPUT = """Found 2 deployments.
- AKfy123 @HEAD
- AKfyOld456 @3 - v3
"""


class TestParsing(unittest.TestCase):

    def test_head_deployment(self):
        self.assertEqual(parse_head_deployment(DEPLOYMENTS_OUTPUT), "AKfy123")

    def test_head_missing(self):
        self.assertIsNone(parse_head_deployment("Found 1 deployment.\n- AKfyOld456 @3\n"))

    def test_new_deployment(self):
        self.assertEqual(parse_new_deployment("Created version 4.\n- AKfyNew_-9 @4.\nDeployed AKfyNew_-9 @4\n"), "AKfyNew_-9")

    def test_new_deployment_missing(self):
        self.assertIsNone(parse_new_deployment("Created version 4."))

    def test_urls(self):
        self.assertEqual(dev_url("AKfy123"), "https://script.google.com/macros/s/AKfy123/dev")
        self.assertEqual(prod_url("AKfy123", host="example.test"), "https://example.test/macros/s/AKfy123/exec")


@pytest.fixture
def store(tmp_path):
    path = tmp_path / "build.config.json"
    path.write_text(json.dumps({"outDir": "dist"}), encoding="utf-8")
    return ConfigStore(path)


def _saved(store):
    return json.loads(store.path.read_text(encoding="utf-8"))


def test_push_and_link_persists_head_id(store):
    cli = FakeDeployCli({"deployments": DEPLOYMENTS_OUTPUT})
    config = store.load()

    deployment_id = Deployer(cli, store, config).push_and_link()

    assert deployment_id == "AKfy123"
    assert cli.calls == [("push", "--force"), ("deployments",)]
    assert _saved(store)["deployment"]["devDeploymentId"] == "AKfy123"
    assert config.deployment.dev_deployment_id == "AKfy123"
    assert dev_url(deployment_id).endswith("/AKfy123/dev")


def test_push_and_link_logs_dev_url(store, caplog):
    cli = FakeDeployCli({"deployments": DEPLOYMENTS_OUTPUT})
    with caplog.at_level(logging.INFO, logger="gasbuild.deploy"):
        Deployer(cli, store, store.load()).push_and_link()
    assert "DEV Web App: https://script.google.com/macros/s/AKfy123/dev" in caplog.text


def test_push_and_link_uses_known_id(store):
    store.write_raw({"deployment": {"devDeploymentId": "AKknown"}})
    cli = FakeDeployCli()

    assert Deployer(cli, store, store.load()).push_and_link() == "AKknown"
    assert cli.calls == [("push", "--force")]


def test_push_and_link_retries_once(store):
    cli = FakeDeployCli({"deployments": ["No deployments.", DEPLOYMENTS_OUTPUT]})

    assert Deployer(cli, store, store.load()).push_and_link() == "AKfy123"
    assert cli.calls.count(("deployments",)) == 2


def test_push_and_link_gives_up_with_warning(store, caplog):
    cli = FakeDeployCli({"deployments": "No deployments."})
    with caplog.at_level(logging.WARNING, logger="gasbuild.deploy"):
        assert Deployer(cli, store, store.load()).push_and_link() is None
    assert "Could not find the @HEAD deployment ID." in caplog.text
    assert "deployment" not in _saved(store)


def test_deploy_persists_prod_id(store):
    cli = FakeDeployCli({"deploy": "Created version 7.\nDeployed AKprod789 @7\n"})
    config = store.load()

    assert Deployer(cli, store, config).deploy() == "AKprod789"
    assert _saved(store)["deployment"]["prodDeploymentId"] == "AKprod789"
    assert config.deployment.prod_deployment_id == "AKprod789"


def test_deploy_unparsable_output_warns(store, caplog):
    cli = FakeDeployCli({"deploy": "Something unexpected"})
    with caplog.at_level(logging.WARNING, logger="gasbuild.deploy"):
        assert Deployer(cli, store, store.load()).deploy() is None
    assert "Could not parse new deployment ID." in caplog.text
    assert _saved(store) == {"outDir": "dist"}


def test_cli_failure_propagates(store):
    cli = MagicMock()
    cli.run.side_effect = ToolError("push failed")
    with pytest.raises(ToolError):
        Deployer(cli, store, store.load()).push()
