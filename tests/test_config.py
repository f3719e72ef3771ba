import json
import os
import unittest

import pytest

from gasbuild.config import (
    BuilderSettings,
    BuildConfig,
    ConfigError,
    ConfigStore,
    load_config,
    read_banner,
)


class TestBuildConfigDefaults(unittest.TestCase):

    def test_empty_object_uses_defaults(self):
        """An empty config fills in every documented default."""
        config = BuildConfig.model_validate({})
        self.assertEqual(config.out_dir, "dist")
        self.assertEqual(config.manifest, "appsscript.json")
        self.assertTrue(config.frontend.build)
        self.assertEqual(config.frontend.src, "src/frontend")
        self.assertTrue(config.backend.concatenate)
        self.assertFalse(config.backend.minify)
        self.assertEqual(config.backend.out_file, "Code.js")
        self.assertEqual(config.backend.priority_order, [])
        self.assertIsNone(config.deployment.dev_deployment_id)

    def test_aliases_are_read(self):
        config = BuildConfig.model_validate({
            "outDir": "build",
            "backend": {"outFile": "Main.js", "priorityOrder": ["polyfill.js"]},
            "deployment": {"devDeploymentId": "AKdev"},
        })
        self.assertEqual(config.out_dir, "build")
        self.assertEqual(config.backend.out_file, "Main.js")
        self.assertEqual(config.backend.priority_order, ["polyfill.js"])
        self.assertEqual(config.deployment.dev_deployment_id, "AKdev")

    def test_json_dict_uses_aliases(self):
        data = BuildConfig.model_validate({"outDir": "out"}).to_json_dict()
        self.assertEqual(data["outDir"], "out")
        self.assertIn("priorityOrder", data["backend"])
        self.assertIn("prodDeploymentId", data["deployment"])


class TestBuilderSettings(unittest.TestCase):

    def test_defaults(self):
        s = BuilderSettings()
        self.assertEqual(s.CONFIG_PATH, "build.config.json")
        self.assertEqual(s.SCRIPT_HOST, "script.google.com")
        self.assertEqual(s.DEV_SERVER_PORT, 3000)

    def test_env_override(self):
        """GASBUILD_* variables override defaults (restored by conftest)."""
        os.environ["GASBUILD_DEV_SERVER_PORT"] = "4123"
        os.environ["GASBUILD_NPX_COMMAND"] = "/opt/node/bin/npx"
        s = BuilderSettings()
        self.assertEqual(s.DEV_SERVER_PORT, 4123)
        self.assertEqual(s.NPX_COMMAND, "/opt/node/bin/npx")


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigStore(tmp_path / "build.config.json").load()


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "build.config.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(path)


def test_non_object_root_raises(tmp_path):
    path = tmp_path / "build.config.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigError, match="must be an object"):
        load_config(path)


def test_wrong_field_type_raises(tmp_path):
    path = tmp_path / "build.config.json"
    path.write_text(json.dumps({"backend": {"priorityOrder": 5}}), encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config(path)


def test_record_deployment_id_preserves_other_keys(tmp_path):
    path = tmp_path / "build.config.json"
    original = {
        "outDir": "dist",
        "custom": {"keep": True},
        "deployment": {"prodDeploymentId": "AKprod"},
    }
    path.write_text(json.dumps(original), encoding="utf-8")
    store = ConfigStore(path)
    config = store.load()

    store.record_deployment_id(config, "devDeploymentId", "AKfy123")

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["deployment"] == {"prodDeploymentId": "AKprod", "devDeploymentId": "AKfy123"}
    assert saved["custom"] == {"keep": True}
    assert config.deployment.dev_deployment_id == "AKfy123"


def test_record_deployment_id_keeps_external_edits(tmp_path):
    """Edits made to the file after load are not overwritten by the stale model."""
    path = tmp_path / "build.config.json"
    path.write_text(json.dumps({"outDir": "dist"}), encoding="utf-8")
    store = ConfigStore(path)
    config = store.load()

    path.write_text(json.dumps({"outDir": "elsewhere"}), encoding="utf-8")
    store.record_deployment_id(config, "prod_deployment_id", "AKnew")

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["outDir"] == "elsewhere"
    assert saved["deployment"]["prodDeploymentId"] == "AKnew"


def test_record_unknown_key_raises(tmp_path):
    path = tmp_path / "build.config.json"
    path.write_text("{}", encoding="utf-8")
    store = ConfigStore(path)
    with pytest.raises(ConfigError, match="Unknown deployment key"):
        store.record_deployment_id(store.load(), "stagingId", "x")


def test_save_round_trips_unknown_keys(tmp_path):
    path = tmp_path / "build.config.json"
    path.write_text(json.dumps({"extra": 1, "backend": {"flag": "x"}}), encoding="utf-8")
    store = ConfigStore(path)
    store.save(store.load())
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["extra"] == 1
    assert saved["backend"]["flag"] == "x"
    assert saved["outDir"] == "dist"


def test_read_banner(tmp_path):
    pkg = tmp_path / "package.json"
    pkg.write_text(json.dumps({"name": "todo-app", "version": "1.2.3"}), encoding="utf-8")
    assert read_banner(pkg) == "/**\n * todo-app v1.2.3\n */\n"


def test_read_banner_fallbacks(tmp_path):
    pkg = tmp_path / "package.json"
    pkg.write_text("{}", encoding="utf-8")
    assert read_banner(pkg) == "/**\n * App v0.0.0\n */\n"
    assert read_banner(tmp_path / "missing.json") == ""
    pkg.write_text("not json", encoding="utf-8")
    assert read_banner(pkg) == ""
