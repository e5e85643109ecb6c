import json
import os
import tempfile
import unittest

from veeam_agent_updater.config.parser import (GROUP_ORDER, LINUX_64, WINDOWS_64, ConfigParser, build_config,
                                               load_default_config)
from veeam_agent_updater.core.validator import validate_config


class TestConfigParser(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self._tmp.name, "config.json")

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, data):
        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))

    def test_defaults_without_file(self):
        config = ConfigParser().load_config()
        self.assertEqual(config, load_default_config())
        self.assertEqual(validate_config(config), [])

    def test_file_overrides_single_entries(self):
        self.write({"admin_share": "D$", "agents": {LINUX_64: "linux/VeeamAgent64"},
                    "path_groups": {"linux_backup": ["Veeam\\Backup\\VeeamAgent64"]}})
        config = ConfigParser(self.config_path).load_config()

        self.assertEqual(config["admin_share"], "D$")
        self.assertEqual(config["agents"][LINUX_64], "linux/VeeamAgent64")
        self.assertEqual(config["agents"][WINDOWS_64], load_default_config()["agents"][WINDOWS_64])
        self.assertEqual(config["path_groups"]["linux_backup"], ["Veeam\\Backup\\VeeamAgent64"])
        self.assertEqual(len(config["path_groups"]["windows_transport"]), 2)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ConfigParser(self.config_path).load_config()

    def test_invalid_json(self):
        self.write("{not json")
        with self.assertRaises(ValueError):
            ConfigParser(self.config_path).load_config()

    def test_build_config_keeps_group_order(self):
        raw = load_default_config()
        raw["agents_dir"] = "agents"
        raw["path_groups"]["windows_additional"] = ["/Veeam/Backup/WinAgent/VeeamAgent.exe"]
        config = build_config(raw)

        self.assertEqual(tuple(g.name for g in config.path_groups), GROUP_ORDER)
        self.assertEqual(config.group("windows_additional").templates, ("Veeam\\Backup\\WinAgent\\VeeamAgent.exe",))
        self.assertEqual(config.agent_path(WINDOWS_64), os.path.join("agents", "win64", "VeeamAgent.exe"))
        with self.assertRaises(KeyError):
            config.group("unknown")


class TestValidateConfig(unittest.TestCase):
    def test_rejects_unsafe_templates(self):
        config = load_default_config()
        config["path_groups"]["linux_mount"] = ["C:\\Veeam\\VeeamAgent", "..\\VeeamAgent64", ""]
        errors = validate_config(config)
        self.assertEqual(len(errors), 3)
        self.assertTrue(all("linux_mount" in e for e in errors))

    def test_rejects_unknown_group_and_tag(self):
        config = load_default_config()
        config["path_groups"]["hyperv"] = []
        config["agents"]["solaris"] = "sol/VeeamAgent"
        errors = validate_config(config)
        self.assertEqual(len(errors), 2)

    def test_rejects_missing_agent_and_bad_timeout(self):
        config = load_default_config()
        config["agents"][WINDOWS_64] = ""
        config["timeout"] = 0
        errors = validate_config(config)
        self.assertIn("Agent 'windows-64': missing local path", errors)
        self.assertIn("'timeout' must be a positive number of seconds", errors)

    def test_rejects_non_string_paths(self):
        config = load_default_config()
        config["agents"][LINUX_64] = 64
        config["agents_dir"] = ""
        config["log_file"] = None
        errors = validate_config(config)
        self.assertEqual(errors, ["Agent 'linux-64': local path must be a string",
                                  "'agents_dir' must be a non-empty string",
                                  "'log_file' must be a non-empty string"])

    def test_management_server_requires_credentials(self):
        config = load_default_config()
        config["management_server"] = {"ip": "vbr01"}
        errors = validate_config(config)
        self.assertEqual(errors, ["management_server: Missing 'user_name'", "management_server: Missing 'password'"])


if __name__ == "__main__":
    unittest.main()
