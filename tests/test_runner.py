"""Tests for the command-line entry point."""

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from clusterstrap import runner
from clusterstrap.config import Config
from clusterstrap.errors import ConfigError

SAMPLE = "54.168.1.10 192.168.1.10\n\n54.168.1.11\n54.168.1.12\n"


class FakeTransport:
    """Stands in for SSHTransport/LocalTransport; shares calls across instances."""

    calls: list[tuple[str, str]] = []
    statuses: dict[str, int] = {}
    instances: list["FakeTransport"] = []

    def __init__(self, elevate=False):
        self.elevate = elevate
        FakeTransport.instances.append(self)

    async def run(self, target, payload, on_output=None):
        FakeTransport.calls.append((target.destination, payload))
        if on_output:
            on_output("working")
        return FakeTransport.statuses.get(target.host, 0)


class RunnerTestCase(unittest.TestCase):
    def setUp(self):
        FakeTransport.calls = []
        FakeTransport.statuses = {}
        FakeTransport.instances = []
        self.config = Config(no_logs=True)
        for target, value in (
            ("clusterstrap.runner.find_config", lambda: self.config),
            ("clusterstrap.runner.SSHTransport", FakeTransport),
            ("clusterstrap.runner.LocalTransport", FakeTransport),
        ):
            patcher = patch(target, value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def run_main(self, argv, stdin=""):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = runner.main(argv, stdin=io.StringIO(stdin))
        return code, out.getvalue(), err.getvalue()


class TestClusterMode(RunnerTestCase):
    def test_dispatches_every_host(self):
        code, out, err = self.run_main(["--ssh-user", "ubuntu"], SAMPLE)
        self.assertEqual(code, 0)
        self.assertEqual(
            [dest for dest, _ in FakeTransport.calls],
            ["ubuntu@54.168.1.11", "ubuntu@54.168.1.12", "ubuntu@54.168.1.10"],
        )
        self.assertIn("++ 54.168.1.11", err)
        self.assertIn("-- 54.168.1.10 (192.168.1.10)", err)
        self.assertIn("working", out)

    def test_host_failure_keeps_exit_status_zero(self):
        FakeTransport.statuses = {"54.168.1.11": 1}
        code, _, err = self.run_main([], SAMPLE)
        self.assertEqual(code, 0)
        self.assertEqual(len(FakeTransport.calls), 3)
        self.assertIn("!! 54.168.1.11", err)
        self.assertIn("Failed hosts: 54.168.1.11", err)

    def test_unknown_flag_fails_before_dispatch(self):
        code, _, err = self.run_main(["--bogus"], SAMPLE)
        self.assertEqual(code, 1)
        self.assertIn("No such option: --bogus", err)
        self.assertEqual(FakeTransport.calls, [])
        self.assertEqual(FakeTransport.instances, [])

    def test_missing_flag_value_fails_before_dispatch(self):
        code, _, err = self.run_main(["--ssh-key"], SAMPLE)
        self.assertEqual(code, 1)
        self.assertIn("Missing value", err)
        self.assertEqual(FakeTransport.calls, [])

    def test_master_without_internal_address_fails_before_dispatch(self):
        code, _, err = self.run_main([], "54.168.1.10\n\n54.168.1.11\n")
        self.assertEqual(code, 1)
        self.assertIn("'master' needs at least 1 argument", err)
        self.assertEqual(FakeTransport.calls, [])

    def test_empty_topology(self):
        code, _, err = self.run_main([], "# nothing here\n")
        self.assertEqual(code, 0)
        self.assertEqual(FakeTransport.calls, [])
        self.assertIn("nothing to do", err)

    def test_sudo_setting_elevates_transport(self):
        self.config = Config(no_logs=True, sudo=True)
        self.run_main([], SAMPLE)
        self.assertTrue(FakeTransport.instances[0].elevate)

    def test_config_error(self):
        def broken():
            raise ConfigError("'release' must be a mapping")

        with patch("clusterstrap.runner.find_config", broken):
            code, _, err = self.run_main([], SAMPLE)
        self.assertEqual(code, 1)
        self.assertIn("Error: 'release' must be a mapping", err)


class TestRoleMode(RunnerTestCase):
    def test_master_runs_locally(self):
        code, out, _ = self.run_main(["master", "192.168.1.10"])
        self.assertEqual(code, 0)
        ((destination, payload),) = FakeTransport.calls
        self.assertEqual(destination, "localhost")
        self.assertTrue(payload.rstrip("\n").endswith("master 192.168.1.10"))
        self.assertIn("working", out)

    def test_handler_status_is_exit_status(self):
        FakeTransport.statuses = {"localhost": 4}
        code, _, _ = self.run_main(["slave"])
        self.assertEqual(code, 4)

    def test_master_without_address(self):
        code, _, err = self.run_main(["master"])
        self.assertEqual(code, 1)
        self.assertIn("'master' needs at least 1 argument", err)
        self.assertEqual(FakeTransport.calls, [])

    def test_build(self):
        code, _, _ = self.run_main(["build"])
        self.assertEqual(code, 0)
        self.assertTrue(FakeTransport.calls[0][1].rstrip("\n").endswith("build"))

    def test_help(self):
        code, out, _ = self.run_main(["--help"])
        self.assertEqual(code, 0)
        self.assertIn("USAGE: clusterstrap", out)
        self.assertEqual(FakeTransport.calls, [])


if __name__ == "__main__":
    unittest.main()
