import json
import logging
import unittest
from pathlib import Path
from unittest.mock import patch

import click
from click.testing import CliRunner

import changed_objects.cli as cli
from changed_objects.detector import DetectOptions
from changed_objects.grouping.group_model import Diff, Dir, File, Kind, ParentDir
from changed_objects.vcs.git_client import GitError, RepositoryNotFoundError
from changed_objects.vcs.revision import RevisionError


class DummyGitClient:
    def __init__(self, root):
        self.repo_root = root


def sample_diff() -> Diff:
    file = File(
        name="a.yaml",
        path="k8s/prod/a.yaml",
        kind=Kind.ADDITION,
        parent_dir=ParentDir(path="k8s/prod", exist=True),
    )
    return Diff(files=[file], dirs=[Dir(path="k8s/prod", exist=True, files=[file])])


class CLICase(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self.detected = []
        patches = [
            patch.object(cli.GitClient, "open", return_value=DummyGitClient(Path("/repo"))),
            patch.object(cli, "load_config", return_value={}),
            patch.object(cli, "detect_changes", side_effect=self._detect),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)
        self.result_diff = sample_diff()

    def _detect(self, repo_root, options, client=None):
        self.detected.append((repo_root, options))
        return self.result_diff

    def tearDown(self) -> None:
        # configure_logging() attaches a stream handler to the root logger
        logging.getLogger().handlers.clear()


class TestCLI(CLICase):
    def test_json_output(self) -> None:
        result = self.runner.invoke(cli.main, [])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        payload = json.loads(result.output)
        self.assertEqual(payload["files"][0]["kind"], "insert")
        self.assertEqual(payload["dirs"][0]["path"], "k8s/prod")

    def test_plain_output_files(self) -> None:
        result = self.runner.invoke(cli.main, ["-o", "plain"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
        self.assertEqual(result.output, "k8s/prod/a.yaml\n")

    def test_plain_output_dirname(self) -> None:
        result = self.runner.invoke(cli.main, ["--output", "plain", "--dirname"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
        self.assertEqual(result.output, "k8s/prod\n")

    def test_options_are_passed(self) -> None:
        args = [
            "k8s",
            "docs",
            "--default-branch",
            "develop",
            "--merge-base",
            "origin/develop",
            "--type",
            "added",
            "--type",
            "modified",
            "--ignore",
            "**/*.md",
            "--group-by",
            "k8s/*",
            "--dir-exist",
            "true",
        ]
        result = self.runner.invoke(cli.main, args)
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        repo_root, options = self.detected[0]
        self.assertEqual(repo_root, Path("/repo"))
        self.assertEqual(
            options,
            DetectOptions(
                default_branch="develop",
                merge_base="origin/develop",
                types=["added", "modified"],
                ignores=["**/*.md"],
                group_by=["k8s/*"],
                group_by_marker=None,
                dir_exist="true",
                path_prefixes=["k8s", "docs"],
            ),
        )

    def test_invalid_type_is_usage_error(self) -> None:
        result = self.runner.invoke(cli.main, ["--type", "renamed"])
        self.assertEqual(result.exit_code, cli.EXIT_INVALID_USAGE)
        self.assertEqual(self.detected, [])

    def test_group_by_and_marker_conflict(self) -> None:
        result = self.runner.invoke(cli.main, ["--group-by", "k8s/*", "--group-by-marker", "*.tf"])
        self.assertEqual(result.exit_code, cli.EXIT_INVALID_USAGE)
        self.assertEqual(self.detected, [])

    def test_no_repository(self) -> None:
        with patch.object(cli.GitClient, "open", side_effect=RepositoryNotFoundError("not a git repository: /tmp")):
            result = self.runner.invoke(cli.main, [])
        self.assertEqual(result.exit_code, cli.EXIT_NO_REPO)
        self.assertIn("not a git repository", result.output)

    def test_config_error(self) -> None:
        with patch.object(cli, "load_config", side_effect=cli.ConfigError("bad")):
            result = self.runner.invoke(cli.main, [])
        self.assertEqual(result.exit_code, cli.EXIT_CONFIG_ERROR)

    def test_git_error(self) -> None:
        with patch.object(cli, "detect_changes", side_effect=RevisionError("remote reference not found")):
            result = self.runner.invoke(cli.main, [])
        self.assertEqual(result.exit_code, cli.EXIT_VCS_FAILURE)
        self.assertIn("Git error: remote reference not found", result.output)

    def test_invalid_option_value(self) -> None:
        with patch.object(cli, "detect_changes", side_effect=ValueError("invalid dir-exist value")):
            result = self.runner.invoke(cli.main, [])
        self.assertEqual(result.exit_code, cli.EXIT_INVALID_USAGE)

    def test_unexpected_error(self) -> None:
        with patch.object(cli, "detect_changes", side_effect=RuntimeError("boom")):
            result = self.runner.invoke(cli.main, [])
        self.assertEqual(result.exit_code, cli.EXIT_GENERIC_ERROR)
        self.assertIn("Unexpected error: boom", result.output)

    def test_version(self) -> None:
        result = self.runner.invoke(cli.main, ["--version"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
        self.assertIn(cli.__version__, result.output)


class TestBuildOptions(unittest.TestCase):
    def build(self, config, **overrides) -> DetectOptions:
        values = dict(
            path_prefixes=(),
            default_branch=None,
            merge_base=None,
            types=(),
            ignores=(),
            group_by=(),
            group_by_marker=None,
            dir_exist=None,
        )
        values.update(overrides)
        return cli.build_options(config, **values)

    def test_defaults(self) -> None:
        self.assertEqual(self.build({}), DetectOptions())

    def test_config_values_used(self) -> None:
        config = {"default_branch": "develop", "types": ["deleted"], "group_by_marker": "*.tf", "dir_exist": "false"}
        options = self.build(config)
        self.assertEqual(options.default_branch, "develop")
        self.assertEqual(options.types, ["deleted"])
        self.assertEqual(options.group_by_marker, "*.tf")
        self.assertEqual(options.dir_exist, "false")

    def test_command_line_overrides_config(self) -> None:
        options = self.build({"default_branch": "develop", "ignores": ["a"]}, default_branch="trunk", ignores=("b",))
        self.assertEqual(options.default_branch, "trunk")
        self.assertEqual(options.ignores, ["b"])

    def test_command_line_grouping_replaces_config_grouping(self) -> None:
        options = self.build({"group_by_marker": "*.tf"}, group_by=("k8s/*",))
        self.assertEqual(options.group_by, ["k8s/*"])
        self.assertIsNone(options.group_by_marker)

    def test_conflicting_config_grouping(self) -> None:
        with self.assertRaises(click.UsageError):
            self.build({"group_by": ["k8s/*"], "group_by_marker": "*.tf"})


class TestConfigureLogging(unittest.TestCase):
    def tearDown(self) -> None:
        logging.getLogger().handlers.clear()
        logging.getLogger().setLevel(logging.WARNING)

    def test_log_env_level(self) -> None:
        with patch.dict("os.environ", {"LOG": "trace"}):
            cli.configure_logging(False)
        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertTrue(logging.getLogger("changed_objects.cli").propagate)

    def test_unknown_level_falls_back_to_warning(self) -> None:
        with patch.dict("os.environ", {"LOG": "chatty"}):
            cli.configure_logging(False)
        self.assertEqual(logging.getLogger().level, logging.WARNING)

    def test_verbose_wins(self) -> None:
        with patch.dict("os.environ", {"LOG": "error"}):
            cli.configure_logging(True)
        self.assertEqual(logging.getLogger().level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
