"""
Unit tests for the operations helper
Commands are captured by a fake runner instead of being executed
"""

import subprocess
import unittest
from unittest.mock import Mock, patch
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import ops_helper
from ops_helper import build_commands, build_preview_command, main, run_action, run_commands


def fake_runner(returncodes=None):
    """Runner recording argv lists; returns the given exit codes in order"""
    codes = list(returncodes or [])
    runner = Mock()
    runner.side_effect = lambda command: subprocess.CompletedProcess(command, codes.pop(0) if codes else 0)
    return runner


class TestBuildCommands(unittest.TestCase):

    def test_init_creates_stack_and_sets_region(self):
        commands = build_commands("init", stack="dev", region="eu-west-1")
        self.assertEqual(commands, [
            ["pulumi", "stack", "init", "dev"],
            ["pulumi", "config", "set", "aws:region", "eu-west-1", "--stack", "dev"],
        ])

    def test_plan_and_idempotence_check(self):
        self.assertEqual(build_commands("plan", stack="dev"), [["pulumi", "preview", "--diff", "--stack", "dev"]])
        self.assertIn("--expect-no-changes", build_commands("plan", expect_no_changes=True)[0])

    def test_apply_and_destroy(self):
        self.assertEqual(build_commands("apply", stack="dev")[0][:2], ["pulumi", "up"])
        self.assertEqual(build_commands("destroy", stack="dev")[0][:2], ["pulumi", "destroy"])

    def test_kubeconfig_handoff(self):
        commands = build_commands("kubeconfig", region="us-east-1", cluster_name="eks-cluster")
        self.assertEqual(commands, [
            ["aws", "eks", "update-kubeconfig", "--region", "us-east-1", "--name", "eks-cluster"]
        ])

    def test_unknown_action(self):
        with self.assertRaises(ValueError):
            build_commands("refresh")
        with self.assertRaises(ValueError):
            build_preview_command("plan")


class TestRunAction(unittest.TestCase):

    def test_apply_previews_before_confirmation(self):
        events = []
        runner = Mock(side_effect=lambda command: events.append(command) or subprocess.CompletedProcess(command, 0))

        def answer(prompt):
            events.append("prompt")
            return "no"

        with patch('builtins.print'):
            status = run_action("apply", stack="dev", input_func=answer, runner=runner)

        self.assertEqual(status, 1)
        self.assertEqual(events, [["pulumi", "preview", "--diff", "--stack", "dev"], "prompt"])

    def test_destroy_runs_after_preview_and_yes(self):
        runner = fake_runner()
        with patch('builtins.print'):
            status = run_action("destroy", stack="dev", input_func=lambda prompt: "YES ", runner=runner)

        self.assertEqual(status, 0)
        self.assertEqual([c.args[0] for c in runner.call_args_list], [
            ["pulumi", "destroy", "--preview-only", "--stack", "dev"],
            ["pulumi", "destroy", "--yes", "--stack", "dev"],
        ])

    def test_failed_preview_skips_prompt(self):
        runner = fake_runner([255])
        prompt = Mock()
        with patch('builtins.print'):
            status = run_action("apply", input_func=prompt, runner=runner)

        self.assertEqual(status, 255)
        prompt.assert_not_called()
        self.assertEqual(runner.call_count, 1)

    def test_assume_yes_skips_prompt(self):
        runner = fake_runner()
        prompt = Mock()
        with patch('builtins.print'):
            status = run_action("apply", assume_yes=True, input_func=prompt, runner=runner)

        self.assertEqual(status, 0)
        prompt.assert_not_called()
        runner.assert_called_once()

    def test_plan_does_not_prompt(self):
        runner = fake_runner()
        prompt = Mock()
        with patch('builtins.print'):
            run_action("plan", input_func=prompt, runner=runner)
        prompt.assert_not_called()

    def test_dry_run_executes_nothing(self):
        runner = fake_runner()
        with patch('builtins.print'):
            status = run_action("destroy", dry_run=True, runner=runner)
        self.assertEqual(status, 0)
        runner.assert_not_called()

    def test_failure_stops_the_sequence(self):
        runner = fake_runner([255, 0])
        with patch('builtins.print'):
            status = run_commands(build_commands("init"), runner=runner)
        self.assertEqual(status, 255)
        self.assertEqual(runner.call_count, 1)

    def test_missing_tool(self):
        runner = Mock(side_effect=FileNotFoundError("pulumi"))
        with patch('builtins.print'):
            self.assertEqual(run_commands([["pulumi", "version"]], runner=runner), 127)


class TestMain(unittest.TestCase):

    def test_main_passes_arguments(self):
        with patch.object(ops_helper, "run_action", return_value=0) as mock_run:
            status = main(["plan", "--stack", "prod", "--expect-no-changes"])

        self.assertEqual(status, 0)
        self.assertEqual(mock_run.call_args.args, ("plan",))
        self.assertEqual(mock_run.call_args.kwargs["stack"], "prod")
        self.assertTrue(mock_run.call_args.kwargs["expect_no_changes"])

    def test_interactive_menu_exit(self):
        answers = iter(["9", str(len(ops_helper.ACTIONS) + 1)])
        with patch('builtins.print'):
            status = ops_helper.interactive("dev", "us-east-1", "eks-cluster",
                                            input_func=lambda prompt: next(answers))
        self.assertEqual(status, 0)


if __name__ == "__main__":
    unittest.main()
