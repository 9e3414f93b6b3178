#!/usr/bin/env python3
"""
Operations helper for the EKS tutorial stack
Wraps the pulumi, aws and kubectl CLIs: init, plan, apply, destroy and
the kubeconfig handoff. Apply and destroy show a preview and ask for
confirmation first.
"""

import argparse
import subprocess
import sys
from typing import Callable, List, Optional

DEFAULT_STACK = "dev"
DEFAULT_REGION = "us-east-1"
DEFAULT_CLUSTER = "eks-cluster"

ACTIONS = ["init", "plan", "apply", "destroy", "kubeconfig", "inspect"]
MUTATING_ACTIONS = {"apply", "destroy"}


def build_commands(action: str, stack: str = DEFAULT_STACK, region: str = DEFAULT_REGION,
                   cluster_name: str = DEFAULT_CLUSTER,
                   expect_no_changes: bool = False) -> List[List[str]]:
    """
    Build the CLI commands for an action

    Args:
        action: One of ACTIONS
        stack: Pulumi stack name
        region: AWS region
        cluster_name: EKS cluster name
        expect_no_changes: Make plan fail if anything would change

    Returns:
        List of argv lists, run in order
    """
    if action == "init":
        return [
            ["pulumi", "stack", "init", stack],
            ["pulumi", "config", "set", "aws:region", region, "--stack", stack],
        ]
    if action == "plan":
        command = ["pulumi", "preview", "--diff", "--stack", stack]
        if expect_no_changes:
            command.append("--expect-no-changes")
        return [command]
    if action == "apply":
        return [["pulumi", "up", "--yes", "--skip-preview", "--stack", stack]]
    if action == "destroy":
        return [["pulumi", "destroy", "--yes", "--stack", stack]]
    if action == "kubeconfig":
        return [["aws", "eks", "update-kubeconfig", "--region", region, "--name", cluster_name]]
    if action == "inspect":
        return [["kubectl", "get", "pods,services", "-o", "wide"]]
    raise ValueError(f"Unknown action: {action}")


def build_preview_command(action: str, stack: str = DEFAULT_STACK) -> List[str]:
    """Command showing what a mutating action would change, without changing it"""
    if action == "apply":
        return ["pulumi", "preview", "--diff", "--stack", stack]
    if action == "destroy":
        return ["pulumi", "destroy", "--preview-only", "--stack", stack]
    raise ValueError(f"No preview for action: {action}")


def confirm(action: str, stack: str, input_func: Callable[[str], str] = input) -> bool:
    """Ask the operator to type 'yes' before a mutating action"""
    answer = input_func(f"⚠️  {action} will change real infrastructure in stack '{stack}'. Type 'yes' to continue: ")
    return answer.strip().lower() == "yes"


def run_commands(commands: List[List[str]], dry_run: bool = False,
                 runner: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> int:
    """
    Run commands in order, stopping at the first failure

    Returns:
        Exit status of the last command run (127 when the executable is missing)
    """
    for command in commands:
        print(f"$ {' '.join(command)}")
        if dry_run:
            continue
        try:
            result = runner(command)
        except FileNotFoundError:
            print(f"❌ {command[0]} is not installed")
            return 127
        if result.returncode != 0:
            print(f"❌ {' '.join(command[:2])} failed with exit code {result.returncode}")
            return result.returncode
    return 0


def run_action(action: str, stack: str = DEFAULT_STACK, region: str = DEFAULT_REGION,
               cluster_name: str = DEFAULT_CLUSTER, assume_yes: bool = False,
               dry_run: bool = False, expect_no_changes: bool = False,
               input_func: Callable[[str], str] = input,
               runner: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> int:
    """
    Run one action end to end

    Returns:
        Process exit status, 0 on success
    """
    commands = build_commands(action, stack, region, cluster_name, expect_no_changes)

    if action in MUTATING_ACTIONS and not assume_yes and not dry_run:
        status = run_commands([build_preview_command(action, stack)], runner=runner)
        if status != 0:
            return status
        if not confirm(action, stack, input_func):
            print("Aborted, nothing was changed.")
            return 1

    status = run_commands(commands, dry_run=dry_run, runner=runner)
    if status == 0:
        print(f"✅ {action} complete")
        if action == "apply":
            print("Next: run the 'kubeconfig' action, then 'inspect' to see the nginx pod and service.")
    return status


def interactive(stack: str, region: str, cluster_name: str,
                input_func: Callable[[str], str] = input) -> int:
    """Menu-driven mode used when no action is given"""
    print("🚀 EKS Tutorial Operations Helper")
    print("==================================")
    print(f"Stack: {stack}  Region: {region}  Cluster: {cluster_name}")
    print()

    status = 0
    while True:
        print("Choose an option:")
        for i, action in enumerate(ACTIONS, start=1):
            print(f"{i}. {action}")
        print(f"{len(ACTIONS) + 1}. exit")
        print()

        choice = input_func(f"Enter your choice (1-{len(ACTIONS) + 1}): ").strip()

        if choice == str(len(ACTIONS) + 1):
            print("👋 Bye!")
            return status
        if choice.isdigit() and 1 <= int(choice) <= len(ACTIONS):
            status = run_action(ACTIONS[int(choice) - 1], stack, region, cluster_name,
                                input_func=input_func)
        else:
            print(f"❌ Invalid choice. Please enter 1-{len(ACTIONS) + 1}.")

        print("\n" + "=" * 50 + "\n")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Provision and inspect the EKS tutorial stack")
    parser.add_argument("action", nargs="?", choices=ACTIONS,
                        help="Action to run; omit for the interactive menu")
    parser.add_argument("--stack", default=DEFAULT_STACK, help="Pulumi stack name")
    parser.add_argument("--region", default=DEFAULT_REGION, help="AWS region")
    parser.add_argument("--cluster-name", default=DEFAULT_CLUSTER, help="EKS cluster name")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without running them")
    parser.add_argument("--expect-no-changes", action="store_true",
                        help="With plan: fail unless the stack is already up to date")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.action is None:
        return interactive(args.stack, args.region, args.cluster_name)
    return run_action(
        args.action,
        stack=args.stack,
        region=args.region,
        cluster_name=args.cluster_name,
        assume_yes=args.yes,
        dry_run=args.dry_run,
        expect_no_changes=args.expect_no_changes
    )


if __name__ == "__main__":
    sys.exit(main())
