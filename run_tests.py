#!/usr/bin/env python3
"""
Test runner script for the portfolio API.

This script provides convenient commands for running different types of tests.
"""

import sys
import subprocess
import argparse


def run_command(cmd, description):
    """Run a command and handle errors."""
    print(f"\n🧪 {description}")
    print("=" * 50)

    try:
        subprocess.run(cmd, shell=True, check=True, capture_output=False)
        print(f"✅ {description} completed successfully")
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ {description} failed with exit code {e.returncode}")
        return False


def main():
    """Main test runner function."""
    parser = argparse.ArgumentParser(description="Portfolio API Test Runner")
    parser.add_argument(
        "test_type",
        choices=["unit", "integration", "all", "chat", "contact", "coverage"],
        help="Type of tests to run"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Run tests in verbose mode"
    )

    args = parser.parse_args()

    base_cmd = "python -m pytest"
    if args.verbose:
        base_cmd += " -v"

    commands = {
        "unit": f"{base_cmd} tests/unit/ -m unit",
        "integration": f"{base_cmd} tests/integration/ -m integration",
        "all": f"{base_cmd} tests/",
        "chat": f"{base_cmd} tests/unit/test_chat_service.py tests/unit/test_session_store.py",
        "contact": f"{base_cmd} tests/unit/test_contact_service.py tests/unit/test_email_service.py",
        "coverage": f"{base_cmd} tests/ --cov=portfolio_api --cov-report=html --cov-report=term"
    }

    success = run_command(commands[args.test_type], f"Running {args.test_type} tests")
    if not success:
        sys.exit(1)

    print(f"\n🎉 All {args.test_type} tests passed!")


if __name__ == "__main__":
    main()
