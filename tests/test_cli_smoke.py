import subprocess
import sys


def test_cli_help() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "ngspairmap", "--help"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert "NGSPairMap" in cp.stdout or "ngspairmap" in cp.stdout.lower()


def test_cli_version() -> None:
    cp = subprocess.run(
        [sys.executable, "-m", "ngspairmap", "--version"],
        check=True,
        capture_output=True,
        text=True,
    )
    assert cp.stdout.startswith("ngspairmap ")
