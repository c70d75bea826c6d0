"""Example usage of the diagnostic logging configuration."""

import sys
import tempfile
from pathlib import Path

from diaglog import (
    NULL_TRACER,
    Tracer,
    configure_logging,
    die,
    get_diagnostics,
    install_error_trap,
    log_error,
    log_info,
    log_warning,
    toggle_console,
    warn,
)


def fetch_package(name: str, *, tracer: Tracer = NULL_TRACER) -> None:
    """Pretend to download one package.

    Args:
        name:   Package name
        tracer: Debug tracer for this call tree
    """
    with tracer.span():
        log_info(f"Fetching {name}")
        if name == "legacy-tool":
            warn(4, "Package is deprecated", f"{name} will be removed in the next release")


def demonstrate_logging_features(tracer: Tracer = NULL_TRACER) -> None:
    """Demonstrate various logging features.

    Args:
        tracer: Debug tracer, enabled by passing "debug" on the command line
    """
    with tracer.span():
        for name in ("curl", "legacy-tool"):
            fetch_package(name, tracer=tracer)

        # Details follow the message as an extended line
        log_error("Checksum mismatch", "expected 3f2a, got 9b1c")

        # Console output can be switched off for noisy sections
        toggle_console("off")
        log_info("Only written to the log file")
        toggle_console("on")

        log_warning("Disk space is low")
        get_diagnostics().stack_trace("INFO", "Where are we?")


def main() -> None:
    """Main entry point demonstrating different configuration options."""
    tracer, args = Tracer.from_args(sys.argv[1:], script=Path(__file__).name)

    # 1. Early access uses console-only logging
    print("\n=== Before Configuration ===")
    log_info("Using default console-only logging")

    # 2. Configure with a log file in the temporary directory
    print("\n=== Configured ===")
    log_file = Path(tempfile.gettempdir()) / "diaglog-demo.log"
    configure_logging(from_env=True).with_file(log_file).build()
    install_error_trap()
    demonstrate_logging_features(tracer)

    # 3. Try to reconfigure (should fail)
    print("\n=== Attempting to Reconfigure ===")
    try:
        configure_logging().build()
        print("ERROR: Should not reach this line!")
    except RuntimeError as e:
        print(f"Expected error: {e}")

    print(f"\nLog file: {log_file}")

    # 4. Fatal errors always print a trace and exit
    if "fail" in args:
        die(2, "bad config", "missing key X")


if __name__ == "__main__":
    main()
