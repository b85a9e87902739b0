"""CLI command implementations, each exposing run(args) -> int."""
