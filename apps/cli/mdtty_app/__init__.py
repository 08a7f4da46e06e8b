"""Command line application for rendering markdown on terminals."""
