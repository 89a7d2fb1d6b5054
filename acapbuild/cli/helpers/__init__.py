"""Helpers for CLI output."""

from acapbuild.cli.helpers.output import (
    print_error_message,
    print_list_item,
    print_pipeline_report,
    print_success_message,
    print_target_table,
)


__all__ = [
    "print_error_message",
    "print_list_item",
    "print_pipeline_report",
    "print_success_message",
    "print_target_table",
]
