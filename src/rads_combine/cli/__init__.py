"""Command-line interface modules for pass combiner execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from rads_combine.cli.run_combine import run_pass_combiner, main

__all__ = ['run_pass_combiner', 'main']
