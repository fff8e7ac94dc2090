"""Allow ``python -m ytd_fetch`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m ytd_fetch`` behaves identically to the ``ytd-fetch``
console script.
"""

from __future__ import annotations

from ytd_fetch.cli.app import cli

if __name__ == "__main__":
    cli()
