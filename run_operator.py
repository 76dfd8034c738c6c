#!/usr/bin/env python3
"""
Wrapper script to run the addon-operator with Kopf.

The kubernetes_asyncio patch has to be applied BEFORE Kopf is loaded, so
the operator is started through this script rather than `kopf run`. All
arguments are passed on to Kopf's `run` command.

Usage:
    python run_operator.py [any kopf run arguments]

Examples:
    python run_operator.py --verbose --all-namespaces
    python run_operator.py --liveness=http://0.0.0.0:8080/healthz --log-format=json
"""

from addon_operator.utils.override import patch_kopf_thirdparty
patch_kopf_thirdparty()

import sys  # noqa: E402

if __name__ == '__main__':
    import kopf.cli  # noqa: E402

    # Registers the startup/cleanup and event handlers
    import addon_operator.app  # noqa: E402, F401

    sys.argv.insert(1, 'run')

    sys.exit(kopf.cli.main(prog_name="kopf"))
