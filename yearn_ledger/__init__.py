"""yearn_ledger package root.

Accounting and report history for Yearn v2 vaults and strategies,
built from vault, strategy and registry events.

- :py:mod:`yearn_ledger.processor` is the entry point for raw events and calls
- :py:mod:`yearn_ledger.entities` has the resulting records
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"yearn-vault-ledger needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
