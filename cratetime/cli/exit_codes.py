# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI exit codes.

Per-package failures are not exit-code worthy: a batch in which half the
index fails to compile still exits with SUCCESS unless --stop-on-error was
given.
"""

SUCCESS: int = 0
USER_ERROR: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
