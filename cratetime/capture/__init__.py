# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Per-package capture of the process's standard output streams."""

from cratetime.capture.guard import OutputCapture, capture_active

__all__ = ["OutputCapture", "capture_active"]
