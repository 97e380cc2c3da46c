# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turning captured build logs into per-pass timing data.

Subsystems:
  - parser: one log text in, ordered list of pass durations out
  - reporter: one summary line per package directory
"""
