# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Batch processing of many packages.

Subsystems:
  - models: per-package run state and the batch summary
  - ledger: which packages already have results on disk
  - orchestrator: the sequential work loop
"""
