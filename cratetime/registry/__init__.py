# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Registry side of the harness.

Subsystems:
  - spec: parsing `name` / `name=version` work items
  - index: the Registry protocol and the crates.io-index adapter
  - checkout: cloning and updating the local index checkout
  - resolver: picking a version and downloading its source
"""
