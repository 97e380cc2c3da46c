# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Driving the external build tool.

Subsystems:
  - models: phase outcomes and build options
  - cargo: the Builder contract and the cargo subprocess implementation
  - invocation: compile/test/bench sequencing and classification
"""
