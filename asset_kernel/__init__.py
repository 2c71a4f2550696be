"""
Asset Kernel - lifecycle workflow engine for physical IT assets.

Tracks laptops, phones, desktops and other equipment through storage,
inter-site shipment, deployment to users and salvage, with:
- A table-driven lifecycle state machine
- Per-state side effects applied atomically with the state change
- Transfer and salvage batch sub-workflows
- Append-only, hash-chained event history
"""

__version__ = "0.1.0"
