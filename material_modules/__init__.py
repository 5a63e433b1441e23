"""
Material Modules - domain modules built on the material kernel.

Modules:
    - handling_units: HU trace records and lineage lookup
    - dispo: candidate reconciliation of inventory transactions
"""
