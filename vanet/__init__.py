"""
vanet — Vehicular ad-hoc network routing simulator.
"""
