"""logic — Navigation and movement systems.

Top-level modules
-----------------
geometry        — pure plane helpers (rectangles, polygons, angles)
road_graph      — street graph construction and A* routing
access          — lot access points, entry points and fence gates
kinematics      — per-tick motion controller
parking         — per-lot parking spot pool
traffic         — per-tick path dispatcher
entity_factory  — resident, car and roamer spawning
"""
