"""
Snake Boy Package
=================

Grid snake game engine: the session state machine, movement and collision,
food and power-ups, levels and maze obstacles, combo scoring, and the
collaborator interfaces a front end plugs into.

All tunable parameters are in game_config.yaml.
"""
