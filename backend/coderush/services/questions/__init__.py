"""Question domain services: authoring validation, storage and answer checking.

Imported by the HTTP routes, the game service and the CLI seed command.
"""
