"""Services Layer — recipes, their runner, handlers and the action dispatcher.

Invariants:
    - Services never construct SDK clients; they receive a RecipeRunner
"""
