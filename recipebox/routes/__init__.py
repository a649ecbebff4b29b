# Routes package init
"""
RecipeBox Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:    POST /auth/register, POST /auth/login
    - recipes.py: POST/GET /auth/recipe, PUT/DELETE /auth/recipe/{id},
                  GET /auth/searchRecipes/{query}
    - health.py:  GET /health

Routes stay thin: they extract request data, call a service, and pick the
status code. Errors propagate to the global exception handlers in main.py.
"""
