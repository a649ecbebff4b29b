# Services package init
"""
RecipeBox Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services accept a session and domain inputs, apply the rules, and return
       response models or raise application exceptions.

Service Inventory:
    - TokenService:  issue / verify signed session tokens
    - UserService:   register, find_by_email, verify_password, authenticate
    - RecipeService: owner-scoped create / list / search / update / delete
    - UploadService: recipe image storage and public URL building

TokenService, UserService and UploadService depend on settings and live on
app.state; RecipeService is stateless and exported as `recipe_service`.
"""
