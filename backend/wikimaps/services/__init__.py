# Services package init
"""
WikiMaps Backend: Services Layer (Persistence Gateway)
======================================================

What:  Async operations between routes (HTTP) and the relational store.
How:   Each service is a stateless class with a module-level singleton;
       every method takes the request's AsyncSession as its first argument.

Service Inventory:
    - MapService:        maps and points (create, list, lookup, add/edit/delete)
    - FavouriteService:  users ↔ maps bookmarks
    - UserService:       read access to stored user profiles
"""
