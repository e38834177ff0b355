# Routes package init
"""
WikiMaps Backend: Routes Package
================================

Route Inventory:
    - auth.py:       GET /login/{user_id}, POST /logout
    - maps.py:       GET /, /maps/new, /maps/{map_id}[/edit|/json], POST /maps/new, /maps/{map_id}/delete
    - points.py:     POST /maps/{map_id}/points[/{point_id}[/delete]]
    - users.py:      GET /users/{user_id}, POST favourites add/remove
    - users_api.py:  GET /api/users[/{user_id}]
    - health.py:     GET /health

Routes stay thin: read the request, await the services, pick the status
code and the view or JSON body.
"""
