"""
Portfolio site package.

A FastAPI application serving the public pages (food, cars, anime, business),
the JSON counter API behind the like/view buttons, and the admin pages used
to edit content stored in the hosted Postgres database and object storage.
"""
