"""
Entity modules live under this package.

Each module owns its model, its service (entity I/O plus named searches) and
its screen configurations; behavior comes from the generic engines in
``app.bizadmin.crud``.
"""
