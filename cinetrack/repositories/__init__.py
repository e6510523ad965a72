"""
Repository package for data access layers.

Repositories take their store handle from the running app (`app.state.store`)
through FastAPI dependencies; nothing here holds module-level state.
"""
