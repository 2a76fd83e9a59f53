"""API routers. Import submodules directly."""
