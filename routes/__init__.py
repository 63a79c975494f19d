"""HTTP routers, one module per area. ``main.py`` mounts them under their prefixes."""
