"""
Replicador periodico de tablas HMS: base cloud -> base local.
"""
__version__ = "1.0.0"
